from __future__ import annotations

import copy
from dataclasses import replace
from typing import List, Optional, Tuple

from GalleryTranslator.ai.contracts import AIRequest, AIResponse, AIError
from GalleryTranslator.ai.parsing.output_parser import RecognitionParser
from GalleryTranslator.ai.prompts.templates import (
    build_page_prompt,
    build_region_prompt,
    build_text_translation_prompt,
)
from GalleryTranslator.ai.registry import ProviderRegistry
from GalleryTranslator.ocr.models import RecognizedItem
from GalleryTranslator.util.config.configuration import AI_GEMINI, AI_GROQ, AI_LM_STUDIO, AI_OLLAMA, AI_OPENAI, Ai
from GalleryTranslator.util.logging_config import logger as default_logger
from GalleryTranslator.util.net_utils import is_connected, is_local_url

TRANSLATION_FAILED = "Translation failed"
NO_CONNECTION = "No internet connection"


def _requires_internet(config: Ai) -> bool:
    if config.provider in {AI_GEMINI, AI_GROQ}:
        return True
    if config.provider == AI_OPENAI:
        return not is_local_url(config.open_ai_url)
    if config.provider == AI_LM_STUDIO:
        return False
    if config.provider == AI_OLLAMA:
        return False
    return True


class RecognitionService:
    """
    Recognition oracle backed by a configured vision model.

    ``recognize`` and ``recognize_many`` never raise: transport and parse failures
    come back as labeled failure items.
    """

    def __init__(
        self,
        config: Ai,
        logger=None,
        registry: Optional[ProviderRegistry] = None,
        parser: Optional[RecognitionParser] = None,
    ):
        self.config = copy.deepcopy(config)
        self.logger = logger or default_logger
        self.registry = registry or ProviderRegistry(self.logger)
        self.parser = parser or RecognitionParser()

    def _make_request(
        self,
        prompt: str,
        request_kind: str,
        images: Tuple[bytes, ...] = (),
    ) -> AIRequest:
        return AIRequest(
            provider=self.config.provider,
            model=self._get_model_for_provider(self.config),
            prompt=prompt,
            temperature=self.config.temperature,
            top_p=self.config.top_p,
            max_tokens=self.config.max_output_tokens,
            images=images,
            request_kind=request_kind,
        )

    @staticmethod
    def _get_model_for_provider(config: Ai) -> str:
        if config.provider == AI_OLLAMA:
            return config.ollama_model
        if config.provider == AI_OPENAI:
            return config.open_ai_model
        if config.provider == AI_LM_STUDIO:
            return config.lm_studio_model
        if config.provider == AI_GEMINI:
            return config.gemini_model
        if config.provider == AI_GROQ:
            return config.groq_model
        return ""

    @staticmethod
    def _get_backup_model_for_provider(config: Ai) -> str:
        if config.provider == AI_OLLAMA:
            return config.ollama_backup_model
        if config.provider == AI_OPENAI:
            return config.open_ai_backup_model
        if config.provider == AI_LM_STUDIO:
            return config.lm_studio_backup_model
        if config.provider == AI_GEMINI:
            return config.gemini_backup_model
        if config.provider == AI_GROQ:
            return config.groq_backup_model
        return ""

    def _ensure_connectivity(self) -> bool:
        if _requires_internet(self.config) and not is_connected():
            self.logger.error("No internet connection. Unable to reach the recognition model.")
            return False
        return True

    def _execute_request(self, request: AIRequest) -> AIResponse:
        try:
            client = self.registry.get_client(self.config)
        except ValueError as e:
            raise AIError(str(e), transient=False) from e
        try:
            response = client.generate(request)
        except AIError as primary_error:
            backup_model = self._get_backup_model_for_provider(self.config)
            if not backup_model or backup_model == request.model:
                raise

            self.logger.warning(
                f"Primary AI model failed ({request.model}). Retrying with backup model '{backup_model}'."
            )
            try:
                response = client.generate(replace(request, model=backup_model))
            except AIError as backup_error:
                self.logger.error(
                    f"Backup AI model '{backup_model}' also failed after primary model '{request.model}': {backup_error}"
                )
                raise primary_error

        self.logger.debug(f"{response.provider}/{response.model} answered in {response.latency_ms} ms: {response.raw_text!r}")
        return response

    def recognize(self, image_bytes: bytes, target_language: str) -> RecognizedItem:
        if not self._ensure_connectivity():
            return RecognizedItem.failure(NO_CONNECTION)

        request = self._make_request(
            build_region_prompt(target_language),
            request_kind="region",
            images=(image_bytes,),
        )
        try:
            response = self._execute_request(request)
        except AIError as e:
            self.logger.error(f"AI processing failed: {e}")
            return RecognizedItem.failure(str(e))
        return self.parser.parse_single(response.raw_text)

    def recognize_many(self, image_bytes: bytes, target_language: str) -> List[RecognizedItem]:
        if not self._ensure_connectivity():
            return [RecognizedItem.failure(NO_CONNECTION)]

        request = self._make_request(
            build_page_prompt(target_language),
            request_kind="page",
            images=(image_bytes,),
        )
        try:
            response = self._execute_request(request)
        except AIError as e:
            self.logger.error(f"AI processing failed: {e}")
            return [RecognizedItem.failure(str(e))]
        return self.parser.parse_many(response.raw_text)

    def translate_text(self, text: str, target_language: str) -> str:
        if not text or not text.strip():
            return ""
        if not self._ensure_connectivity():
            return TRANSLATION_FAILED

        request = self._make_request(
            build_text_translation_prompt(text, target_language),
            request_kind="text",
        )
        try:
            response = self._execute_request(request)
        except AIError as e:
            self.logger.error(f"Translation failed: {e}")
            return TRANSLATION_FAILED
        return self.parser.parse_translation(response.raw_text) or TRANSLATION_FAILED
