from __future__ import annotations

import time
from google import genai
from google.genai import types
from typing import Optional, Any, Dict

from GalleryTranslator.ai.contracts import AIRequest, AIResponse, AIError
from GalleryTranslator.ai.providers.base import SYSTEM_PROMPT


class GeminiClient:
    def __init__(self, api_key: str, logger):
        self.api_key = api_key
        self.logger = logger
        self.client = None
        # rendered manga and game text trip the default filters constantly
        self._safety_settings = [
            types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
            for category in (
                types.HarmCategory.HARM_CATEGORY_HARASSMENT,
                types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
                types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
                types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
            )
        ]
        try:
            self.client = genai.Client(api_key=self.api_key)
        except Exception as e:
            self.logger.error(f"Failed to initialize Gemini API: {e}")

    @staticmethod
    def _get_thinking_budget(model_name: str) -> Optional[int]:
        model = (model_name or "").lower()
        if "gemini-2.5" in model or "gemini-3" in model:
            return -1 if "-pro" in model else 0
        return None

    def _build_generation_config(self, request: AIRequest) -> types.GenerateContentConfig:
        config = types.GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT,
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
            top_p=request.top_p,
            safety_settings=self._safety_settings,
            response_mime_type="application/json" if request.json_output else None,
        )
        thinking_budget = self._get_thinking_budget(request.model)
        if thinking_budget is not None:
            config.thinking_config = types.ThinkingConfig(thinking_budget=thinking_budget)
        return config

    def generate(self, request: AIRequest) -> AIResponse:
        if self.client is None:
            raise AIError("Gemini model not initialized.", transient=False)

        start_time = time.time()
        try:
            parts = [types.Part.from_bytes(data=image, mime_type="image/jpeg") for image in request.images]
            parts.append(types.Part.from_text(text=request.prompt))
            response = self.client.models.generate_content(
                model=request.model,
                contents=[types.Content(role="user", parts=parts)],
                config=self._build_generation_config(request),
            )

            self.logger.debug(f"Gemini raw response: {response}")

            result = ""
            for candidate in response.candidates or []:
                if candidate.content and candidate.content.parts:
                    for part in candidate.content.parts:
                        if getattr(part, "text", None):
                            result += part.text

            usage: Optional[Dict[str, Any]] = None
            if getattr(response, "usage_metadata", None):
                usage = response.usage_metadata.model_dump()

            latency_ms = int((time.time() - start_time) * 1000)
            return AIResponse(
                provider=request.provider,
                model=request.model,
                raw_text=result.strip(),
                latency_ms=latency_ms,
                usage=usage,
            )
        except Exception as e:
            self.logger.error(f"Gemini processing failed: {e}")
            raise AIError(f"Processing failed: {e}", transient=True)
