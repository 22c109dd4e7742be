from __future__ import annotations

import time
from typing import Optional, Any, Dict, List

from GalleryTranslator.ai.contracts import AIRequest, AIResponse, AIError
from GalleryTranslator.ai.providers.base import SYSTEM_PROMPT
from GalleryTranslator.util.shared.image_utils import to_data_url


def build_user_content(request: AIRequest) -> List[Dict[str, Any]]:
    """Chat-completions content parts: the prompt followed by inline images."""
    content: List[Dict[str, Any]] = [{"type": "text", "text": request.prompt}]
    for image in request.images:
        content.append({"type": "image_url", "image_url": {"url": to_data_url(image)}})
    return content


class OpenAIClient:
    def __init__(self, api_url: str, api_key: str, logger, timeout_s: Optional[float] = None):
        self.api_url = api_url
        self.api_key = api_key
        self.logger = logger
        self.client = None
        try:
            import openai

            self.client = openai.OpenAI(base_url=api_url or None, api_key=api_key, timeout=timeout_s)
        except Exception as e:
            self.logger.error(f"Failed to initialize OpenAI API: {e}")

    def _should_use_basic_params(self, model_name: str) -> bool:
        return "gpt-5" in model_name.lower()

    def generate(self, request: AIRequest) -> AIResponse:
        if self.client is None:
            raise AIError("OpenAI client not initialized.", transient=False)

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_content(request)},
        ]
        extra_params_allowed = not self._should_use_basic_params(request.model)
        start_time = time.time()

        try:
            response = None
            if extra_params_allowed:
                try:
                    response = self.client.chat.completions.create(
                        model=request.model,
                        messages=messages,
                        temperature=request.temperature,
                        max_tokens=request.max_tokens,
                        top_p=request.top_p,
                        n=1,
                    )
                except Exception as e:
                    self.logger.warning(f"Full parameter request failed, trying with basic parameters: {e}")

            if response is None:
                response = self.client.chat.completions.create(
                    model=request.model,
                    messages=messages,
                    n=1,
                )

            raw_text = ""
            if response.choices and response.choices[0].message.content:
                raw_text = response.choices[0].message.content.strip()

            usage: Optional[Dict[str, Any]] = None
            if getattr(response, "usage", None):
                usage = response.usage.model_dump() if hasattr(response.usage, "model_dump") else dict(response.usage)

            latency_ms = int((time.time() - start_time) * 1000)
            return AIResponse(
                provider=request.provider,
                model=request.model,
                raw_text=raw_text,
                latency_ms=latency_ms,
                usage=usage,
            )
        except Exception as e:
            self.logger.exception(f"OpenAI processing failed: {e}")
            raise AIError(f"Processing failed: {e}", transient=True)
