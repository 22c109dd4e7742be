from __future__ import annotations

import time
from typing import Optional, Any, Dict

from GalleryTranslator.ai.contracts import AIRequest, AIResponse, AIError


class OllamaClient:
    def __init__(self, api_url: str, logger, timeout_s: Optional[float] = None):
        self.api_url = api_url
        self.logger = logger
        self.client = None
        try:
            import ollama

            self.client = ollama.Client(host=api_url, timeout=timeout_s)
        except Exception as e:
            self.logger.error(f"Failed to initialize Ollama client: {e}")

    def generate(self, request: AIRequest) -> AIResponse:
        if self.client is None:
            raise AIError("Ollama client not initialized.", transient=False)

        start_time = time.time()
        try:
            message: Dict[str, Any] = {"role": "user", "content": request.prompt}
            if request.images:
                message["images"] = list(request.images)

            response = self.client.chat(
                model=request.model,
                messages=[message],
                format="json" if request.json_output else None,
                stream=False,
                options={
                    "temperature": request.temperature,
                    "top_p": request.top_p,
                    "num_predict": request.max_tokens,
                },
            )
            reply = response["message"]
            raw_text = (reply.get("content") or "").strip()
            if not raw_text and reply.get("thinking"):
                # reasoning models sometimes leave content empty and answer in "thinking"
                self.logger.warning("Empty 'content' from Ollama, using 'thinking' field as fallback.")
                raw_text = reply.get("thinking").strip()

            usage: Optional[Dict[str, Any]] = None
            if response.get("eval_count") is not None:
                usage = {
                    "prompt_eval_count": response.get("prompt_eval_count"),
                    "eval_count": response.get("eval_count"),
                }

            latency_ms = int((time.time() - start_time) * 1000)
            return AIResponse(
                provider=request.provider,
                model=request.model,
                raw_text=raw_text,
                latency_ms=latency_ms,
                usage=usage,
            )
        except Exception as e:
            self.logger.exception(f"Ollama processing failed: {e}")
            raise AIError(f"Processing failed: {e}", transient=True)
