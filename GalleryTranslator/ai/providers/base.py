from __future__ import annotations

from typing import Protocol

from GalleryTranslator.ai.contracts import AIRequest, AIResponse

SYSTEM_PROMPT = (
    "You are an OCR and translation assistant for images. "
    "Always answer with valid JSON exactly in the shape the user asks for."
)


class ProviderClient(Protocol):
    def generate(self, request: AIRequest) -> AIResponse:
        ...
