from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Protocol

from GalleryTranslator.viewport.transforms import image_to_screen
from GalleryTranslator.viewport.view_state import ViewState


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box ``(x, y, w, h)``.

    Boxes carry no space tag: resolver output is in image space, ``OverlayResult.to_display``
    produces display-space copies.
    """

    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class DetectedRegion:
    """Image-space box the density detector believes holds text."""

    bbox: BoundingBox


@dataclass(frozen=True)
class RecognizedItem:
    """
    One text block from the recognition model.

    ``error`` is set on the labeled failure object; its message is also carried in
    ``translated_text`` so it can be shown as-is.
    """

    original_text: str
    translated_text: str
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @staticmethod
    def failure(message: str) -> "RecognizedItem":
        return RecognizedItem(original_text="Error", translated_text=message, error=message)


@dataclass
class OverlayResult:
    text: str
    translation: str
    bbox: BoundingBox
    visible: bool = True
    loading: bool = False
    is_fallback: bool = False
    is_error: bool = False

    def to_display(self, state: ViewState) -> "OverlayResult":
        """Copy of this result with its image-space bbox projected into the window."""
        x, y, w, h = image_to_screen(self.bbox.x, self.bbox.y, self.bbox.w, self.bbox.h, state)
        return replace(self, bbox=BoundingBox(x=x, y=y, w=w, h=h))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "translation": self.translation,
            "bbox": self.bbox.to_dict(),
            "visible": self.visible,
            "loading": self.loading,
            "is_fallback": self.is_fallback,
        }


class RecognitionOracle(Protocol):
    def recognize(self, image_bytes: bytes, target_language: str) -> RecognizedItem:
        ...

    def recognize_many(self, image_bytes: bytes, target_language: str) -> List[RecognizedItem]:
        ...


class TranslationSink(Protocol):
    def __call__(self, file_key: str, bbox: BoundingBox, text: str, translation: str) -> None:
        ...
