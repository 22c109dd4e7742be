"""
Hybrid OCR pipeline.

- Region detection works on pixels only (visual density, no text reading)
- Recognition and translation are delegated to a vision model oracle
- The resolver merges the two and keeps overlay results in image space
"""

from .merge import fallback_bbox, merge_regions, spatial_sort
from .models import (
    BoundingBox,
    DetectedRegion,
    OverlayResult,
    RecognitionOracle,
    RecognizedItem,
    TranslationSink,
)
from .ocr_resolver import OCRResolver
from .region_detector import RegionDetector, detect_text_regions
from .sequencing import RequestSequencer

__all__ = [
    "BoundingBox",
    "DetectedRegion",
    "OCRResolver",
    "OverlayResult",
    "RecognitionOracle",
    "RecognizedItem",
    "RegionDetector",
    "RequestSequencer",
    "TranslationSink",
    "detect_text_regions",
    "fallback_bbox",
    "merge_regions",
    "spatial_sort",
]
