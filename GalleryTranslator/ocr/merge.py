"""
Merge policy for auto mode: pair density-detected boxes with the model's reading-order
text list.

The model is asked for items top-to-bottom, so boxes are put in the same row-major
order and zipped by index. Items without a box (or everything, when one side came back
empty) are pinned to a subtitle band at the bottom of the frame.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import List, Optional, Sequence

from GalleryTranslator.ocr.models import BoundingBox, DetectedRegion, OverlayResult, RecognizedItem
from GalleryTranslator.util.config.configuration import Overlay


def spatial_sort(regions: Sequence[DetectedRegion], row_tolerance: float = 50) -> List[DetectedRegion]:
    """
    Sort boxes top-to-bottom by row bucket, then left-to-right inside a row.

    Two boxes whose top edges are within ``row_tolerance`` pixels count as one row.
    """

    def compare(a: DetectedRegion, b: DetectedRegion) -> float:
        dy = a.bbox.y - b.bbox.y
        if abs(dy) > row_tolerance:
            return dy
        return a.bbox.x - b.bbox.x

    return sorted(regions, key=cmp_to_key(compare))


def fallback_bbox(frame_width: float, frame_height: float, config: Optional[Overlay] = None) -> BoundingBox:
    """Bottom-pinned band used for items that have no detected box."""
    config = config or Overlay()
    band_width = frame_width * config.fallback_width_ratio
    return BoundingBox(
        x=(frame_width - band_width) / 2,
        y=frame_height - config.fallback_bottom_margin,
        w=band_width,
        h=config.fallback_height,
    )


def _result_for(item: RecognizedItem, bbox: BoundingBox, is_fallback: bool) -> OverlayResult:
    return OverlayResult(
        text=item.original_text,
        translation=item.translated_text,
        bbox=bbox,
        visible=True,
        loading=False,
        is_fallback=is_fallback,
        is_error=item.is_error,
    )


def merge_regions(regions: Sequence[DetectedRegion], items: Sequence[RecognizedItem],
                  frame_width: float, frame_height: float,
                  config: Optional[Overlay] = None) -> List[OverlayResult]:
    config = config or Overlay()
    band = fallback_bbox(frame_width, frame_height, config)
    results: List[OverlayResult] = []

    if regions and items:
        ordered = spatial_sort(regions, config.row_tolerance)
        for index, item in enumerate(items):
            if index < len(ordered) and not item.is_error:
                results.append(_result_for(item, ordered[index].bbox, is_fallback=False))
            else:
                results.append(_result_for(item, band, is_fallback=True))
    else:
        results = [_result_for(item, band, is_fallback=True) for item in items]

    # a lone result is flagged for subtitle placement, its box is kept
    if len(results) == 1:
        results[0].is_fallback = True

    return results
