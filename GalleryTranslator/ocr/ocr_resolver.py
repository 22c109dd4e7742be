from __future__ import annotations

import asyncio
from typing import List, Optional

from GalleryTranslator.ocr.merge import fallback_bbox, merge_regions
from GalleryTranslator.ocr.models import (
    BoundingBox,
    OverlayResult,
    RecognitionOracle,
    RecognizedItem,
    TranslationSink,
)
from GalleryTranslator.ocr.region_detector import RegionDetector
from GalleryTranslator.util.config.configuration import MANUAL_PLACEMENT_OVER, Config, get_config
from GalleryTranslator.util.logging_config import logger as default_logger
from GalleryTranslator.util.shared.image_utils import Raster, crop_on_white, encode_jpeg, flatten_on_white, frame_size
from GalleryTranslator.viewport.transforms import screen_rect_to_image
from GalleryTranslator.viewport.view_state import ViewState

SCANNING_TEXT = "Scanning..."
TRANSLATING_TEXT = "Translating..."


class OCRResolver:
    """
    Turns a user selection (manual mode) or the whole frame (auto mode) into overlay
    results.

    Every result that starts out ``loading`` is completed before the coroutine
    returns, whether the model answered, failed or the frame could not be read.
    """

    def __init__(
        self,
        oracle: RecognitionOracle,
        detector: Optional[RegionDetector] = None,
        config: Optional[Config] = None,
        cache_sink: Optional[TranslationSink] = None,
        logger=None,
    ):
        self.oracle = oracle
        self.config = config or get_config()
        self.detector = detector or RegionDetector(self.config.detector)
        self.cache_sink = cache_sink
        self.logger = logger or default_logger

    def _target_language(self, target_language: Optional[str]) -> str:
        return target_language or self.config.general.target_language

    def _manual_bbox(self, rect: BoundingBox) -> BoundingBox:
        overlay = self.config.overlay
        if overlay.manual_placement == MANUAL_PLACEMENT_OVER:
            return rect
        return BoundingBox(x=rect.x, y=rect.bottom + overlay.manual_gap, w=rect.w, h=overlay.manual_result_height)

    async def resolve_selection(
        self,
        selection: BoundingBox,
        frame: Raster,
        state: ViewState,
        results: List[OverlayResult],
        target_language: Optional[str] = None,
        file_key: Optional[str] = None,
    ) -> OverlayResult:
        """
        Manual mode: OCR and translate one screen-space selection.

        A loading placeholder is appended to ``results`` right away and updated in
        place once the model answers. Earlier entries are never touched.
        """
        img_x, img_y, img_w, img_h = screen_rect_to_image(selection.x, selection.y, selection.w, selection.h, state)
        rect = BoundingBox(x=img_x, y=img_y, w=img_w, h=img_h)

        result = OverlayResult(
            text=SCANNING_TEXT,
            translation=TRANSLATING_TEXT,
            bbox=self._manual_bbox(rect),
            visible=True,
            loading=True,
        )
        results.append(result)

        try:
            if img_w <= 0 or img_h <= 0:
                self.logger.warning(f"Ignoring empty selection {selection} (image rect {rect})")
                result.text = "Error"
                result.translation = "Error: selection is empty"
                result.is_error = True
                return result

            crop = crop_on_white(frame, img_x, img_y, img_w, img_h)
            image_bytes = encode_jpeg(crop, quality=self.config.overlay.selection_jpeg_quality)

            self.logger.debug(f"Manual OCR for image rect {rect}, sending to recognition model")
            item = await asyncio.to_thread(self.oracle.recognize, image_bytes, self._target_language(target_language))

            result.text = item.original_text
            result.translation = item.translated_text
            result.is_error = item.is_error
            if item.is_error:
                self.logger.warning(f"Recognition failed for selection: {item.error}")
            else:
                self._report(file_key, result)
        except Exception as e:
            self.logger.exception(f"Manual OCR failed: {e}")
            result.translation = f"Error: {e}"
            result.is_error = True
        finally:
            result.loading = False

        return result

    async def resolve_frame(
        self,
        frame: Raster,
        target_language: Optional[str] = None,
        results: Optional[List[OverlayResult]] = None,
        file_key: Optional[str] = None,
    ) -> List[OverlayResult]:
        """
        Auto mode: detect regions and recognise the whole frame concurrently, then merge.

        If ``results`` is given its contents are replaced: first by a loading
        placeholder, then by the merged results.
        """
        width, height = frame_size(frame)
        placeholder = OverlayResult(
            text=SCANNING_TEXT,
            translation=TRANSLATING_TEXT,
            bbox=fallback_bbox(width, height, self.config.overlay),
            visible=True,
            loading=True,
            is_fallback=True,
        )
        if results is not None:
            results[:] = [placeholder]

        final: List[OverlayResult] = []
        try:
            flat = flatten_on_white(frame)
            image_bytes = encode_jpeg(flat, quality=self.config.overlay.frame_jpeg_quality)

            self.logger.info("Starting hybrid OCR...")
            regions, items = await asyncio.gather(
                asyncio.to_thread(self.detector.detect, flat),
                asyncio.to_thread(self.oracle.recognize_many, image_bytes, self._target_language(target_language)),
                return_exceptions=True,
            )

            if isinstance(regions, Exception):
                self.logger.error(f"Region detection failed: {regions}")
                regions = []
            if isinstance(items, Exception):
                self.logger.error(f"Recognition failed: {items}")
                items = [RecognizedItem.failure(f"Error: {items}")]

            self.logger.info(f"Merge step: zones found: {len(regions)}, recognized items: {len(items)}")
            final = merge_regions(regions, items, width, height, self.config.overlay)

            for result in final:
                if not result.is_error:
                    self._report(file_key, result)
        except Exception as e:
            self.logger.exception(f"Auto OCR failed: {e}")
            placeholder.text = "Error"
            placeholder.is_error = True
            placeholder.translation = f"Error: {e}"
            final = [placeholder]
        finally:
            placeholder.loading = False
            if results is not None:
                results[:] = final

        self.logger.info(f"Final results generated: {len(final)}")
        return final

    def _report(self, file_key: Optional[str], result: OverlayResult):
        if not file_key or self.cache_sink is None:
            return
        try:
            self.cache_sink(file_key, result.bbox, result.text, result.translation)
        except Exception as e:
            self.logger.warning(f"Failed to cache translation for {file_key}: {e}")
