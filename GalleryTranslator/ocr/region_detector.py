"""
Visual density region detector.

Instead of reading text this looks for "busy" areas: text, handwriting and unknown
scripts all have far more high-contrast neighbour transitions than the background
around them. The frame is downscaled, cut into square tiles, busy tiles are bridged
with a one-pass closing and grouped with a 4-connected flood fill. Each surviving
group becomes one image-space box.
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image

from GalleryTranslator.ocr.models import BoundingBox, DetectedRegion
from GalleryTranslator.util.config.configuration import Detector
from GalleryTranslator.util.logging_config import logger
from GalleryTranslator.util.shared.image_utils import (
    Raster,
    flatten_on_white,
    frame_size,
    rgba_bytes_to_array,
    to_rgba_array,
)


class RegionDetector:
    def __init__(self, config: Optional[Detector] = None):
        self.config = config or Detector()

    def detect(self, frame: Raster) -> List[DetectedRegion]:
        """
        Scan a frame for text-like regions.

        Never raises for bad input: unreadable or empty frames yield an empty list.
        """
        try:
            width, height = frame_size(frame)
            if width <= 0 or height <= 0:
                logger.warning(f"Region detector received an empty frame ({width}x{height})")
                return []
            # transparent pixels read as white
            pixels = to_rgba_array(flatten_on_white(frame))
        except (ValueError, TypeError, OSError) as e:
            logger.warning(f"Region detector could not read frame: {e}")
            return []

        return self._detect_array(pixels)

    def _detect_array(self, pixels: np.ndarray) -> List[DetectedRegion]:
        cfg = self.config
        height, width = pixels.shape[:2]

        small = self._downscale(pixels)
        if small is None:
            logger.debug(f"Frame {width}x{height} too small to scan at scale {cfg.processing_scale}")
            return []

        grid = self._busy_tiles(small)
        closed = close_tile_gaps(grid)

        regions = []
        for tile_x, tile_y, tile_w, tile_h in find_components(closed):
            if tile_w <= cfg.min_component_width or tile_h <= cfg.min_component_height:
                continue
            regions.append(DetectedRegion(bbox=self._tile_box_to_image(tile_x, tile_y, tile_w, tile_h, width, height)))

        logger.info(f"Visual density found {len(regions)} zones.")
        return regions

    def _downscale(self, pixels: np.ndarray) -> Optional[np.ndarray]:
        height, width = pixels.shape[:2]
        scale = self.config.processing_scale
        scaled_w = int(math.floor(width * scale))
        scaled_h = int(math.floor(height * scale))
        if scaled_w < 2 or scaled_h < 1:
            return None

        image = Image.fromarray(np.ascontiguousarray(pixels))
        if (scaled_w, scaled_h) != (width, height):
            image = image.resize((scaled_w, scaled_h), Image.Resampling.BILINEAR)
        return np.asarray(image, dtype=np.uint8)

    def _busy_tiles(self, small: np.ndarray) -> np.ndarray:
        cfg = self.config
        tile = cfg.tile_size
        height, width = small.shape[:2]
        cols = int(math.ceil(width / tile))
        rows = int(math.ceil(height / tile))

        luminance = small[:, :, :3].astype(np.float32).sum(axis=2) / 3.0
        # edges[y, x] compares pixel x with pixel x + 1
        edges = np.abs(luminance[:, 1:] - luminance[:, :-1]) > cfg.edge_threshold
        min_score = tile * tile * cfg.busy_ratio

        grid = np.zeros((rows, cols), dtype=bool)
        for ty in range(rows):
            y0 = ty * tile
            y1 = min(y0 + tile, height)
            for tx in range(cols):
                x0 = tx * tile
                x1 = min(x0 + tile, width)
                # every other row, pairs that stay inside the tile
                score = np.count_nonzero(edges[y0:y1:2, x0:x1 - 1])
                if score > min_score:
                    grid[ty, tx] = True
        return grid

    def _tile_box_to_image(self, tile_x: int, tile_y: int, tile_w: int, tile_h: int,
                           width: int, height: int) -> BoundingBox:
        factor = self.config.tile_size / self.config.processing_scale
        x0 = int(math.floor(tile_x * factor))
        y0 = int(math.floor(tile_y * factor))
        x1 = min(int(math.floor((tile_x + tile_w) * factor)), width)
        y1 = min(int(math.floor((tile_y + tile_h) * factor)), height)
        return BoundingBox(x=x0, y=y0, w=x1 - x0, h=y1 - y0)


def close_tile_gaps(grid: np.ndarray) -> np.ndarray:
    """
    Single-pass morphological closing: a tile flanked by busy tiles on both sides,
    horizontally or vertically, becomes busy. Neighbours are read from the input grid.
    """
    closed = grid.copy()
    closed[:, 1:-1] |= grid[:, :-2] & grid[:, 2:]
    closed[1:-1, :] |= grid[:-2, :] & grid[2:, :]
    return closed


def find_components(grid: np.ndarray) -> List[Tuple[int, int, int, int]]:
    """
    Tile-space bounding boxes ``(x, y, w, h)`` of the 4-connected busy components,
    seeded in row-major order.
    """
    rows, cols = grid.shape
    visited = np.zeros_like(grid, dtype=bool)
    components = []

    for y in range(rows):
        for x in range(cols):
            if grid[y, x] and not visited[y, x]:
                components.append(_flood_fill(x, y, grid, visited))
    return components


def _flood_fill(start_x: int, start_y: int, grid: np.ndarray, visited: np.ndarray) -> Tuple[int, int, int, int]:
    rows, cols = grid.shape
    min_x = max_x = start_x
    min_y = max_y = start_y
    stack = [(start_x, start_y)]
    visited[start_y, start_x] = True

    while stack:
        x, y = stack.pop()
        min_x = min(min_x, x)
        max_x = max(max_x, x)
        min_y = min(min_y, y)
        max_y = max(max_y, y)

        for nx, ny in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
            if 0 <= nx < cols and 0 <= ny < rows and grid[ny, nx] and not visited[ny, nx]:
                visited[ny, nx] = True
                stack.append((nx, ny))

    return min_x, min_y, max_x - min_x + 1, max_y - min_y + 1


def detect_text_regions(pixels: bytes, width: int, height: int,
                        config: Optional[Detector] = None) -> List[DetectedRegion]:
    """Run the detector over raw RGBA samples."""
    if width <= 0 or height <= 0:
        return []
    try:
        array = rgba_bytes_to_array(pixels, width, height)
    except ValueError as e:
        logger.warning(f"Region detector could not read buffer: {e}")
        return []
    return RegionDetector(config).detect(array)
