"""
Screen <-> image coordinate mapping.

Both directions go through ``compute_draw_rect`` so that a box projected with
``image_to_screen`` lands exactly where ``screen_to_image`` would hit-test it, for
every view mode, quarter-turn rotation, zoom and pan/scroll combination.
"""

from __future__ import annotations

import math
from typing import Tuple

from GalleryTranslator.viewport.view_state import ViewState, compute_draw_rect, rotate_point


def round_half_up(value: float) -> int:
    """Nearest integer, ties going up (-0.5 rounds to 0)."""
    return int(math.floor(value + 0.5))


def screen_to_image(screen_x: float, screen_y: float, state: ViewState) -> Tuple[int, int]:
    """
    Map a window pixel to the source media pixel under it.

    Points outside the drawn media map outside ``[0, media_width] x [0, media_height]``;
    callers clamp if they need to.
    """
    rect = compute_draw_rect(state)
    if rect is None or rect.is_degenerate:
        return 0, 0

    cx, cy = rect.center
    unrotated_x, unrotated_y = rotate_point(screen_x - cx, screen_y - cy, -state.normalized_rotation)

    img_x = (unrotated_x / rect.draw_width) * state.media_width + state.media_width / 2
    img_y = (unrotated_y / rect.draw_height) * state.media_height + state.media_height / 2
    return round_half_up(img_x), round_half_up(img_y)


def image_to_screen(img_x: float, img_y: float, img_w: float, img_h: float,
                    state: ViewState) -> Tuple[int, int, int, int]:
    """
    Project an image-space point (and box extent) into the window.

    The extent is scaled but not rotated.
    """
    rect = compute_draw_rect(state)
    if rect is None:
        return 0, 0, 0, 0

    rel_x = (img_x - state.media_width / 2) / state.media_width * rect.draw_width
    rel_y = (img_y - state.media_height / 2) / state.media_height * rect.draw_height
    rel_w = img_w / state.media_width * rect.draw_width
    rel_h = img_h / state.media_height * rect.draw_height

    rotated_x, rotated_y = rotate_point(rel_x, rel_y, state.normalized_rotation)
    cx, cy = rect.center

    return (
        round_half_up(rotated_x + cx),
        round_half_up(rotated_y + cy),
        round_half_up(rel_w),
        round_half_up(rel_h),
    )


def screen_rect_to_image(x: float, y: float, w: float, h: float, state: ViewState) -> Tuple[int, int, int, int]:
    """
    Map a screen rectangle to the axis-aligned image rectangle spanned by its
    opposite corners.
    """
    x1, y1 = screen_to_image(x, y, state)
    x2, y2 = screen_to_image(x + w, y + h, state)
    return min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1)
