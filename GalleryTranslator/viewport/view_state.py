from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple


class ViewMode(str, Enum):
    """
    Layout strategies controlling how media is scaled and positioned before
    rotation, zoom and pan are applied.
    """

    ORIGINAL = "original"
    FIT_WIDTH = "fit-width"
    FIT_HEIGHT = "fit-height"
    READER = "reader"
    LANDSCAPE = "landscape"

    @classmethod
    def parse(cls, value) -> "ViewMode":
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        aliases = {
            "fit-h": cls.FIT_WIDTH,
            "fit_width": cls.FIT_WIDTH,
            "fit-v": cls.FIT_HEIGHT,
            "fit_height": cls.FIT_HEIGHT,
        }
        if key in aliases:
            return aliases[key]
        return cls(key)


class Edge(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class ViewState:
    """
    Snapshot of everything that decides where media is drawn in the window.

    Produced by the display layer once per frame; the geometry functions only read it.
    """

    media_width: float
    media_height: float
    window_width: float
    window_height: float
    view_mode: ViewMode = ViewMode.FIT_WIDTH
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    rotation: int = 0
    scroll_offset: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "view_mode", ViewMode.parse(self.view_mode))

    @property
    def has_media(self) -> bool:
        return bool(self.media_width) and bool(self.media_height)

    @property
    def normalized_rotation(self) -> int:
        return int(self.rotation) % 360

    @property
    def is_rotated_90(self) -> bool:
        return self.normalized_rotation % 180 != 0

    def with_changes(self, **changes) -> "ViewState":
        return replace(self, **changes)


@dataclass(frozen=True)
class DrawRect:
    """
    Where the unrotated media is drawn, after view mode and zoom.

    ``draw_width``/``draw_height`` are the unrotated extents; ``final_width`` and
    ``final_height`` are the on-screen extents once the quarter turn is applied.
    """

    offset_x: float
    offset_y: float
    draw_width: float
    draw_height: float
    rotated: bool

    @property
    def final_width(self) -> float:
        return self.draw_height if self.rotated else self.draw_width

    @property
    def final_height(self) -> float:
        return self.draw_width if self.rotated else self.draw_height

    @property
    def center(self) -> Tuple[float, float]:
        return (
            self.offset_x + self.final_width / 2,
            self.offset_y + self.final_height / 2,
        )

    @property
    def is_degenerate(self) -> bool:
        return not self.draw_width or not self.draw_height


def view_mode_scale(state: ViewState) -> float:
    """Pre-zoom scale factor that the view mode applies to the media."""
    rotated = state.is_rotated_90
    effective_width = state.media_height if rotated else state.media_width
    effective_height = state.media_width if rotated else state.media_height

    if state.view_mode in (ViewMode.FIT_WIDTH, ViewMode.READER):
        return state.window_width / effective_width
    if state.view_mode in (ViewMode.FIT_HEIGHT, ViewMode.LANDSCAPE):
        return state.window_height / effective_height
    return 1.0


def unzoomed_extents(state: ViewState) -> Tuple[float, float]:
    """Rotated on-screen (width, height) of the media at 1x zoom."""
    scale = view_mode_scale(state)
    draw_width = state.media_width * scale
    draw_height = state.media_height * scale
    if state.is_rotated_90:
        return draw_height, draw_width
    return draw_width, draw_height


def compute_draw_rect(state: ViewState) -> Optional[DrawRect]:
    """
    Shared draw-rectangle computation for rendering and hit testing.

    Returns None when the media has no extent.
    """
    if not state.has_media:
        return None

    rotated = state.is_rotated_90
    scale = view_mode_scale(state)
    draw_width = state.media_width * scale
    draw_height = state.media_height * scale
    final_width, final_height = unzoomed_extents(state)

    centered_x = state.pan_x + (state.window_width - final_width) / 2
    centered_y = state.pan_y + (state.window_height - final_height) / 2

    if state.view_mode == ViewMode.READER:
        offset_x = centered_x
        offset_y = state.pan_y - state.scroll_offset
    elif state.view_mode == ViewMode.LANDSCAPE:
        offset_x = state.pan_x - state.scroll_offset
        offset_y = centered_y
    else:
        offset_x = centered_x
        offset_y = centered_y

    zoom = state.zoom
    draw_width *= zoom
    draw_height *= zoom

    if zoom != 1:
        center_x = state.window_width / 2
        center_y = state.window_height / 2
        offset_x = center_x - (center_x - offset_x) * zoom
        offset_y = center_y - (center_y - offset_y) * zoom

    return DrawRect(
        offset_x=offset_x,
        offset_y=offset_y,
        draw_width=draw_width,
        draw_height=draw_height,
        rotated=rotated,
    )


_QUARTER_TURNS = {
    0: (1.0, 0.0),
    90: (0.0, 1.0),
    180: (-1.0, 0.0),
    270: (0.0, -1.0),
}


def rotation_terms(degrees: float) -> Tuple[float, float]:
    """(cos, sin) of an angle, exact for quarter turns."""
    normalized = degrees % 360
    if normalized in _QUARTER_TURNS:
        return _QUARTER_TURNS[normalized]
    radians = math.radians(normalized)
    return math.cos(radians), math.sin(radians)


def rotate_point(x: float, y: float, degrees: float) -> Tuple[float, float]:
    cos_a, sin_a = rotation_terms(degrees)
    return x * cos_a - y * sin_a, x * sin_a + y * cos_a
