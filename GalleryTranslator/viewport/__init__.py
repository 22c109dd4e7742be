"""
Viewport geometry: how media is laid out in the viewer window and how points move
between screen space and image space.
"""

from .edges import edge_position
from .transforms import image_to_screen, screen_rect_to_image, screen_to_image
from .view_state import DrawRect, Edge, ViewMode, ViewState, compute_draw_rect

__all__ = [
    "DrawRect",
    "Edge",
    "ViewMode",
    "ViewState",
    "compute_draw_rect",
    "edge_position",
    "image_to_screen",
    "screen_rect_to_image",
    "screen_to_image",
]
