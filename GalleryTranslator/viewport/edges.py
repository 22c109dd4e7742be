from __future__ import annotations

from GalleryTranslator.viewport.view_state import Edge, ViewState, unzoomed_extents


def edge_position(edge, state: ViewState) -> float:
    """
    Pan offset that brings an edge of the media into view.

    Works at 1x logical scale; the caller re-applies zoom. Returns 0 when the media
    already fits on that axis.
    """
    if not state.has_media:
        return 0.0

    edge = Edge(edge)
    final_width, final_height = unzoomed_extents(state)

    if edge in (Edge.TOP, Edge.BOTTOM):
        overflow = final_height - state.window_height
    else:
        overflow = final_width - state.window_width

    if overflow <= 0:
        return 0.0

    sign = 1 if edge in (Edge.TOP, Edge.LEFT) else -1
    return sign * overflow / 2
