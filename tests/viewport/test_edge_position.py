import pytest

from GalleryTranslator.viewport.edges import edge_position
from GalleryTranslator.viewport.view_state import Edge, ViewMode, ViewState


def _tall_page(**overrides) -> ViewState:
    values = dict(
        media_width=400,
        media_height=1200,
        window_width=800,
        window_height=600,
        view_mode=ViewMode.FIT_WIDTH,
    )
    values.update(overrides)
    return ViewState(**values)


def test_vertical_edges_of_overflowing_page():
    state = _tall_page()
    # fit-width scales to 800x2400, overflowing by 1800
    assert edge_position(Edge.TOP, state) == 900
    assert edge_position(Edge.BOTTOM, state) == -900


def test_axis_that_fits_snaps_to_zero():
    state = _tall_page()
    assert edge_position(Edge.LEFT, state) == 0
    assert edge_position(Edge.RIGHT, state) == 0


def test_rotation_swaps_the_overflowing_axis():
    state = _tall_page(view_mode=ViewMode.FIT_HEIGHT, rotation=90)
    # rotated extents are 1200x400 before scaling, fit-height makes them 1800x600
    assert edge_position(Edge.LEFT, state) == 500
    assert edge_position(Edge.RIGHT, state) == -500
    assert edge_position(Edge.TOP, state) == 0


def test_edge_position_ignores_zoom():
    assert edge_position(Edge.TOP, _tall_page(zoom=3.0)) == edge_position(Edge.TOP, _tall_page())


@pytest.mark.parametrize("edge", ["top", "bottom", "left", "right"])
def test_edge_position_without_media_is_zero(edge: str):
    assert edge_position(edge, _tall_page(media_width=0, media_height=0)) == 0
