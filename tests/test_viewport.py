import random

import pytest

from core.settings import ViewerSettings
from core.viewport import ViewportController, ViewportRange, js_round


def zoomed_in_1000():
    ctl = ViewportController(1000)
    # Wheel convention: delta_y > 0 zooms out (x1.1), delta_y <= 0 zooms in (x0.9).
    ctl.zoom(500, 1000, -100)
    return ctl


def test_starts_at_full_range():
    ctl = ViewportController(100)
    assert ctl.range == ViewportRange(0, 99)
    assert ctl.range.span == 100
    assert not ctl.is_zoomed()


def test_js_round_matches_browser_rounding():
    assert js_round(2.5) == 3
    assert js_round(-2.5) == -2
    assert js_round(-2.6) == -3
    assert js_round(0.49) == 0


def test_zoom_in_from_full_keeps_900_records_around_pointer():
    ctl = zoomed_in_1000()
    assert ctl.range == ViewportRange(51, 950)
    assert ctl.range.span == 900
    assert ctl.is_zoomed()


@pytest.mark.parametrize("x,expected", [(0, ViewportRange(0, 899)), (1000, ViewportRange(100, 999))])
def test_zoom_anchors_at_edges(x, expected):
    ctl = ViewportController(1000)
    assert ctl.zoom(x, 1000, -1) == expected


def test_zoom_out_converges_to_full_range_and_stays():
    ctl = ViewportController(1000)
    for _ in range(5):
        ctl.zoom(300, 1000, -100)
    assert ctl.is_zoomed()
    for _ in range(50):
        ctl.zoom(700, 1000, 100)
    assert ctl.range == ViewportRange(0, 999)
    assert not ctl.is_zoomed()
    assert ctl.zoom(10, 1000, 100) == ViewportRange(0, 999)


def test_zoom_in_stops_at_minimum_span():
    ctl = ViewportController(1000)
    for _ in range(100):
        ctl.zoom(250, 1000, -100)
    assert ctl.range.span == 10


def test_small_datasets_cannot_zoom_below_their_length():
    ctl = ViewportController(5)
    assert ctl.zoom(100, 200, -100) == ViewportRange(0, 4)
    assert ctl.zoom(100, 200, 100) == ViewportRange(0, 4)
    assert not ctl.is_zoomed()


def test_custom_min_span_from_settings():
    ctl = ViewportController(100, settings=ViewerSettings(min_span=25))
    for _ in range(40):
        ctl.zoom(50, 100, -1)
    assert ctl.range.span == 25


def test_pan_moves_window_opposite_to_drag():
    ctl = zoomed_in_1000()
    ctl.begin_pan(500)
    assert ctl.dragging
    assert ctl.continue_pan(450, 1000) == ViewportRange(96, 995)
    # incremental: measured from the previous move, then clamped at the end
    assert ctl.continue_pan(400, 1000) == ViewportRange(100, 999)
    assert ctl.drag_anchor == 400


def test_pan_clamps_at_start_without_changing_span():
    ctl = zoomed_in_1000()
    ctl.begin_pan(500)
    assert ctl.continue_pan(600, 1000) == ViewportRange(0, 899)


def test_pan_requires_primary_button_press():
    ctl = zoomed_in_1000()
    before = ctl.range
    ctl.begin_pan(500, button=2)
    assert not ctl.dragging
    assert ctl.continue_pan(100, 1000) == before


def test_release_and_leave_both_end_drag():
    ctl = zoomed_in_1000()
    ctl.begin_pan(10)
    ctl.end_pan()
    assert not ctl.dragging and ctl.drag_anchor is None
    ctl.begin_pan(10)
    ctl.cancel_pan()
    assert not ctl.dragging and ctl.drag_anchor is None
    before = ctl.range
    assert ctl.continue_pan(900, 1000) == before


def test_degenerate_geometry_is_a_no_op():
    ctl = zoomed_in_1000()
    before = ctl.range
    assert ctl.zoom(10, 0, -100) == before
    assert ctl.zoom(float("nan"), 1000, -100) == before
    ctl.begin_pan(10)
    assert ctl.continue_pan(500, 0) == before


def test_reset_zoom():
    ctl = zoomed_in_1000()
    ctl.reset_zoom()
    assert ctl.range == ViewportRange(0, 999)
    assert not ctl.is_zoomed()


def test_dataset_replacement_resets_range_and_drag():
    ctl = zoomed_in_1000()
    gen = ctl.generation
    ctl.begin_pan(300)
    ctl.on_dataset_replaced(50)
    assert ctl.range == ViewportRange(0, 49)
    assert not ctl.dragging
    assert ctl.generation == gen + 1


def test_empty_dataset_is_inert():
    ctl = ViewportController(0)
    assert ctl.zoom(10, 100, -1) == ViewportRange(0, 0)
    ctl.begin_pan(5)
    assert not ctl.dragging
    assert not ctl.is_zoomed()
    assert ctl.visible_slice([]) == []
    assert ctl.caption() == "Gösterilecek veri yok"


def test_visible_slice_and_caption():
    ctl = zoomed_in_1000()
    visible = ctl.visible_slice(list(range(1000)))
    assert len(visible) == 900
    assert visible[0] == 51 and visible[-1] == 950
    assert ctl.caption() == "Görüntülenen: 52 - 951 / 1000 veri"


def test_snapshot_is_immutable_copy():
    ctl = zoomed_in_1000()
    snap = ctl.snapshot()
    ctl.reset_zoom()
    assert snap.range == ViewportRange(51, 950)
    assert snap.is_zoomed


@pytest.mark.parametrize("n", [1, 2, 9, 10, 11, 137, 1000])
def test_range_stays_in_bounds_under_random_gestures(n):
    rng = random.Random(n)
    ctl = ViewportController(n)
    width = 800
    for _ in range(400):
        op = rng.choice(["zoom", "pan", "reset", "release"])
        if op == "zoom":
            ctl.zoom(rng.uniform(0, width), width, rng.choice([-120, 120]))
        elif op == "pan":
            span_before = ctl.range.span
            ctl.begin_pan(rng.uniform(0, width))
            ctl.continue_pan(rng.uniform(-width, 2 * width), width)
            assert ctl.range.span == span_before
        elif op == "reset":
            ctl.reset_zoom()
            assert not ctl.is_zoomed()
        else:
            ctl.end_pan()
        r = ctl.range
        assert 0 <= r.start <= r.end <= n - 1
        assert min(10, n) <= r.span <= n
