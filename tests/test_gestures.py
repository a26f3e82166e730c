from core.gestures import GestureEvent, dispatch_gesture
from core.viewport import ViewportController, ViewportRange


def test_wheel_event_zooms():
    ctl = ViewportController(1000)
    r = dispatch_gesture(ctl, GestureEvent("wheel", x=500, width=1000, delta_y=-100))
    assert r == ViewportRange(51, 950)


def test_drag_sequence():
    ctl = ViewportController(1000)
    dispatch_gesture(ctl, GestureEvent("wheel", x=500, width=1000, delta_y=-100))
    dispatch_gesture(ctl, GestureEvent("mousedown", x=500))
    r = dispatch_gesture(ctl, GestureEvent("mousemove", x=450, width=1000))
    assert r == ViewportRange(96, 995)
    dispatch_gesture(ctl, GestureEvent("mouseup"))
    assert not ctl.dragging
    assert dispatch_gesture(ctl, GestureEvent("mousemove", x=0, width=1000)) == r


def test_mouseleave_ends_drag():
    ctl = ViewportController(100)
    dispatch_gesture(ctl, GestureEvent("mousedown", x=5))
    dispatch_gesture(ctl, GestureEvent("mouseleave"))
    assert not ctl.dragging


def test_non_primary_button_does_not_start_drag():
    ctl = ViewportController(100)
    dispatch_gesture(ctl, GestureEvent("mousedown", x=5, button=1))
    assert not ctl.dragging


def test_events_from_an_outdated_surface_are_dropped():
    ctl = ViewportController(1000)
    old_gen = ctl.generation
    ctl.on_dataset_replaced(200)
    r = dispatch_gesture(ctl, GestureEvent("wheel", x=100, width=1000, delta_y=-100, generation=old_gen))
    assert r == ViewportRange(0, 199)
    r = dispatch_gesture(ctl, GestureEvent("wheel", x=100, width=1000, delta_y=-100, generation=ctl.generation))
    assert r.span == 180


def test_stale_release_still_clears_drag():
    ctl = ViewportController(1000)
    old_gen = ctl.generation
    dispatch_gesture(ctl, GestureEvent("mousedown", x=5, generation=old_gen))
    ctl.generation += 1
    dispatch_gesture(ctl, GestureEvent("mouseup", generation=old_gen))
    assert not ctl.dragging


def test_unknown_event_kind_is_ignored():
    ctl = ViewportController(10)
    assert dispatch_gesture(ctl, GestureEvent("dblclick")) == ViewportRange(0, 9)
