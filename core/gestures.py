from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Literal, Optional

from core.viewport import PRIMARY_BUTTON, ViewportController, ViewportRange


logger = logging.getLogger(__name__)

GestureKind = Literal["wheel", "mousedown", "mousemove", "mouseup", "mouseleave"]


@dataclass(frozen=True)
class GestureEvent:
    """A pointer/wheel event from a chart surface, in surface-local pixels.

    `generation` is the viewport generation the surface was rendered with; when
    it no longer matches the controller the event is dropped.
    """

    kind: GestureKind
    x: float = 0.0
    width: float = 0.0
    delta_y: float = 0.0
    button: int = PRIMARY_BUTTON
    generation: Optional[int] = None


def _on_wheel(ctl: ViewportController, ev: GestureEvent) -> ViewportRange:
    return ctl.zoom(ev.x, ev.width, ev.delta_y)


def _on_mousedown(ctl: ViewportController, ev: GestureEvent) -> ViewportRange:
    return ctl.begin_pan(ev.x, ev.button)


def _on_mousemove(ctl: ViewportController, ev: GestureEvent) -> ViewportRange:
    return ctl.continue_pan(ev.x, ev.width)


def _on_mouseup(ctl: ViewportController, ev: GestureEvent) -> ViewportRange:
    return ctl.end_pan()


def _on_mouseleave(ctl: ViewportController, ev: GestureEvent) -> ViewportRange:
    return ctl.cancel_pan()


HANDLERS: Dict[str, Callable[[ViewportController, GestureEvent], ViewportRange]] = {
    "wheel": _on_wheel,
    "mousedown": _on_mousedown,
    "mousemove": _on_mousemove,
    "mouseup": _on_mouseup,
    "mouseleave": _on_mouseleave,
}


def is_stale(ctl: ViewportController, ev: GestureEvent) -> bool:
    return ev.generation is not None and ev.generation != ctl.generation


def dispatch_gesture(ctl: ViewportController, ev: GestureEvent) -> ViewportRange:
    handler = HANDLERS.get(ev.kind)
    if handler is None:
        logger.debug("ignoring unknown gesture %r", ev.kind)
        return ctl.range
    if is_stale(ctl, ev):
        # Release events still apply so a replaced dataset never leaves a drag stuck on.
        if ev.kind in ("mouseup", "mouseleave"):
            return handler(ctl, ev)
        logger.debug("dropping stale %s (generation %s != %s)", ev.kind, ev.generation, ctl.generation)
        return ctl.range
    return handler(ctl, ev)
