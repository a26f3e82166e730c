"""Zoom/pan window over a dataset's record sequence.

The controller owns an inclusive index range ``(start, end)`` and moves it in
response to wheel and drag gestures. Every mutating call returns the new
immutable :class:`ViewportRange`; callers redraw from that snapshot.

Span is measured in records (``end - start + 1``), so the full range
``(0, N - 1)`` has span ``N`` and every range stays inside ``[0, N - 1]``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

from core.settings import ViewerSettings

T = TypeVar("T")

PRIMARY_BUTTON = 0


def js_round(value: float) -> int:
    """Round half up (towards +inf), the way browser Math.round does."""
    return int(math.floor(value + 0.5))


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class ViewportRange:
    start: int
    end: int

    @property
    def span(self) -> int:
        return self.end - self.start + 1

    @classmethod
    def full(cls, length: int) -> "ViewportRange":
        return cls(0, max(0, length - 1))


@dataclass(frozen=True)
class ViewportState:
    range: ViewportRange
    length: int
    dragging: bool = False
    drag_anchor: Optional[float] = None
    generation: int = 0

    @property
    def is_zoomed(self) -> bool:
        return self.length > 0 and self.range != ViewportRange.full(self.length)


class ViewportController:
    def __init__(self, length: int = 0, settings: Optional[ViewerSettings] = None):
        self.settings = settings or ViewerSettings()
        self.length = 0
        self.range = ViewportRange.full(0)
        self.dragging = False
        self.drag_anchor: Optional[float] = None
        self.generation = 0
        self.attach(length)

    # ---------- dataset lifecycle ----------
    def attach(self, length: int) -> ViewportRange:
        """Bind to a (new) dataset of `length` records: full range, no drag in flight."""
        self.length = max(0, int(length))
        self.range = ViewportRange.full(self.length)
        self.dragging = False
        self.drag_anchor = None
        self.generation += 1
        return self.range

    on_dataset_replaced = attach

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def min_span(self) -> int:
        return min(self.settings.min_span, self.length)

    def _fit(self, start: int, span: int) -> ViewportRange:
        # Shift (never shrink) a window of `span` records into [0, length - 1].
        end = start + span - 1
        if start < 0:
            start = 0
            end = min(self.length, span) - 1
        if end > self.length - 1:
            end = self.length - 1
            start = max(0, end - span + 1)
        return ViewportRange(start, end)

    @staticmethod
    def _valid_geometry(pixel_x: float, width: float) -> bool:
        return math.isfinite(pixel_x) and math.isfinite(width) and width > 0

    # ---------- gestures ----------
    def zoom(self, pixel_x: float, width: float, delta_y: float) -> ViewportRange:
        """One wheel tick: positive delta zooms out, otherwise zoom in, anchored at the pointer."""
        if self.is_empty or not self._valid_geometry(pixel_x, width) or not math.isfinite(delta_y):
            return self.range

        span = self.range.span
        factor = self.settings.zoom_out_factor if delta_y > 0 else self.settings.zoom_in_factor
        new_span = _clamp(js_round(span * factor), self.min_span(), self.length)

        ratio = min(1.0, max(0.0, pixel_x / width))
        center = self.range.start + js_round((span - 1) * ratio)
        new_start = js_round(center - (new_span - 1) * ratio)

        self.range = self._fit(new_start, new_span)
        return self.range

    def begin_pan(self, pixel_x: float, button: int = PRIMARY_BUTTON) -> ViewportRange:
        if button != PRIMARY_BUTTON or self.is_empty or not math.isfinite(pixel_x):
            return self.range
        self.dragging = True
        self.drag_anchor = float(pixel_x)
        return self.range

    def continue_pan(self, pixel_x: float, width: float) -> ViewportRange:
        if not self.dragging or self.drag_anchor is None:
            return self.range
        if not self._valid_geometry(pixel_x, width):
            return self.range

        span = self.range.span
        shift = js_round((pixel_x - self.drag_anchor) / width * span)
        # Dragging right pulls earlier records into view.
        self.range = self._fit(self.range.start - shift, span)
        self.drag_anchor = float(pixel_x)
        return self.range

    def end_pan(self) -> ViewportRange:
        self.dragging = False
        self.drag_anchor = None
        return self.range

    cancel_pan = end_pan

    def reset_zoom(self) -> ViewportRange:
        self.range = ViewportRange.full(self.length)
        return self.range

    def is_zoomed(self) -> bool:
        return self.snapshot().is_zoomed

    # ---------- views ----------
    def snapshot(self) -> ViewportState:
        return ViewportState(
            range=self.range,
            length=self.length,
            dragging=self.dragging,
            drag_anchor=self.drag_anchor,
            generation=self.generation,
        )

    def visible_slice(self, records: Sequence[T]) -> List[T]:
        if self.is_empty:
            return []
        return list(records[self.range.start : self.range.end + 1])

    def caption(self) -> str:
        if self.is_empty:
            return "Gösterilecek veri yok"
        return f"Görüntülenen: {self.range.start + 1} - {self.range.end + 1} / {self.length} veri"
