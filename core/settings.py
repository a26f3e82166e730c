from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple


ACCEPTED_EXTENSIONS = ("xlsx", "xls", "csv")

# Spreadsheet serial dates: day 25569 is 1970-01-01 in the 1900 date system
# (the phantom 1900-02-29 is already folded into the offset).
SERIAL_EPOCH_OFFSET_DAYS = 25569
SERIAL_DATE_LOWER_BOUND = 1
SERIAL_DATE_UPPER_BOUND = 47483

PLACEHOLDER_HEADER_PREFIX = "Sütun"

DATE_FORMAT_TR = "%d.%m.%Y"
DATETIME_FORMAT_TR = "%d.%m.%Y %H:%M"

DEFAULT_COLORS = (
    "#3B82F6",  # blue
    "#10B981",  # green
    "#8B5CF6",  # purple
    "#F59E0B",  # amber
    "#EF4444",  # red
    "#06B6D4",  # cyan
    "#EC4899",  # pink
    "#6366F1",  # indigo
)

ZOOM_OUT_FACTOR = 1.1
ZOOM_IN_FACTOR = 0.9
MIN_VISIBLE_SPAN = 10


@dataclass(frozen=True)
class DateFormatPolicy:
    date_format: str = DATE_FORMAT_TR
    datetime_format: str = DATETIME_FORMAT_TR


@dataclass(frozen=True)
class ViewerSettings:
    zoom_out_factor: float = ZOOM_OUT_FACTOR
    zoom_in_factor: float = ZOOM_IN_FACTOR
    min_span: int = MIN_VISIBLE_SPAN
    date_format: DateFormatPolicy = field(default_factory=DateFormatPolicy)
    colors: Tuple[str, ...] = DEFAULT_COLORS
    chart_height: int = 384


def _as_color_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return DEFAULT_COLORS
    out: List[str] = []
    for v in values:
        s = str(v).strip() if v is not None else ""
        if s:
            out.append(s)
    return tuple(out) or DEFAULT_COLORS


def _as_float(value: object, default: float) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except Exception:
        return default


def normalize_settings(raw: Optional[dict] = None) -> ViewerSettings:
    raw = raw or {}

    zoom_out = _as_float(raw.get("zoom_out_factor", ZOOM_OUT_FACTOR), ZOOM_OUT_FACTOR)
    if zoom_out <= 1.0:
        zoom_out = ZOOM_OUT_FACTOR
    zoom_in = _as_float(raw.get("zoom_in_factor", ZOOM_IN_FACTOR), ZOOM_IN_FACTOR)
    if not 0.0 < zoom_in < 1.0:
        zoom_in = ZOOM_IN_FACTOR

    min_span = raw.get("min_span", MIN_VISIBLE_SPAN)
    try:
        min_span = int(min_span)
    except Exception:
        min_span = MIN_VISIBLE_SPAN
    min_span = max(1, min(10_000, min_span))

    chart_height = raw.get("chart_height", 384)
    try:
        chart_height = int(chart_height)
    except Exception:
        chart_height = 384
    chart_height = max(120, min(2000, chart_height))

    d = raw.get("date_format") or {}
    date_format = DateFormatPolicy(
        date_format=str(d.get("date_format") or DATE_FORMAT_TR),
        datetime_format=str(d.get("datetime_format") or DATETIME_FORMAT_TR),
    )

    return ViewerSettings(
        zoom_out_factor=zoom_out,
        zoom_in_factor=zoom_in,
        min_span=min_span,
        date_format=date_format,
        colors=_as_color_tuple(raw.get("colors")),
        chart_height=chart_height,
    )
