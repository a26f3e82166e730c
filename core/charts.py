from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

import altair as alt
import pandas as pd

from core.data import Dataset, Record
from core.dates import stringify_cell
from core.settings import DEFAULT_COLORS
from core.viewport import ViewportController

alt.data_transformers.disable_max_rows()

EMPTY_STATE_TEXT = "Gösterilecek veri yok"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


@dataclass(frozen=True)
class RenderPayload:
    """Everything a renderer needs to draw one chart; it never sees zoom/pan logic."""

    visible_records: List[Record]
    index_header: Optional[str]
    value_headers: Tuple[str, ...]
    hidden_series: FrozenSet[str]
    colors: Tuple[str, ...] = DEFAULT_COLORS
    start: int = 0
    end: int = 0
    length: int = 0
    generation: int = 0
    is_zoomed: bool = False
    caption: str = EMPTY_STATE_TEXT
    dragging: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.visible_records or self.index_header is None


def build_render_payload(
    dataset: Dataset,
    viewport: ViewportController,
    hidden: FrozenSet[str],
    colors: Sequence[str] = DEFAULT_COLORS,
) -> RenderPayload:
    state = viewport.snapshot()
    return RenderPayload(
        visible_records=viewport.visible_slice(dataset.records),
        index_header=dataset.index_header,
        value_headers=dataset.value_headers,
        hidden_series=frozenset(hidden),
        colors=tuple(colors) or DEFAULT_COLORS,
        start=state.range.start,
        end=state.range.end,
        length=state.length,
        generation=state.generation,
        is_zoomed=state.is_zoomed,
        caption=viewport.caption(),
        dragging=state.dragging,
    )


def format_number_tr(value: object) -> str:
    """Turkish number text: '.' groups thousands, ',' separates up to 3 decimals."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "" if value is None else str(value)
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return str(value)
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def _as_number(value: object) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except Exception:
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def signal_color(colors: Sequence[str], signal_index: int) -> str:
    return colors[(signal_index + 1) % len(colors)]


def build_line_frame(payload: RenderPayload) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    main = payload.value_headers[0] if payload.value_headers else None
    for pos, rec in enumerate(payload.visible_records):
        y = _as_number(rec.get(main)) if main else None
        if y is None:
            continue
        rows.append(
            {
                "row": payload.start + pos,
                "label": rec.get(payload.index_header),
                "value": y,
                "series": main,
                "value_text": format_number_tr(rec.get(main)),
            }
        )
    return pd.DataFrame(rows, columns=["row", "label", "value", "series", "value_text"])


def build_signal_frame(payload: RenderPayload) -> pd.DataFrame:
    """Marker rows for every non-empty, non-zero signal cell, placed on the main series."""
    rows: List[Dict[str, Any]] = []
    main = payload.value_headers[0] if payload.value_headers else None
    for header in payload.value_headers[1:]:
        if header in payload.hidden_series:
            continue
        for pos, rec in enumerate(payload.visible_records):
            signal = rec.get(header)
            if signal is None or signal == "" or signal == 0:
                continue
            rows.append(
                {
                    "row": payload.start + pos,
                    "label": rec.get(payload.index_header),
                    "value": _as_number(rec.get(main)) if main else None,
                    "series": header,
                    "value_text": format_number_tr(signal),
                }
            )
    return pd.DataFrame(rows, columns=["row", "label", "value", "series", "value_text"])


def axis_labels(payload: RenderPayload) -> List[str]:
    """Index-column text for each visible record, in row order."""
    return [stringify_cell(rec.get(payload.index_header)) for rec in payload.visible_records]


def build_line_chart(payload: RenderPayload, height: int = 384) -> Optional[alt.LayerChart]:
    if payload.is_empty:
        return None

    colors = payload.colors or DEFAULT_COLORS
    main = payload.value_headers[0] if payload.value_headers else None
    # One x slot per record; repeated index labels must not share a tick.
    x = alt.X(
        "row:O",
        title=payload.index_header,
        scale=alt.Scale(domain=list(range(payload.start, payload.start + len(payload.visible_records)))),
        axis=alt.Axis(
            labelAngle=-45,
            labelFontSize=12,
            labelOverlap=True,
            labelExpr=f"{json.dumps(axis_labels(payload))}[datum.value - {payload.start}]",
        ),
    )
    tooltip = [
        alt.Tooltip("label:N", title=payload.index_header),
        alt.Tooltip("series:N", title="Seri"),
        alt.Tooltip("value_text:N", title="Değer"),
    ]

    line_df = build_line_frame(payload)
    line = (
        alt.Chart(line_df)
        .mark_line(interpolate="monotone", strokeWidth=2, color=colors[0])
        .encode(
            x=x,
            y=alt.Y("value:Q", title=None, axis=alt.Axis(gridDash=[3, 3])),
            opacity=alt.value(0 if main in payload.hidden_series else 1),
            tooltip=tooltip,
        )
    )

    layers = [line]
    signals = [h for h in payload.value_headers[1:] if h not in payload.hidden_series]
    signal_df = build_signal_frame(payload)
    if signals and not signal_df.empty:
        domain = signals
        palette = [signal_color(colors, payload.value_headers[1:].index(h)) for h in signals]
        points = (
            alt.Chart(signal_df)
            .mark_point(filled=True, size=120, stroke="white", strokeWidth=2, opacity=1)
            .encode(
                x=x,
                y=alt.Y("value:Q"),
                color=alt.Color("series:N", title=None, scale=alt.Scale(domain=domain, range=palette)),
                tooltip=tooltip,
            )
        )
        layers.append(points)

    return alt.layer(*layers).properties(height=height, width="container")
