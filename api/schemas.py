from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from core.settings import DATE_FORMAT_TR, DATETIME_FORMAT_TR, DEFAULT_COLORS, MIN_VISIBLE_SPAN, ZOOM_IN_FACTOR, ZOOM_OUT_FACTOR


class DateFormatModel(BaseModel):
    date_format: str = DATE_FORMAT_TR
    datetime_format: str = DATETIME_FORMAT_TR


class ViewerSettingsModel(BaseModel):
    zoom_out_factor: float = ZOOM_OUT_FACTOR
    zoom_in_factor: float = ZOOM_IN_FACTOR
    min_span: int = MIN_VISIBLE_SPAN
    date_format: DateFormatModel = Field(default_factory=DateFormatModel)
    colors: List[str] = Field(default_factory=lambda: list(DEFAULT_COLORS))
    chart_height: int = 384


class GestureModel(BaseModel):
    kind: Literal["wheel", "mousedown", "mousemove", "mouseup", "mouseleave"]
    x: float = 0.0
    width: float = 0.0
    delta_y: float = 0.0
    button: int = 0
    generation: Optional[int] = None


class ToggleSeriesModel(BaseModel):
    series: str


class SessionResponse(BaseModel):
    session: str


class PinResponse(BaseModel):
    id: str
