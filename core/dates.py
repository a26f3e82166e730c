"""Date coercion for the index (first) column of an uploaded sheet.

`format_date` never raises: anything it cannot interpret as a date comes back
as the plain text of the raw value.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from numbers import Number
from typing import Optional

import numpy as np
import pandas as pd

from core.settings import (
    SERIAL_DATE_LOWER_BOUND,
    SERIAL_DATE_UPPER_BOUND,
    SERIAL_EPOCH_OFFSET_DAYS,
    DateFormatPolicy,
)

SECONDS_PER_DAY = 86400

_DEFAULT_POLICY = DateFormatPolicy()


def stringify_cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def is_midnight(ts: pd.Timestamp) -> bool:
    return ts.hour == 0 and ts.minute == 0 and ts.second == 0


def format_timestamp(ts: pd.Timestamp, policy: Optional[DateFormatPolicy] = None) -> str:
    policy = policy or _DEFAULT_POLICY
    fmt = policy.date_format if is_midnight(ts) else policy.datetime_format
    return ts.strftime(fmt)


def is_serial_candidate(value: object) -> bool:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, Number):
        return False
    try:
        v = float(value)  # type: ignore[arg-type]
    except Exception:
        return False
    return SERIAL_DATE_LOWER_BOUND < v < SERIAL_DATE_UPPER_BOUND


def serial_to_timestamp(value: float) -> Optional[pd.Timestamp]:
    """Convert a spreadsheet serial day number to a timestamp (None if invalid)."""
    seconds = (float(value) - SERIAL_EPOCH_OFFSET_DAYS) * SECONDS_PER_DAY
    ts = pd.to_datetime(seconds, unit="s", errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.round("s")


def parse_date_text(text: str) -> Optional[pd.Timestamp]:
    s = text.strip()
    if not s:
        return None
    ts = pd.to_datetime(s, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return pd.Timestamp(ts)


def _as_timestamp(value: object) -> Optional[pd.Timestamp]:
    if isinstance(value, (datetime, date, np.datetime64)):
        ts = pd.Timestamp(value)
        return None if pd.isna(ts) else ts
    if is_serial_candidate(value):
        ts = serial_to_timestamp(float(value))  # type: ignore[arg-type]
        if ts is not None:
            return ts
    if isinstance(value, str):
        return parse_date_text(value)
    return None


def format_date(value: object, policy: Optional[DateFormatPolicy] = None) -> str:
    try:
        ts = _as_timestamp(value)
        if ts is not None:
            return format_timestamp(ts, policy)
    except Exception:
        pass
    return stringify_cell(value)
