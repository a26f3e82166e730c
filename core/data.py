from __future__ import annotations

import csv
import io
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from core.dates import format_date, stringify_cell
from core.errors import EmptyFile, IngestionError, NoDataRows, UnknownIngestionFailure, UnsupportedFormat
from core.settings import ACCEPTED_EXTENSIONS, PLACEHOLDER_HEADER_PREFIX, DateFormatPolicy


logger = logging.getLogger(__name__)

Cell = object
Record = Dict[str, Cell]

CSV_ENCODINGS = ("utf-8-sig", "cp1254", "latin-1")
CSV_DELIMITERS = ",;\t|"

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?")


@dataclass(frozen=True)
class Dataset:
    headers: Tuple[str, ...]
    records: Tuple[Record, ...] = field(default_factory=tuple)

    @property
    def row_count(self) -> int:
        return len(self.records)

    @property
    def index_header(self) -> Optional[str]:
        return self.headers[0] if self.headers else None

    @property
    def value_headers(self) -> Tuple[str, ...]:
        return self.headers[1:]


# ---------------- Format / grid extraction ----------------
def file_extension(filename: str) -> str:
    name = (filename or "").strip()
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def check_extension(filename: str) -> str:
    ext = file_extension(filename)
    if ext not in ACCEPTED_EXTENSIONS:
        raise UnsupportedFormat()
    return ext


def native_cell(value: object) -> Cell:
    """Turn pandas/numpy scalars into plain Python values; NaN/NaT become None."""
    if value is None:
        return None
    if isinstance(value, (np.bool_,)):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, (float, np.floating)):
        out = float(value)
        return None if math.isnan(out) else out
    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
    if value is pd.NaT or (isinstance(value, pd.Timestamp) and pd.isna(value)):
        return None
    if value is pd.NA:
        return None
    return value


def coerce_csv_cell(text: object) -> Cell:
    if not isinstance(text, str):
        return native_cell(text)
    s = text.strip()
    if not s:
        return ""
    if _INT_RE.fullmatch(s):
        return int(s)
    if _FLOAT_RE.fullmatch(s):
        return float(s)
    return text


def _decode_csv(content: bytes) -> str:
    for encoding in CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    return content.decode("utf-8", errors="replace")


def sniff_delimiter(text: str) -> str:
    sample = "\n".join(text.splitlines()[:20])
    if not sample.strip():
        return ","
    try:
        return csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS).delimiter
    except csv.Error:
        return ","


def _frame_to_grid(df: pd.DataFrame) -> List[List[Cell]]:
    return [[native_cell(v) for v in row] for row in df.itertuples(index=False, name=None)]


def read_csv_grid(content: bytes) -> List[List[Cell]]:
    text = _decode_csv(content)
    if not text.strip():
        return []
    sep = sniff_delimiter(text)
    # Ragged rows are allowed; size the frame to the widest line.
    width = max((len(r) for r in csv.reader(io.StringIO(text), delimiter=sep)), default=0)
    if width == 0:
        return []
    df = pd.read_csv(
        io.StringIO(text),
        sep=sep,
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
    )
    return [[coerce_csv_cell(v) for v in row] for row in df.itertuples(index=False, name=None)]


def read_excel_grid(content: bytes, ext: str) -> List[List[Cell]]:
    engine = "xlrd" if ext == "xls" else "openpyxl"
    df = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, engine=engine)
    # The frame starts at A1; tables anchored elsewhere start at their used range.
    return trim_to_used_range(_frame_to_grid(df))


def read_grid(filename: str, content: bytes) -> List[List[Cell]]:
    """Extract the first sheet of an uploaded file as a 2-D grid of raw cells."""
    ext = check_extension(filename)
    if ext == "csv":
        return read_csv_grid(content)
    return read_excel_grid(content, ext)


# ---------------- Normalization ----------------
def is_blank_cell(value: Cell) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


def is_blank_row(row: Sequence[Cell]) -> bool:
    return all(is_blank_cell(v) for v in row)


def _trim_trailing_blank_columns(grid: List[List[Cell]]) -> List[List[Cell]]:
    width = 0
    for row in grid:
        for idx in range(len(row) - 1, -1, -1):
            if not is_blank_cell(row[idx]):
                width = max(width, idx + 1)
                break
    return [list(row[:width]) for row in grid]


def trim_to_used_range(grid: Sequence[Sequence[Cell]]) -> List[List[Cell]]:
    """Drop leading all-blank rows and columns."""
    rows = [list(r) for r in grid]
    while rows and is_blank_row(rows[0]):
        rows.pop(0)
    offsets = [next((i for i, v in enumerate(r) if not is_blank_cell(v)), None) for r in rows]
    lead = min((o for o in offsets if o is not None), default=0)
    return [r[lead:] for r in rows]


def placeholder_header(index: int) -> str:
    return f"{PLACEHOLDER_HEADER_PREFIX} {index + 1}"


def build_headers(header_row: Sequence[Cell], width: int) -> List[str]:
    """Header labels for `width` columns; blanks get placeholders, duplicates a ` (n)` suffix."""
    headers: List[str] = []
    used = set()
    for idx in range(width):
        raw = header_row[idx] if idx < len(header_row) else None
        label = stringify_cell(native_cell(raw)).strip()
        if not label:
            label = placeholder_header(idx)
        if label in used:
            n = 2
            while f"{label} ({n})" in used:
                n += 1
            label = f"{label} ({n})"
        used.add(label)
        headers.append(label)
    return headers


def _value_cell(value: Cell, policy: Optional[DateFormatPolicy]) -> Cell:
    if isinstance(value, (datetime, date, time)):
        return format_date(value, policy)
    return value


def normalize_grid(grid: Sequence[Sequence[Cell]], policy: Optional[DateFormatPolicy] = None) -> Dataset:
    rows = [list(r) for r in (grid or [])]
    if len(rows) < 2:
        raise EmptyFile()

    rows = _trim_trailing_blank_columns(rows)
    header_row, body = rows[0], rows[1:]
    data_rows = [r for r in body if not is_blank_row(r)]
    if not data_rows:
        raise NoDataRows()

    width = max(len(r) for r in [header_row] + data_rows)
    headers = build_headers(header_row, width)

    records: List[Record] = []
    for row in data_rows:
        record: Record = {}
        for idx, name in enumerate(headers):
            value = row[idx] if idx < len(row) else None
            if idx == 0:
                record[name] = format_date(value, policy)
            else:
                record[name] = _value_cell(value, policy)
        records.append(record)

    return Dataset(headers=tuple(headers), records=tuple(records))


def load_dataset(filename: str, content: bytes, policy: Optional[DateFormatPolicy] = None) -> Dataset:
    """Upload boundary: bytes -> Dataset, or an IngestionError carrying user-facing text."""
    check_extension(filename)
    try:
        grid = read_grid(filename, content)
        dataset = normalize_grid(grid, policy)
    except IngestionError as exc:
        logger.warning("rejected upload %s: %s", filename, type(exc).__name__)
        raise
    except Exception as exc:
        logger.exception("failed to ingest %s", filename)
        raise UnknownIngestionFailure.wrap(exc) from exc
    logger.info("loaded %s: %d rows, %d columns", filename, dataset.row_count, len(dataset.headers))
    return dataset
