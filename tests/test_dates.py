from datetime import date, datetime

import pandas as pd

import core.dates as dates
from core.dates import format_date, serial_to_timestamp
from core.settings import DateFormatPolicy


def test_datetime_at_midnight_formats_as_date():
    assert format_date(datetime(2024, 1, 5)) == "05.01.2024"
    assert format_date(date(2024, 12, 31)) == "31.12.2024"


def test_datetime_with_time_keeps_hours_and_minutes():
    assert format_date(datetime(2024, 1, 5, 14, 7)) == "05.01.2024 14:07"
    assert format_date(pd.Timestamp("2024-03-09 08:30")) == "09.03.2024 08:30"


def test_seconds_alone_break_the_midnight_rule():
    assert format_date(datetime(2024, 1, 5, 0, 0, 30)) == "05.01.2024 00:00"


def test_serial_date_becomes_calendar_text():
    assert format_date(45000) == "15.03.2023"
    assert format_date(45000.5) == "15.03.2023 12:00"


def test_serial_bounds_are_exclusive():
    assert format_date(1) == "1"
    assert format_date(47483) == "47483"
    assert format_date(50000.0) == "50000"
    assert format_date(1.5) != "1.5"


def test_serial_to_timestamp_uses_unix_offset():
    assert serial_to_timestamp(25569) == pd.Timestamp("1970-01-01")


def test_text_dates_are_parsed():
    assert format_date("2024-01-02") == "02.01.2024"
    assert format_date("2024-01-02 13:45") == "02.01.2024 13:45"


def test_unparseable_values_are_stringified():
    assert format_date("Pazartesi") == "Pazartesi"
    assert format_date(None) == ""
    assert format_date(True) == "True"
    assert format_date("") == ""


def test_injected_policy_controls_output():
    policy = DateFormatPolicy(date_format="%Y-%m-%d", datetime_format="%Y-%m-%d %H:%M")
    assert format_date(datetime(2024, 1, 5), policy) == "2024-01-05"
    assert format_date(datetime(2024, 1, 5, 9, 3), policy) == "2024-01-05 09:03"


def test_formatting_failure_falls_back_to_raw_text(monkeypatch):
    def boom(ts, policy=None):
        raise ValueError("bad format")

    monkeypatch.setattr(dates, "format_timestamp", boom)
    assert format_date("2024-01-02") == "2024-01-02"
