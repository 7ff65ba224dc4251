"""Tests for the DD/MM/YYYY date helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from servicedesk.utils.dates import (
    InvalidDateFormat,
    end_of_day,
    format_date_br,
    format_iso_as_br,
    parse_calendar_date,
    parse_input_date,
    start_of_day,
)


@pytest.mark.parametrize("value", ["15/03/2024", "2024-03-15", " 15/03/2024 "])
def test_parse_input_date_stores_noon_utc(value):
    parsed = parse_input_date(value)
    assert parsed == datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["15-03-2024", "2024/03/15", "1/3/2024", "ontem", ""])
def test_parse_rejects_unsupported_shapes(value):
    with pytest.raises(InvalidDateFormat):
        parse_calendar_date(value)


@pytest.mark.parametrize("value", ["31/02/2024", "2023-02-29", "00/01/2024", "10/13/2024"])
def test_parse_rejects_impossible_dates(value):
    with pytest.raises(InvalidDateFormat):
        parse_calendar_date(value)


def test_leap_day_is_accepted():
    assert parse_calendar_date("29/02/2024") == date(2024, 2, 29)


def test_format_keeps_calendar_day_across_offsets():
    stored = parse_input_date("01/01/2025")
    assert format_date_br(stored) == "01/01/2025"
    # Same instant seen from UTC-3 and UTC+9 still renders the stored day.
    for hours in (-3, 9):
        shifted = stored.astimezone(timezone(timedelta(hours=hours)))
        assert format_date_br(shifted) == "01/01/2025"


def test_format_accepts_naive_and_iso_strings():
    assert format_date_br(datetime(2024, 3, 15, 12, 0)) == "15/03/2024"
    assert format_date_br("2024-03-15T12:00:00Z") == "15/03/2024"
    assert format_date_br(date(2024, 12, 5)) == "05/12/2024"


@pytest.mark.parametrize("value", [None, "", "not a date", 42])
def test_format_returns_none_when_not_renderable(value):
    assert format_date_br(value) is None


def test_format_iso_as_br():
    assert format_iso_as_br("2024-03-01") == "01/03/2024"
    assert format_iso_as_br(None) == ""


def test_day_bounds_are_utc():
    day = date(2024, 3, 15)
    assert start_of_day(day) == datetime(2024, 3, 15, tzinfo=timezone.utc)
    assert end_of_day(day).hour == 23
    assert end_of_day(day).tzinfo == timezone.utc
