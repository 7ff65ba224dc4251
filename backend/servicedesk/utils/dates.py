"""
Date helpers for the Brazilian ``DD/MM/YYYY`` wire format.

Opening and closing dates are calendar dates. They are stored as the instant
12:00:00 UTC of that day so that rendering in any timezone between UTC-12 and
UTC+11 still shows the same day, and they are always rendered from UTC fields.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Optional, Union

BR_DATE_PATTERN = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

NOON = time(12, 0, 0, tzinfo=timezone.utc)

MONTH_NAMES = (
    "",
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)


class InvalidDateFormat(ValueError):
    """Raised when an input date is neither ``DD/MM/YYYY`` nor ``YYYY-MM-DD``."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def noon_utc(day: date) -> datetime:
    """Return the instant that represents ``day`` in storage."""
    return datetime.combine(day, NOON)


def is_supported_date_string(value: str) -> bool:
    return bool(BR_DATE_PATTERN.match(value) or ISO_DATE_PATTERN.match(value))


def parse_calendar_date(value: str) -> date:
    """
    Parse ``DD/MM/YYYY`` or ``YYYY-MM-DD`` into a calendar date.

    Raises:
        InvalidDateFormat: for any other shape or an impossible date.
    """
    text = value.strip()
    match = BR_DATE_PATTERN.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
    else:
        match = ISO_DATE_PATTERN.match(text)
        if not match:
            raise InvalidDateFormat(value)
        year, month, day = (int(part) for part in match.groups())

    try:
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidDateFormat(value) from exc


def parse_input_date(value: str) -> datetime:
    """Normalise an input date string to its noon-UTC storage instant."""
    return noon_utc(parse_calendar_date(value))


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite drops the offset) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_date_br(value: Union[datetime, date, str, None]) -> Optional[str]:
    """Render a stored instant as ``DD/MM/YYYY``; ``None`` when not renderable."""
    if value is None or value == "":
        return None

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None

    if isinstance(value, datetime):
        value = as_utc(value).date()
    elif not isinstance(value, date):
        return None

    return f"{value.day:02d}/{value.month:02d}/{value.year:04d}"


def format_iso_as_br(value: Optional[str]) -> str:
    """Turn ``YYYY-MM-DD`` into ``DD/MM/YYYY`` for report summaries."""
    if not value:
        return ""
    try:
        year, month, day = value.split("-")
    except ValueError:
        return value
    return f"{day}/{month}/{year}"


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


__all__ = [
    "InvalidDateFormat",
    "MONTH_NAMES",
    "as_utc",
    "end_of_day",
    "format_date_br",
    "format_iso_as_br",
    "is_supported_date_string",
    "noon_utc",
    "parse_calendar_date",
    "parse_input_date",
    "start_of_day",
    "utc_now",
]
