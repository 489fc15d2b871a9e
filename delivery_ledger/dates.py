"""
Canonical calendar-date handling for delivery service dates.

The `service_date` column is a DATE. Values arrive from date pickers, CLI
options, or the database driver, sometimes with a trailing time component.
Everything here works on the string itself: parsing through `datetime` would
reinterpret the value in the process's local timezone (or UTC) and can shift
the calendar day near midnight.

Usage:
    from delivery_ledger.dates import format_service_date, normalize_service_date

    normalize_service_date("2024-03-10T00:00:00Z")  # "2024-03-10"
    format_service_date("2024-01-15")                # "15 de enero de 2024"
"""

from __future__ import annotations

import calendar
import re
from typing import Tuple

from delivery_ledger.errors import InvalidDateFormat

CANONICAL_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)

MONTH_NAMES = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)
SHORT_MONTH_NAMES = (
    "ene",
    "feb",
    "mar",
    "abr",
    "may",
    "jun",
    "jul",
    "ago",
    "sep",
    "oct",
    "nov",
    "dic",
)


def normalize_service_date(value: str) -> str:
    """
    Reduce a date-like string to its canonical `YYYY-MM-DD` form.

    Surrounding whitespace is trimmed, then anything from the first `T` (or,
    failing that, the first space) onwards is dropped. Month and day ranges
    are not checked; see `is_calendar_date`.

    Raises
    ------
    InvalidDateFormat
        If the remainder is not exactly `YYYY-MM-DD`. The original input is
        kept on the exception.
    """
    if not isinstance(value, str):
        raise InvalidDateFormat(value)

    candidate = value.strip()
    if "T" in candidate:
        candidate = candidate.split("T", 1)[0]
    elif " " in candidate:
        candidate = candidate.split(" ", 1)[0]

    if not CANONICAL_DATE_RE.fullmatch(candidate):
        raise InvalidDateFormat(value)
    return candidate


def split_service_date(value: str) -> Tuple[int, int, int]:
    """Return `(year, month, day)` as integers from a date-like string."""
    year, month, day = normalize_service_date(value).split("-")
    return int(year), int(month), int(day)


def is_calendar_date(value: str) -> bool:
    """Whether a canonical date names a real calendar day (rejects 2024-02-30)."""
    year, month, day = split_service_date(value)
    if not 1 <= month <= 12 or year < 1:
        return False
    return 1 <= day <= calendar.monthrange(year, month)[1]


def format_service_date(value: str, short: bool = False) -> str:
    """
    Render a service date as `"{day} de {month} de {year}"` in Spanish.

    `short=True` uses three-letter month abbreviations, as in the compact
    listing. The day is not zero-padded.
    """
    year, month, day = split_service_date(value)
    if not 1 <= month <= 12:
        raise InvalidDateFormat(value)
    names = SHORT_MONTH_NAMES if short else MONTH_NAMES
    return f"{day} de {names[month - 1]} de {year}"


__all__ = [
    "CANONICAL_DATE_RE",
    "MONTH_NAMES",
    "SHORT_MONTH_NAMES",
    "normalize_service_date",
    "split_service_date",
    "is_calendar_date",
    "format_service_date",
]
