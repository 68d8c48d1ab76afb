"""Spreadsheet date conversion.

The aggregate conversion counts serials from 1899-12-30 and feeds the
per-year breakdown. The table conversion counts from 1899-12-31 and feeds
displayed rows, so the same serial lands one day later in a table.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timedelta
from typing import Any, NamedTuple

import pandas as pd
from dateutil import parser as dateutil_parser

AGGREGATE_EPOCH = date(1899, 12, 30)
TABLE_EPOCH = date(1899, 12, 31)

_NUMERIC_TEXT_RE = re.compile(r"^\s*[+-]?\d+(\.\d+)?\s*$")

# Two unrelated fallbacks: text that parses differently under each is
# missing its year or month.
_FALLBACK_DATES = (datetime(2000, 1, 1), datetime(2001, 2, 2))


class YearMonth(NamedTuple):
    year: int
    month: int


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _as_serial(value: Any) -> float | None:
    """Return *value* as a serial day count, or None when it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and _NUMERIC_TEXT_RE.match(value):
        return float(value)
    return None


def _from_serial(serial: float, epoch: date) -> date | None:
    if not math.isfinite(serial):
        return None
    try:
        return epoch + timedelta(days=math.floor(serial))
    except OverflowError:
        return None


def _names_year_and_month(text: str) -> bool:
    try:
        first, second = (
            dateutil_parser.parse(text, default=fallback) for fallback in _FALLBACK_DATES
        )
    except (ValueError, OverflowError):
        return False
    return (first.year, first.month) == (second.year, second.month)


def _parse_text(value: Any) -> date | None:
    """Parse date text; text lacking a year or month (``"13:30"``, ``"15 June"``) is None."""
    if isinstance(value, time):
        return None
    text = str(value).strip()
    if not text or not _names_year_and_month(text):
        return None
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def _as_calendar_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def aggregate_serial_to_date(serial: float) -> date | None:
    return _from_serial(serial, AGGREGATE_EPOCH)


def table_serial_to_date(serial: float) -> date | None:
    return _from_serial(serial, TABLE_EPOCH)


def aggregate_year_month(value: Any) -> YearMonth | None:
    """Resolve a cell to ``(year, month)`` for yearly aggregation.

    Numeric serials use the aggregate epoch, calendar values are taken as-is
    and anything else is parsed as text. Returns None when nothing resolves,
    including time-of-day values and text without a year.
    """
    if _is_missing(value):
        return None
    resolved = _as_calendar_date(value)
    if resolved is None:
        serial = _as_serial(value)
        resolved = aggregate_serial_to_date(serial) if serial is not None else _parse_text(value)
    if resolved is None:
        return None
    return YearMonth(resolved.year, resolved.month)


def table_date_value(value: Any) -> Any:
    """Convert a cell for table display.

    Numeric serials (table epoch) and calendar values become ``YYYY-MM-DD``
    strings; every other value is returned unchanged.
    """
    if _is_missing(value):
        return None
    resolved = _as_calendar_date(value)
    if resolved is None:
        serial = _as_serial(value)
        if serial is None:
            return value
        resolved = table_serial_to_date(serial)
        if resolved is None:
            return value
    return resolved.isoformat()


def table_year_month(value: Any) -> YearMonth | None:
    """Resolve the ``(year, month)`` a table cell is filtered on."""
    if _is_missing(value):
        return None
    resolved = _as_calendar_date(value)
    if resolved is None:
        serial = _as_serial(value)
        resolved = table_serial_to_date(serial) if serial is not None else _parse_text(value)
    if resolved is None:
        return None
    return YearMonth(resolved.year, resolved.month)
