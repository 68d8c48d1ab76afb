"""Partition merging and the operations exposed to callers.

``get_totals``, ``get_sales_by_year`` and ``get_filtered_table`` each rescan
every partition directory from scratch; nothing is cached between calls.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import reduce
from typing import Any

from sales_rollup.config import FilterValidationError, Settings, load_settings
from sales_rollup.models import DirectoryTotals, SheetStatus, TableResult, TableRow
from sales_rollup.pipeline import reduce_directory_rows, reduce_directory_totals, scan_directory

MONTH_NAMES: tuple[str, ...] = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

_INTEGER_RE = re.compile(r"^\s*\d+\s*$")

# ── Boundary validation ──────────────────────────────────────────


def parse_year(value: Any) -> int:
    """Validate a year filter given as an int or a string of digits."""
    if isinstance(value, bool):
        raise FilterValidationError(f"Year must be an integer, got {value!r}")
    if isinstance(value, int):
        year = value
    elif isinstance(value, str) and _INTEGER_RE.match(value):
        year = int(value)
    else:
        raise FilterValidationError(f"Year must be an integer, got {value!r}")
    if not 1 <= year <= 9999:
        raise FilterValidationError(f"Year out of range: {year}")
    return year


def parse_month(value: Any) -> int:
    """Validate a month filter: 1-12, or a month name in any letter case."""
    if isinstance(value, bool):
        raise FilterValidationError(f"Invalid month: {value!r}")
    if isinstance(value, int):
        month = value
    elif isinstance(value, str) and _INTEGER_RE.match(value):
        month = int(value)
    elif isinstance(value, str) and value.strip().lower() in MONTH_NAMES:
        return MONTH_NAMES.index(value.strip().lower()) + 1
    else:
        raise FilterValidationError(
            f"Invalid month: {value!r}. Use 1-12 or a month name like 'June'"
        )
    if not 1 <= month <= 12:
        raise FilterValidationError(f"Month out of range: {month}")
    return month


# ── Partition merging ────────────────────────────────────────────


def merge_totals(results: Iterable[DirectoryTotals]) -> DirectoryTotals:
    """Sum totals field by field; the order of *results* does not matter."""
    return reduce(DirectoryTotals.merge, results, DirectoryTotals())


def merge_rows(results: Iterable[list[TableRow]]) -> list[TableRow]:
    rows: list[TableRow] = []
    for partition_rows in results:
        rows.extend(partition_rows)
    return rows


def collect_totals(settings: Settings | None = None) -> DirectoryTotals:
    settings = settings or load_settings()
    return merge_totals(reduce_directory_totals(path) for path in settings.partition_dirs())


# ── Operations ───────────────────────────────────────────────────


def get_totals(settings: Settings | None = None) -> dict[str, float | int]:
    """``{totalUsers, totalOrders, totalSales}`` across all partitions."""
    return collect_totals(settings).summary()


def get_sales_by_year(settings: Settings | None = None) -> dict[int, float | int]:
    """Quantity per calendar year across all partitions, ordered by year."""
    by_year = collect_totals(settings).sales_by_year
    return {year: by_year[year] for year in sorted(by_year)}


def get_filtered_table(
    year: Any, month: Any, settings: Settings | None = None
) -> TableResult:
    """Rows from every partition whose date columns fall in *year*/*month*.

    Raises
    ------
    FilterValidationError
        If *year* or *month* is malformed; no file is read in that case.
    """
    year = parse_year(year)
    month = parse_month(month)
    settings = settings or load_settings()
    rows = merge_rows(
        reduce_directory_rows(path, year, month) for path in settings.partition_dirs()
    )
    return TableResult(year=year, month=month, rows=rows)


def scan_partitions(settings: Settings | None = None) -> list[SheetStatus]:
    settings = settings or load_settings()
    statuses: list[SheetStatus] = []
    for name in settings.partitions:
        statuses.extend(scan_directory(settings.partition_dir(name), name))
    return statuses
