"""Sheet aggregation, table projection and directory reduction — no shared state.

Every function here is a pure function of the files it reads: accumulators
are built per call and returned, never stored at module level.
"""

from __future__ import annotations

import math
from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import replace
from functools import reduce
from numbers import Real
from pathlib import Path
from typing import Any

import pandas as pd

from sales_rollup.dates import aggregate_year_month, table_date_value, table_year_month
from sales_rollup.io import list_spreadsheets, load_sheets
from sales_rollup.models import DirectoryTotals, SheetStatus, TableRow
from sales_rollup.schema import (
    BILLING_DATE,
    CUSTOMER_COLUMN_INDEX,
    NOT_FOUND,
    QUANTITY,
    ColumnDescriptor,
    ColumnRole,
    describe_columns,
    is_recognized_header,
    normalize_header,
    resolve_columns,
)
from sales_rollup.utils import get_logger

log = get_logger(__name__)

# ── Cell helpers ─────────────────────────────────────────────────


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _cell(values: Sequence[Any], index: int) -> Any:
    if index == NOT_FOUND or index >= len(values):
        return None
    value = values[index]
    return None if _is_missing(value) else value


def parse_quantity(value: Any) -> float | int:
    """Parse a quantity cell; anything unparsable counts as 0."""
    if _is_missing(value) or isinstance(value, bool):
        return 0
    if isinstance(value, Real):
        return value if math.isfinite(value) else 0
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return 0
    return parsed if math.isfinite(parsed) else 0


def _customer_key(value: Any) -> Hashable | None:
    if _is_missing(value):
        return None
    if isinstance(value, str):
        return value.strip() or None
    return value


# ── Sheet level ──────────────────────────────────────────────────


def sheet_header(sheet: pd.DataFrame) -> list[str] | None:
    """Return the normalized header of *sheet*, or None if it is not recognized."""
    if sheet.empty:
        return None
    header = normalize_header(sheet.iloc[0].tolist())
    if not is_recognized_header(header):
        return None
    return header


def _data_rows(sheet: pd.DataFrame) -> list[tuple[Any, ...]]:
    body = sheet.iloc[1:].dropna(how="all")
    return list(body.itertuples(index=False, name=None))


def _tally_sheet(
    header: Sequence[str], sheet: pd.DataFrame
) -> tuple[DirectoryTotals, set[Hashable]]:
    columns = resolve_columns(header, [BILLING_DATE, QUANTITY])
    customers: set[Hashable] = set()
    by_year: dict[int, float | int] = {}
    orders = 0
    sales: float | int = 0

    for values in _data_rows(sheet):
        orders += 1
        quantity = parse_quantity(_cell(values, columns[QUANTITY]))
        sales += quantity

        customer = _customer_key(_cell(values, CUSTOMER_COLUMN_INDEX))
        if customer is not None:
            customers.add(customer)

        period = aggregate_year_month(_cell(values, columns[BILLING_DATE]))
        if period is not None:
            by_year[period.year] = by_year.get(period.year, 0) + quantity

    totals = DirectoryTotals(
        total_users=len(customers),
        total_orders=orders,
        total_sales=sales,
        sales_by_year=by_year,
    )
    return totals, customers


def aggregate_sheet(sheet: pd.DataFrame) -> DirectoryTotals:
    """Totals for one sheet; an unrecognized sheet yields empty totals."""
    header = sheet_header(sheet)
    if header is None:
        return DirectoryTotals()
    totals, _customers = _tally_sheet(header, sheet)
    return totals


def _project_row(
    values: Sequence[Any],
    columns: Iterable[ColumnDescriptor],
    year: int | None,
    month: int | None,
) -> TableRow | None:
    row: TableRow = {}
    for column in columns:
        value = _cell(values, column.index)
        if column.role is ColumnRole.date:
            period = table_year_month(value)
            if period is not None:
                if year is not None and period.year != year:
                    return None
                if month is not None and period.month != month:
                    return None
            value = table_date_value(value)
        row[column.label] = value
    return row


def project_sheet(
    sheet: pd.DataFrame, year: int | None = None, month: int | None = None
) -> list[TableRow]:
    """Project the data rows of *sheet* into header-keyed rows.

    A row is dropped when any of its date columns resolves to a year or month
    that disagrees with an active filter.
    """
    header = sheet_header(sheet)
    if header is None:
        return []
    columns = describe_columns(header)
    rows: list[TableRow] = []
    for values in _data_rows(sheet):
        row = _project_row(values, columns, year, month)
        if row is not None:
            rows.append(row)
    return rows


# ── File level ───────────────────────────────────────────────────


def aggregate_workbook(sheets: Mapping[str, pd.DataFrame]) -> DirectoryTotals:
    """Fold every sheet of one file; customers are distinct across the whole file."""
    totals = DirectoryTotals()
    customers: set[Hashable] = set()
    for name, sheet in sheets.items():
        header = sheet_header(sheet)
        if header is None:
            log.debug("sheet_skipped", sheet=name)
            continue
        sheet_totals, sheet_customers = _tally_sheet(header, sheet)
        totals = totals.merge(sheet_totals)
        customers |= sheet_customers
    return replace(totals, total_users=len(customers))


def aggregate_file(path: Path) -> DirectoryTotals:
    return aggregate_workbook(load_sheets(path))


def project_file(path: Path, year: int | None = None, month: int | None = None) -> list[TableRow]:
    rows: list[TableRow] = []
    for sheet in load_sheets(path).values():
        rows.extend(project_sheet(sheet, year, month))
    return rows


# ── Directory level ──────────────────────────────────────────────


def reduce_directory_totals(directory: Path) -> DirectoryTotals:
    """Sum per-file totals for every spreadsheet directly inside *directory*.

    Distinct customers are counted per file and summed, not deduplicated
    across files.
    """
    files = list_spreadsheets(directory)
    totals = reduce(
        lambda acc, path: acc.merge(aggregate_file(path)), files, DirectoryTotals()
    )
    log.info(
        "directory_reduced",
        directory=str(directory),
        files=len(files),
        orders=totals.total_orders,
    )
    return totals


def reduce_directory_rows(
    directory: Path, year: int | None = None, month: int | None = None
) -> list[TableRow]:
    """Concatenate projected rows of every file, in file then sheet order."""
    files = list_spreadsheets(directory)
    rows: list[TableRow] = []
    for path in files:
        rows.extend(project_file(path, year, month))
    log.info(
        "directory_projected",
        directory=str(directory),
        files=len(files),
        rows=len(rows),
        year=year,
        month=month,
    )
    return rows


def scan_directory(directory: Path, partition: str) -> list[SheetStatus]:
    """Report, per sheet, whether it is recognized and how many data rows it has."""
    statuses: list[SheetStatus] = []
    for path in list_spreadsheets(directory):
        for name, sheet in load_sheets(path).items():
            recognized = sheet_header(sheet) is not None
            statuses.append(
                SheetStatus(
                    partition=partition,
                    file_name=path.name,
                    sheet_name=str(name),
                    recognized=recognized,
                    data_rows=len(_data_rows(sheet)) if recognized else 0,
                )
            )
    return statuses
