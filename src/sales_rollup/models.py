"""Result models shared by the pipeline, service and CLI layers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Any

TableRow = dict[str, Any]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_number(value: Any, field_name: str) -> float | int:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{field_name} must be a number")
    return value  # type: ignore[return-value]


def _to_year_map(values: Mapping[Any, Any] | None, field_name: str) -> dict[int, float | int]:
    if values is None:
        return {}
    normalized: dict[int, float | int] = {}
    for year, amount in values.items():
        normalized[_to_non_negative_int(year, f"{field_name} key")] = _to_number(
            amount, f"{field_name}[{year}]"
        )
    return normalized


@dataclass
class DirectoryTotals:
    """Running totals for one sheet, file, directory or partition set.

    ``total_users`` is a sum of per-file distinct customer counts, so the same
    customer appearing in two files is counted twice.
    """

    total_users: int = 0
    total_orders: int = 0
    total_sales: float | int = 0
    sales_by_year: dict[int, float | int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.total_users = _to_non_negative_int(self.total_users, "total_users")
        self.total_orders = _to_non_negative_int(self.total_orders, "total_orders")
        self.total_sales = _to_number(self.total_sales, "total_sales")
        self.sales_by_year = _to_year_map(self.sales_by_year, "sales_by_year")

    def merge(self, other: DirectoryTotals) -> DirectoryTotals:
        """Return a new total summing *self* and *other* field by field."""
        by_year = dict(self.sales_by_year)
        for year, amount in other.sales_by_year.items():
            by_year[year] = by_year.get(year, 0) + amount
        return DirectoryTotals(
            total_users=self.total_users + other.total_users,
            total_orders=self.total_orders + other.total_orders,
            total_sales=self.total_sales + other.total_sales,
            sales_by_year=by_year,
        )

    def __add__(self, other: object) -> DirectoryTotals:
        if not isinstance(other, DirectoryTotals):
            return NotImplemented
        return self.merge(other)

    def summary(self) -> dict[str, float | int]:
        return {
            "totalUsers": self.total_users,
            "totalOrders": self.total_orders,
            "totalSales": self.total_sales,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.summary(),
            "salesByYear": {year: self.sales_by_year[year] for year in sorted(self.sales_by_year)},
        }


@dataclass
class TableResult:
    """Rows projected for one year/month filter."""

    year: int | None = None
    month: int | None = None
    rows: list[TableRow] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "rows": [dict(row) for row in self.rows],
        }

    def columns(self) -> list[str]:
        """Union of row keys in first-seen order."""
        seen: dict[str, None] = {}
        for row in self.rows:
            for key in row:
                seen.setdefault(key, None)
        return list(seen)


@dataclass
class SheetStatus:
    """Scan outcome for one sheet of one file."""

    partition: str
    file_name: str
    sheet_name: str
    recognized: bool
    data_rows: int = 0

    def __post_init__(self) -> None:
        self.data_rows = _to_non_negative_int(self.data_rows, "data_rows")

    def to_dict(self) -> dict[str, Any]:
        return {
            "partition": self.partition,
            "file_name": self.file_name,
            "sheet_name": self.sheet_name,
            "recognized": self.recognized,
            "data_rows": self.data_rows,
        }
