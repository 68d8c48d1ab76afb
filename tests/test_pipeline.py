"""Sheet aggregation, table projection and directory reduction."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from sales_rollup.io import WorkbookReadError
from sales_rollup.models import DirectoryTotals
from sales_rollup.pipeline import (
    aggregate_sheet,
    aggregate_workbook,
    parse_quantity,
    project_sheet,
    reduce_directory_rows,
    reduce_directory_totals,
    scan_directory,
)

JAN_1_2023 = 44927
JUNE_15_2023 = 45092  # table conversion: 2023-06-16
JULY_15_2023 = 45122  # table conversion: 2023-07-16
MAY_10_2022 = 44691


def _sheet(header: list[Any], *rows: list[Any]) -> pd.DataFrame:
    return pd.DataFrame([header, *rows], dtype=object)


def _billing_row(customer: Any, billed: Any, quantity: Any) -> list[Any]:
    return [customer, f"Name {customer}", billed, "INV-1", "KA-01-1234", "Engine Oil", quantity, 100]


# ── parse_quantity ───────────────────────────────────────────────


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(10, 10), (2.5, 2.5), ("7", 7.0), (" 3.25 ", 3.25), ("ten", 0), (None, 0), ("", 0),
     (float("nan"), 0), (True, 0), ("inf", 0)],
)
def test_parse_quantity_coerces_failures_to_zero(raw: Any, expected: float) -> None:
    assert parse_quantity(raw) == expected


# ── aggregate_sheet ──────────────────────────────────────────────


def test_aggregate_sheet_counts_customers_orders_and_years(billing_header: list[str]) -> None:
    sheet = _sheet(
        billing_header,
        _billing_row("C1", JAN_1_2023, 10),
        _billing_row("C2", MAY_10_2022, 4),
        _billing_row("C1", JAN_1_2023, 6),
    )

    totals = aggregate_sheet(sheet)

    assert totals == DirectoryTotals(
        total_users=2,
        total_orders=3,
        total_sales=20,
        sales_by_year={2023: 16, 2022: 4},
    )


def test_non_numeric_quantity_counts_as_zero_but_still_an_order(
    billing_header: list[str],
) -> None:
    sheet = _sheet(
        billing_header,
        _billing_row("C1", JAN_1_2023, "lots"),
        _billing_row("C2", JAN_1_2023, 5),
    )

    totals = aggregate_sheet(sheet)

    assert totals.total_orders == 2
    assert totals.total_sales == 5
    assert totals.sales_by_year == {2023: 5}


def test_unparsable_date_is_left_out_of_years_only(billing_header: list[str]) -> None:
    sheet = _sheet(
        billing_header,
        _billing_row("C1", "someday", 3),
        _billing_row("C2", None, 2),
        _billing_row("C3", JAN_1_2023, 5),
    )

    totals = aggregate_sheet(sheet)

    assert totals.total_orders == 3
    assert totals.total_sales == 10
    assert totals.sales_by_year == {2023: 5}
    assert sum(totals.sales_by_year.values()) <= totals.total_sales


def test_sheet_missing_quantity_column_still_validates_and_counts_orders() -> None:
    sheet = _sheet(["Customer Code", "Billing Date"], ["C1", JAN_1_2023], ["C2", JAN_1_2023])

    totals = aggregate_sheet(sheet)

    assert totals.total_orders == 2
    assert totals.total_users == 2
    assert totals.total_sales == 0
    assert totals.sales_by_year == {2023: 0}


def test_unrecognized_sheet_contributes_nothing() -> None:
    sheet = _sheet(["notes"], ["call back on monday"], ["C1 is a big account"])

    assert aggregate_sheet(sheet) == DirectoryTotals()


def test_empty_sheet_and_blank_rows_are_ignored(billing_header: list[str]) -> None:
    assert aggregate_sheet(pd.DataFrame()) == DirectoryTotals()

    sheet = _sheet(billing_header, [None] * 8, _billing_row("C1", JAN_1_2023, 1), [None] * 8)

    assert aggregate_sheet(sheet).total_orders == 1


def test_blank_customer_is_not_a_customer(billing_header: list[str]) -> None:
    sheet = _sheet(billing_header, _billing_row(None, JAN_1_2023, 1), _billing_row(" ", None, 1))

    totals = aggregate_sheet(sheet)

    assert totals.total_users == 0
    assert totals.total_orders == 2


def test_customers_are_distinct_across_sheets_of_one_workbook(
    billing_header: list[str], sku_header: list[str]
) -> None:
    sku_row = ["C1", "Name C1", JAN_1_2023, "M-1", "SKU-9", "Grease", 2, "KG"]
    sheets = {
        "Billing": _sheet(billing_header, _billing_row("C1", JAN_1_2023, 3)),
        "Materials": _sheet(sku_header, sku_row),
        "Notes": _sheet(["notes"], ["ignore me"]),
    }

    totals = aggregate_workbook(sheets)

    assert totals == DirectoryTotals(
        total_users=1, total_orders=2, total_sales=5, sales_by_year={2023: 5}
    )


# ── project_sheet ────────────────────────────────────────────────


def test_project_sheet_keeps_only_matching_month(billing_header: list[str]) -> None:
    sheet = _sheet(
        billing_header,
        _billing_row("C1", JUNE_15_2023, 10),
        _billing_row("C2", JULY_15_2023, 5),
    )

    rows = project_sheet(sheet, 2023, 6)

    assert len(rows) == 1
    assert rows[0]["customer code"] == "C1"
    assert rows[0]["billing date"] == "2023-06-16"
    assert rows[0]["quantity"] == 10
    assert list(rows[0]) == [label.lower() for label in billing_header]


def test_matching_year_with_other_month_is_excluded(billing_header: list[str]) -> None:
    sheet = _sheet(billing_header, _billing_row("C1", JULY_15_2023, 1))

    assert project_sheet(sheet, 2023, 6) == []
    assert project_sheet(sheet, 2022, 7) == []
    assert len(project_sheet(sheet, 2023, 7)) == 1


def test_rows_without_date_column_are_never_excluded() -> None:
    sheet = _sheet(["Customer Code", "Quantity"], ["C1", 1], ["C2", 2])

    rows = project_sheet(sheet, 1999, 1)

    assert rows == [
        {"customer code": "C1", "quantity": 1},
        {"customer code": "C2", "quantity": 2},
    ]


def test_unresolvable_date_does_not_exclude_and_passes_through(
    billing_header: list[str],
) -> None:
    sheet = _sheet(billing_header, _billing_row("C1", "pending", 1), _billing_row("C2", None, 2))

    rows = project_sheet(sheet, 2023, 6)

    assert [row["billing date"] for row in rows] == ["pending", None]


def test_project_sheet_without_filters_keeps_every_row(billing_header: list[str]) -> None:
    sheet = _sheet(
        billing_header,
        _billing_row("C1", JUNE_15_2023, 10),
        _billing_row("C2", MAY_10_2022, 5),
    )

    rows = project_sheet(sheet)

    assert [row["billing date"] for row in rows] == ["2023-06-16", "2022-05-11"]


def test_year_only_filter(billing_header: list[str]) -> None:
    sheet = _sheet(
        billing_header,
        _billing_row("C1", JUNE_15_2023, 10),
        _billing_row("C2", MAY_10_2022, 5),
    )

    rows = project_sheet(sheet, year=2022)

    assert [row["customer code"] for row in rows] == ["C2"]


def test_project_sheet_skips_unrecognized_sheet() -> None:
    assert project_sheet(_sheet(["notes"], ["x"]), 2023, 6) == []


# ── Directory reduction ──────────────────────────────────────────


def test_same_customer_in_two_files_is_counted_twice(
    tmp_path: Path, write_workbook, billing_header: list[str]
) -> None:
    write_workbook(tmp_path / "a.xlsx", {"Sheet1": [billing_header, _billing_row("C1", JAN_1_2023, 10)]})
    write_workbook(tmp_path / "b.xlsx", {"Sheet1": [billing_header, _billing_row("C1", 45000, 5)]})

    totals = reduce_directory_totals(tmp_path)

    assert totals == DirectoryTotals(
        total_users=2, total_orders=2, total_sales=15, sales_by_year={2023: 15}
    )


def test_unrecognized_file_adds_nothing_and_does_not_raise(
    tmp_path: Path, write_workbook, billing_header: list[str]
) -> None:
    write_workbook(tmp_path / "a.xlsx", {"Sheet1": [billing_header, _billing_row("C1", JAN_1_2023, 10)]})
    write_workbook(tmp_path / "notes.xlsx", {"Sheet1": [["notes"], ["remember the milk"]]})

    totals = reduce_directory_totals(tmp_path)

    assert totals.total_orders == 1
    assert reduce_directory_rows(tmp_path) == [
        dict(zip([h.lower() for h in billing_header],
                 ["C1", "Name C1", "2023-01-02", "INV-1", "KA-01-1234", "Engine Oil", 10, 100]))
    ]


def test_empty_directory_yields_empty_results(tmp_path: Path) -> None:
    assert reduce_directory_totals(tmp_path) == DirectoryTotals()
    assert reduce_directory_rows(tmp_path, 2023, 6) == []


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        reduce_directory_totals(tmp_path / "nope")


def test_corrupt_file_aborts_directory(
    tmp_path: Path, write_workbook, billing_header: list[str]
) -> None:
    write_workbook(tmp_path / "a.xlsx", {"Sheet1": [billing_header, _billing_row("C1", JAN_1_2023, 1)]})
    (tmp_path / "b.xlsx").write_bytes(b"definitely not a zip archive")

    with pytest.raises(WorkbookReadError):
        reduce_directory_totals(tmp_path)
    with pytest.raises(WorkbookReadError):
        reduce_directory_rows(tmp_path, 2023, 1)


def test_rows_are_concatenated_in_file_then_sheet_order(
    tmp_path: Path, write_workbook, billing_header: list[str]
) -> None:
    write_workbook(
        tmp_path / "b.xlsx",
        {
            "First": [billing_header, _billing_row("B1", JUNE_15_2023, 1)],
            "Second": [billing_header, _billing_row("B2", JUNE_15_2023, 1)],
        },
    )
    write_workbook(tmp_path / "a.xlsx", {"Only": [billing_header, _billing_row("A1", JUNE_15_2023, 1)]})

    rows = reduce_directory_rows(tmp_path, 2023, 6)

    assert [row["customer code"] for row in rows] == ["A1", "B1", "B2"]


def test_repeated_reduction_is_identical(
    tmp_path: Path, write_workbook, billing_header: list[str]
) -> None:
    write_workbook(tmp_path / "a.xlsx", {"Sheet1": [billing_header, _billing_row("C1", JAN_1_2023, 10)]})

    assert reduce_directory_totals(tmp_path) == reduce_directory_totals(tmp_path)


def test_scan_directory_reports_each_sheet(
    tmp_path: Path, write_workbook, billing_header: list[str]
) -> None:
    write_workbook(
        tmp_path / "a.xlsx",
        {
            "Billing": [billing_header, _billing_row("C1", JAN_1_2023, 1), _billing_row("C2", JAN_1_2023, 1)],
            "Scratch": [["notes"], ["x"]],
        },
    )

    statuses = scan_directory(tmp_path, "lubricants")

    assert [s.to_dict() for s in statuses] == [
        {"partition": "lubricants", "file_name": "a.xlsx", "sheet_name": "Billing",
         "recognized": True, "data_rows": 2},
        {"partition": "lubricants", "file_name": "a.xlsx", "sheet_name": "Scratch",
         "recognized": False, "data_rows": 0},
    ]


def test_csv_with_trailing_commas_is_rolled_up(tmp_path: Path) -> None:
    (tmp_path / "a.csv").write_text(
        "Customer Code,Billing Date,Quantity\nC1,44927,10\nC2,44927,5,\n", encoding="utf-8"
    )

    totals = reduce_directory_totals(tmp_path)

    assert totals == DirectoryTotals(
        total_users=2, total_orders=2, total_sales=15, sales_by_year={2023: 15}
    )
