"""Excel export — writes totals, yearly sales and filtered rows to one workbook."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from sales_rollup.models import DirectoryTotals, TableResult

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
KPI_FILL = PatternFill(start_color="D6E4F0", end_color="D6E4F0", fill_type="solid")

QTY_FMT = '#,##0.##'
INT_FMT = '#,##0'

_MAX_COL_WIDTH = 30
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, row: int, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=row, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = max(
            (len(str(cell.value or "")) for col in ws.iter_cols(min_col=c_idx, max_col=c_idx)
             for cell in col),
            default=0,
        )
        ws.column_dimensions[letter].width = min(width + 4, _MAX_COL_WIDTH)


def _excel_value(val: Any) -> Any:
    # Text cells that look like formulas are written as literal text.
    if isinstance(val, str):
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES and not val.startswith("'"):
            return f"'{val}"
    return val


def _write_summary(wb: Workbook, totals: DirectoryTotals) -> None:
    ws = wb.create_sheet(title="Summary")
    ws.cell(row=1, column=1, value="sales-rollup — Summary").font = TITLE_FONT
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT

    row = 4
    for label, value, fmt in (
        ("Total Users", totals.total_users, INT_FMT),
        ("Total Orders", totals.total_orders, INT_FMT),
        ("Total Sales", totals.total_sales, QTY_FMT),
    ):
        lbl_cell = ws.cell(row=row, column=1, value=label)
        lbl_cell.font = LABEL_FONT
        lbl_cell.fill = KPI_FILL
        val_cell = ws.cell(row=row, column=2, value=value)
        val_cell.fill = KPI_FILL
        val_cell.number_format = fmt
        row += 1

    row += 1
    ws.cell(row=row, column=1, value="Year")
    ws.cell(row=row, column=2, value="Quantity")
    _style_header(ws, row, 2)
    for year in sorted(totals.sales_by_year):
        row += 1
        ws.cell(row=row, column=1, value=year)
        ws.cell(row=row, column=2, value=totals.sales_by_year[year]).number_format = QTY_FMT

    ws.column_dimensions["A"].width = 22
    ws.column_dimensions["B"].width = 18


def _write_rows(wb: Workbook, table: TableResult) -> None:
    title = f"Rows {table.year}-{table.month:02d}" if table.year and table.month else "Rows"
    ws = wb.create_sheet(title=title)
    columns = table.columns()
    if not columns:
        ws.cell(row=1, column=1, value="No rows")
        return

    for c_idx, name in enumerate(columns, 1):
        ws.cell(row=1, column=c_idx, value=name)
    for r_idx, table_row in enumerate(table.rows, 2):
        for c_idx, name in enumerate(columns, 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(table_row.get(name)))
    _style_header(ws, 1, len(columns))
    ws.freeze_panes = "A2"
    ws.auto_filter.ref = ws.dimensions
    _auto_width(ws)


# ── Public API ───────────────────────────────────────────────────


def write_report(
    path: Path,
    totals: DirectoryTotals | None = None,
    table: TableResult | None = None,
) -> Path:
    """Write a workbook with a Summary sheet and/or a Rows sheet to *path*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)

    if totals is not None:
        _write_summary(wb, totals)
    if table is not None:
        _write_rows(wb, table)
    if not wb.worksheets:
        wb.create_sheet(title="Summary")

    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path
