"""CLI entry point for sales-rollup."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable

from sales_rollup import PARTITIONS, __version__
from sales_rollup.config import FilterValidationError, Settings, load_settings
from sales_rollup.io import write_json
from sales_rollup.models import SheetStatus
from sales_rollup.report import write_report
from sales_rollup.service import (
    collect_totals,
    get_filtered_table,
    get_sales_by_year,
    scan_partitions,
)
from sales_rollup.utils import configure_logging

app = typer.Typer(
    name="srollup",
    help="sales-rollup — Totals, yearly sales and monthly tables from sales spreadsheets.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

T = TypeVar("T")

_DATA_DIR_HELP = "Root directory holding the partition folders (default: $SALES_ROLLUP_DATA_DIR)."
_PARTITION_HELP = f"Only read one partition: {', '.join(PARTITIONS)}."


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"sales-rollup v{__version__}")
        raise typer.Exit()


def _settings(data_dir: Path | None, partition: str | None) -> Settings:
    try:
        return load_settings(data_dir).only(partition)
    except FilterValidationError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)


def _guarded(action: Callable[[], T]) -> T:
    """Run *action*, mapping bad input and unreadable files to exit 2."""
    try:
        return action()
    except FilterValidationError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    except OSError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)


def _banner(title: str, settings: Settings, quiet: bool) -> None:
    if quiet:
        return
    console.print(Panel(
        f"[bold]sales-rollup[/bold] v{__version__}\n"
        f"Data: {settings.data_dir}\nPartitions: {', '.join(settings.partitions)}",
        title=title, border_style="blue",
    ))


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log each file and directory as it is read (stderr).",
    ),
    log_json: bool = typer.Option(
        False, "--log-json",
        help="Emit log lines as JSON.",
    ),
) -> None:
    """sales-rollup CLI."""
    configure_logging("DEBUG" if verbose else "WARNING", json_output=log_json)


# ── totals command ───────────────────────────────────────────────


@app.command()
def totals(
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help=_DATA_DIR_HELP),
    partition: str | None = typer.Option(None, "--partition", "-p", help=_PARTITION_HELP),
    json_out: Path | None = typer.Option(None, "--json", help="Write the totals as JSON."),
    xlsx_out: Path | None = typer.Option(
        None, "--xlsx", help="Write a Summary workbook with totals and yearly sales."
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Unique customers, order count and total quantity across partitions."""
    echo = _printer(quiet)
    settings = _settings(data_dir, partition)
    _banner("Totals", settings, quiet)

    result = _guarded(lambda: collect_totals(settings))
    summary = result.summary()

    if not quiet:
        tbl = RichTable(title="Totals", show_lines=True)
        tbl.add_column("Metric", style="bold")
        tbl.add_column("Value", justify="right")
        for label, value in summary.items():
            tbl.add_row(label, f"{value:,}")
        console.print(tbl)

    if json_out:
        echo(f"  JSON   -> {write_json(json_out, summary)}")
    if xlsx_out:
        echo(f"  Report -> {write_report(xlsx_out, totals=result)}")


# ── by-year command ──────────────────────────────────────────────


@app.command("by-year")
def by_year(
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help=_DATA_DIR_HELP),
    partition: str | None = typer.Option(None, "--partition", "-p", help=_PARTITION_HELP),
    json_out: Path | None = typer.Option(None, "--json", help="Write year -> quantity as JSON."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Quantity sold per calendar year across partitions."""
    echo = _printer(quiet)
    settings = _settings(data_dir, partition)
    _banner("Sales by year", settings, quiet)

    sales = _guarded(lambda: get_sales_by_year(settings))

    if not quiet:
        tbl = RichTable(title="Sales by year", show_lines=True)
        tbl.add_column("Year", style="bold")
        tbl.add_column("Quantity", justify="right")
        for year, quantity in sales.items():
            tbl.add_row(str(year), f"{quantity:,}")
        if not sales:
            tbl.add_row("[dim]none[/dim]", "")
        console.print(tbl)

    if json_out:
        echo(f"  JSON -> {write_json(json_out, sales)}")


# ── table command ────────────────────────────────────────────────


@app.command()
def table(
    year: str = typer.Option(..., "--year", "-y", help="Calendar year, e.g. 2023."),
    month: str = typer.Option(..., "--month", "-m", help="Month number (1-12) or name, e.g. June."),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help=_DATA_DIR_HELP),
    partition: str | None = typer.Option(None, "--partition", "-p", help=_PARTITION_HELP),
    json_out: Path | None = typer.Option(None, "--json", help="Write {year, month, rows} as JSON."),
    xlsx_out: Path | None = typer.Option(None, "--xlsx", help="Write the rows to a workbook."),
    limit: int = typer.Option(20, "--limit", help="Rows to display (0 = all).", min=0),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """Rows whose date columns fall in the given year and month."""
    echo = _printer(quiet)
    settings = _settings(data_dir, partition)
    _banner("Filtered table", settings, quiet)

    result = _guarded(lambda: get_filtered_table(year, month, settings))
    echo(f"  {len(result.rows)} rows for {result.year}-{result.month:02d}")

    if not quiet and result.rows:
        columns = result.columns()
        tbl = RichTable(title=f"Rows {result.year}-{result.month:02d}")
        for name in columns:
            tbl.add_column(name)
        shown = result.rows if limit == 0 else result.rows[:limit]
        for row in shown:
            tbl.add_row(*("" if row.get(name) is None else str(row.get(name)) for name in columns))
        console.print(tbl)
        if len(shown) < len(result.rows):
            console.print(f"  [dim]… {len(result.rows) - len(shown)} more rows[/dim]")

    if json_out:
        echo(f"  JSON   -> {write_json(json_out, result.to_dict())}")
    if xlsx_out:
        echo(f"  Report -> {write_report(xlsx_out, table=result)}")


# ── scan command ─────────────────────────────────────────────────


def _status_label(status: SheetStatus) -> str:
    return "[green]recognized[/green]" if status.recognized else "[yellow]skipped[/yellow]"


@app.command()
def scan(
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help=_DATA_DIR_HELP),
    partition: str | None = typer.Option(None, "--partition", "-p", help=_PARTITION_HELP),
    json_out: Path | None = typer.Option(None, "--json", help="Write per-sheet results as JSON."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output."),
) -> None:
    """List every sheet and whether its header matches a recognized layout."""
    echo = _printer(quiet)
    settings = _settings(data_dir, partition)
    _banner("Scan", settings, quiet)

    statuses = _guarded(lambda: scan_partitions(settings))

    if not quiet:
        tbl = RichTable(title="Sheets", show_lines=True)
        tbl.add_column("Partition", style="bold")
        tbl.add_column("File")
        tbl.add_column("Sheet")
        tbl.add_column("Status")
        tbl.add_column("Rows", justify="right")
        for status in statuses:
            tbl.add_row(
                status.partition,
                status.file_name,
                status.sheet_name,
                _status_label(status),
                str(status.data_rows),
            )
        console.print(tbl)

    if json_out:
        echo(f"  JSON -> {write_json(json_out, [s.to_dict() for s in statuses])}")
