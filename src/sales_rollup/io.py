"""I/O helpers — list partition directories, load workbooks, write JSON artifacts."""

from __future__ import annotations

import json
import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Callable, cast

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from sales_rollup.utils import get_logger

log = get_logger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
LEGACY_EXCEL_SUFFIX = ".xls"
CSV_SUFFIX = ".csv"
SUPPORTED_SUFFIXES = (*EXCEL_SUFFIXES, LEGACY_EXCEL_SUFFIX, CSV_SUFFIX)
_OWNER_FILE_PREFIX = "~$"
_WORKBOOK_ERRORS = (OSError, ValueError, KeyError, zipfile.BadZipFile, InvalidFileException)


class WorkbookReadError(OSError):
    """A file could not be opened or parsed as a spreadsheet."""


# ── Discovery ────────────────────────────────────────────────────


def is_spreadsheet(path: Path) -> bool:
    return (
        path.is_file()
        and path.suffix.lower() in SUPPORTED_SUFFIXES
        and not path.name.startswith(_OWNER_FILE_PREFIX)
    )


def list_spreadsheets(directory: Path) -> list[Path]:
    """Return the spreadsheet files directly inside *directory*, sorted by name.

    Raises
    ------
    FileNotFoundError
        If *directory* does not exist.
    NotADirectoryError
        If *directory* is a file.
    """
    directory = Path(directory)
    if not directory.exists():
        raise FileNotFoundError(f"Partition directory not found: {directory}")
    if not directory.is_dir():
        raise NotADirectoryError(f"Partition path is not a directory: {directory}")
    return sorted((p for p in directory.iterdir() if is_spreadsheet(p)), key=lambda p: p.name)


# ── Loading ──────────────────────────────────────────────────────


def _read_csv_sheet(path: Path) -> pd.DataFrame:
    # Fields past the header row's width, such as trailing commas, are dropped.
    last_exc: Exception | None = None
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return pd.read_csv(
                path,
                header=None,
                dtype="string",
                encoding=encoding,
                encoding_errors="strict",
                skip_blank_lines=True,
                engine="python",
                index_col=False,
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
        except (UnicodeDecodeError, pd.errors.ParserError) as exc:
            last_exc = exc
    raise WorkbookReadError(f"Could not read CSV {path} (decode or parse failed)") from last_exc


def _read_excel_sheets(path: Path, engine: str) -> dict[str, pd.DataFrame]:
    read_excel = cast(Callable[..., dict[str, pd.DataFrame]], getattr(pd, "read_excel"))
    return read_excel(path, sheet_name=None, header=None, dtype=object, engine=engine)


def load_sheets(path: Path) -> dict[str, pd.DataFrame]:
    """Load every sheet of *path* as a raw, header-less DataFrame.

    Row 0 of each frame is the sheet's header row. A CSV file yields a single
    sheet named after the file stem. The workbook is closed before returning.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    WorkbookReadError
        If the extension is not supported or the file cannot be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if not path.is_file():
        raise WorkbookReadError(f"Input path is not a file: {path}")

    suffix = path.suffix.lower()
    if suffix == CSV_SUFFIX:
        sheets = {path.stem: _read_csv_sheet(path)}
    elif suffix in EXCEL_SUFFIXES:
        try:
            sheets = _read_excel_sheets(path, "openpyxl")
        except _WORKBOOK_ERRORS as exc:
            raise WorkbookReadError(f"Could not open workbook {path}: {exc}") from exc
    elif suffix == LEGACY_EXCEL_SUFFIX:
        try:
            sheets = _read_excel_sheets(path, "xlrd")
        except ImportError as exc:
            raise WorkbookReadError(
                "Unsupported .xls input unless 'xlrd' is installed. "
                "Either convert to .xlsx or add dependency: pip install xlrd"
            ) from exc
        except _WORKBOOK_ERRORS as exc:
            raise WorkbookReadError(f"Could not open workbook {path}: {exc}") from exc
    else:
        raise WorkbookReadError(
            f"Unsupported file type: {suffix!r}. Use {', '.join(SUPPORTED_SUFFIXES)}"
        )

    log.debug("workbook_loaded", path=str(path), sheets=len(sheets))
    return sheets


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
