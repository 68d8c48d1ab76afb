from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest
import structlog
from openpyxl import Workbook

BILLING_HEADER = [
    "Customer Code",
    "Customer Name",
    "Billing Date",
    "Billing Document",
    "Vehicle Number",
    "Material Description",
    "Quantity",
    "Net Value",
]
SKU_HEADER = [
    "Customer Code",
    "Customer Name",
    "Billing Date",
    "Material Code",
    "SKU",
    "Material Description",
    "Quantity",
    "UoM",
]

WorkbookWriter = Callable[[Path, Mapping[str, Sequence[Sequence[Any]]]], Path]


def _write_workbook(path: Path, sheets: Mapping[str, Sequence[Sequence[Any]]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    active = wb.active
    if active is not None:
        wb.remove(active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(list(row))
    wb.save(path)
    return path


@pytest.fixture
def write_workbook() -> WorkbookWriter:
    return _write_workbook


@pytest.fixture
def billing_header() -> list[str]:
    return list(BILLING_HEADER)


@pytest.fixture
def sku_header() -> list[str]:
    return list(SKU_HEADER)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()
