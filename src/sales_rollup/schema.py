"""Recognized sheet schemas, header validation and column lookup."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import pandas as pd

NOT_FOUND = -1

CUSTOMER_CODE = "customer code"
BILLING_DATE = "billing date"
QUANTITY = "quantity"

# Every data row carries the customer identifier in its first cell.
CUSTOMER_COLUMN_INDEX = 0


class ColumnRole(str, Enum):
    identifier = "identifier"
    quantity = "quantity"
    date = "date"
    passthrough = "passthrough"


def normalize_label(label: object) -> str:
    """Trim and lowercase a header cell; blank cells normalize to ``""``."""
    try:
        if pd.isna(label):  # type: ignore[arg-type]
            return ""
    except (TypeError, ValueError):
        pass
    return str(label).strip().lower()


def normalize_header(header: Iterable[Any]) -> list[str]:
    return [normalize_label(label) for label in header]


def column_role(label: str) -> ColumnRole:
    if label == CUSTOMER_CODE:
        return ColumnRole.identifier
    if label == QUANTITY:
        return ColumnRole.quantity
    if "date" in label:
        return ColumnRole.date
    return ColumnRole.passthrough


@dataclass(frozen=True)
class Schema:
    """A fixed, ordered list of expected header labels."""

    name: str
    labels: tuple[str, ...]
    roles: dict[str, ColumnRole] = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        normalized = tuple(normalize_label(label) for label in self.labels)
        object.__setattr__(self, "labels", normalized)
        object.__setattr__(self, "roles", {label: column_role(label) for label in normalized})

    def accepts(self, header: Iterable[str]) -> bool:
        return set(header) <= set(self.labels)


BILLING_VEHICLE = Schema(
    "billing/vehicle",
    (
        "Customer Code",
        "Customer Name",
        "Billing Date",
        "Billing Document",
        "Vehicle Number",
        "Material Description",
        "Quantity",
        "Net Value",
    ),
)

MATERIAL_SKU = Schema(
    "material/SKU",
    (
        "Customer Code",
        "Customer Name",
        "Billing Date",
        "Material Code",
        "SKU",
        "Material Description",
        "Quantity",
        "UoM",
    ),
)

SCHEMAS: tuple[Schema, ...] = (BILLING_VEHICLE, MATERIAL_SKU)

COLUMN_ROLES: dict[str, ColumnRole] = {
    label: role for schema in SCHEMAS for label, role in schema.roles.items()
}


def is_recognized_header(header: Sequence[Any]) -> bool:
    """Return True when every non-blank header label belongs to one recognized schema.

    This is a subset check: a sheet carrying only some of a schema's columns
    still passes, while a single foreign label fails it. A header with no
    labels at all is not recognized.
    """
    labels = {label for label in normalize_header(header) if label}
    if not labels:
        return False
    return any(schema.accepts(labels) for schema in SCHEMAS)


def resolve_columns(header: Sequence[str], wanted: Iterable[str]) -> dict[str, int]:
    """Map each wanted label to its index in *header*, or ``NOT_FOUND``."""
    positions: dict[str, int] = {}
    for idx, label in enumerate(header):
        positions.setdefault(label, idx)
    resolved: dict[str, int] = {}
    for label in wanted:
        key = normalize_label(label)
        resolved[key] = positions.get(key, NOT_FOUND)
    return resolved


@dataclass(frozen=True)
class ColumnDescriptor:
    label: str
    index: int
    role: ColumnRole


def describe_columns(header: Sequence[str]) -> list[ColumnDescriptor]:
    """Tag every non-blank header cell with its role, in column order."""
    return [
        ColumnDescriptor(label, idx, COLUMN_ROLES.get(label, column_role(label)))
        for idx, label in enumerate(header)
        if label
    ]
