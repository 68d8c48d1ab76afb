"""
sales-rollup — Configuration: data root and partition directories.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from sales_rollup import PARTITIONS

# ---------------------------------------------------------------------------
# Paths: override with SALES_ROLLUP_DATA_DIR for deployment
# ---------------------------------------------------------------------------
DATA_DIR_ENV = "SALES_ROLLUP_DATA_DIR"
DEFAULT_DATA_DIR = Path("uploads") / "excel-files"


class FilterValidationError(ValueError):
    """Request input rejected before any file is read."""


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    partitions: tuple[str, ...] = PARTITIONS

    def partition_dir(self, partition: str) -> Path:
        return self.data_dir / partition

    def partition_dirs(self) -> list[Path]:
        return [self.partition_dir(name) for name in self.partitions]

    def only(self, partition: str | None) -> Settings:
        """Restrict these settings to a single partition (None keeps all)."""
        if partition is None:
            return self
        return Settings(self.data_dir, (resolve_partition(partition),))


def load_settings(data_dir: Path | str | None = None) -> Settings:
    """Build settings from an explicit root, the environment, or the default."""
    if data_dir is None:
        data_dir = os.environ.get(DATA_DIR_ENV) or DEFAULT_DATA_DIR
    return Settings(data_dir=Path(data_dir))


def resolve_partition(name: str) -> str:
    normalized = str(name).strip().lower()
    if normalized not in PARTITIONS:
        raise FilterValidationError(
            f"Invalid partition {name!r}. Allowed: {', '.join(PARTITIONS)}"
        )
    return normalized
