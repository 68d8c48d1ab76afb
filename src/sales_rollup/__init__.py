"""sales-rollup — Roll up sales spreadsheets into totals, yearly sales and filtered tables."""

__version__ = "0.2.0"

PARTITIONS: tuple[str, ...] = ("lubricants", "petroleum")
