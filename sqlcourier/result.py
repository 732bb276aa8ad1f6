"""TabularResult: the materialised output of one query execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from decimal import Decimal
from typing import Any

# Decoded cell values.  Drivers may hand back other kinds (UUID, arrays,
# JSON documents); those pass through untouched and format via ``str()``.
Cell = None | bool | int | float | Decimal | str | datetime | date | time

Row = dict[str, Cell]


def decode_cell(value: Any) -> Cell:
    """Convert a driver-native value into a :data:`Cell`.

    Byte sequences become text; everything else passes through.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return value


def format_cell(value: Any) -> str:
    """Render a cell as CSV field text. ``None`` renders as an empty field."""
    if value is None:
        return ""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


@dataclass
class TabularResult:
    """Rows returned by a query, keyed by driver-reported column name.

    Attributes:
        task_id: Name of the task that produced the result.
        captured_at: UTC timestamp taken when execution started.
        elapsed: Seconds from issuing the query to reading the last row.
        row_count: Number of rows captured (capped in dry-run mode).
        columns: Column names in driver order.
        rows: One mapping per row; every row has exactly ``columns`` as keys.
    """

    task_id: str
    captured_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    elapsed: float = 0.0
    row_count: int = 0
    columns: list[str] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Structured payload used for JSON delivery."""
        return {
            "task_id": self.task_id,
            "timestamp": self.captured_at.isoformat(),
            "execution_time": f"{self.elapsed:.3f}s",
            "row_count": self.row_count,
            "data": self.rows,
        }
