"""Result codec: turn a TabularResult into a file a sink can ship."""

from __future__ import annotations

import contextlib
import csv
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlcourier.errors import EncodingError
from sqlcourier.models import OutputFormat
from sqlcourier.result import format_cell
from sqlcourier.scratch import ScratchSpace

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from pathlib import Path

    from sqlcourier.result import TabularResult

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    OutputFormat.CSV: "text/csv",
    OutputFormat.JSON: "application/json",
}


@dataclass(frozen=True)
class Artifact:
    """A serialized result on disk, valid only inside :func:`build_artifact`."""

    path: Path
    format: OutputFormat

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self.format]

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


def resolve_header(result: TabularResult, column_order: Sequence[str]) -> list[str]:
    """Pick the CSV header for *result*.

    *column_order* wins when it names exactly the columns the rows carry.
    Otherwise (empty, or missing/extra names) the first row's key order is
    used; with no rows at all that is an empty header.
    """
    keys = list(result.rows[0]) if result.rows else []
    if column_order and (not result.rows or set(column_order) == set(keys)):
        return list(column_order)
    if column_order:
        logger.debug(
            "Column order %s does not match result columns %s; using row order",
            list(column_order),
            keys,
        )
    return keys


def write_csv(result: TabularResult, column_order: Sequence[str], path: Path) -> None:
    """Write a header row and one record per row. Null/absent cells are empty."""
    header = resolve_header(result, column_order)
    with path.open("w", newline="", encoding="utf-8") as fh:
        if not header:
            return
        writer = csv.writer(fh, lineterminator="\n")
        writer.writerow(header)
        for row in result.rows:
            writer.writerow([format_cell(row.get(column)) for column in header])


def write_json(result: TabularResult, path: Path) -> None:
    """Write the structured payload; row key order is whatever the rows hold."""
    payload = json.dumps(result.to_dict(), default=str, ensure_ascii=False)
    path.write_text(payload, encoding="utf-8")


@contextlib.contextmanager
def build_artifact(
    result: TabularResult,
    fmt: OutputFormat,
    column_order: Sequence[str] = (),
    *,
    scratch: ScratchSpace | None = None,
) -> Iterator[Artifact]:
    """Serialize *result* to a uniquely named scratch file and yield it.

    The file is removed when the block exits, whether or not delivery
    succeeded.

    Raises:
        EncodingError: the file could not be created or written.
    """
    scratch = scratch or ScratchSpace.get()
    try:
        path = scratch.allocate(result.task_id or "result", fmt.value)
    except (OSError, ValueError) as exc:
        msg = f"failed to create {fmt.value} file: {exc}"
        raise EncodingError(msg) from exc

    try:
        try:
            if fmt is OutputFormat.CSV:
                write_csv(result, column_order, path)
            else:
                write_json(result, path)
        except (OSError, ValueError, TypeError, csv.Error) as exc:
            msg = f"failed to write {fmt.value} file: {exc}"
            raise EncodingError(msg) from exc
        logger.debug("Wrote %s artifact %s (%d rows)", fmt.value, path, result.row_count)
        yield Artifact(path=path, format=fmt)
    finally:
        scratch.remove(path)
