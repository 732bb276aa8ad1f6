"""Tests for the result codec: CSV/JSON writers and artifact lifecycle."""

import json
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from sqlcourier.codec import build_artifact, resolve_header, write_csv, write_json
from sqlcourier.errors import DeliveryError, EncodingError
from sqlcourier.models import OutputFormat
from sqlcourier.result import TabularResult
from sqlcourier.scratch import ScratchSpace


def _result(rows: list[dict], task_id: str = "daily") -> TabularResult:
    return TabularResult(
        task_id=task_id,
        captured_at=datetime(2025, 6, 1, 9, 0, tzinfo=UTC),
        elapsed=0.25,
        row_count=len(rows),
        columns=list(rows[0]) if rows else [],
        rows=rows,
    )


# ---------------------------------------------------------------------------
# resolve_header
# ---------------------------------------------------------------------------


class TestResolveHeader:
    def test_column_order_used_when_it_matches(self) -> None:
        result = _result([{"b": 1, "a": 2}])
        assert resolve_header(result, ["a", "b"]) == ["a", "b"]

    def test_empty_order_falls_back_to_first_row(self) -> None:
        result = _result([{"b": 1, "a": 2}])
        assert resolve_header(result, []) == ["b", "a"]

    def test_partial_order_falls_back_to_first_row(self) -> None:
        # e.g. an unaliased column was skipped by the extractor
        result = _result([{"id": 1, "full_name": "x"}])
        assert resolve_header(result, ["full_name"]) == ["id", "full_name"]

    def test_unknown_name_falls_back(self) -> None:
        result = _result([{"a": 1}])
        assert resolve_header(result, ["z"]) == ["a"]

    def test_no_rows_no_order_is_empty(self) -> None:
        assert resolve_header(_result([]), []) == []

    def test_no_rows_keeps_order(self) -> None:
        assert resolve_header(_result([]), ["x", "y"]) == ["x", "y"]


# ---------------------------------------------------------------------------
# write_csv
# ---------------------------------------------------------------------------


def test_csv_header_and_null_field(tmp_path) -> None:
    path = tmp_path / "out.csv"
    result = _result([{"x": 1, "y": "a"}, {"x": 2, "y": None}])

    write_csv(result, ["x", "y"], path)

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "x,y"
    assert lines[1] == "1,a"
    assert lines[2] == "2,"
    assert lines[2].split(",")[1] == ""


def test_csv_follows_column_order_not_row_order(tmp_path) -> None:
    path = tmp_path / "out.csv"
    result = _result([{"y": "a", "x": 1}])

    write_csv(result, ["x", "y"], path)

    assert path.read_text(encoding="utf-8") == "x,y\n1,a\n"


def test_csv_empty_rows_and_order_gives_empty_file(tmp_path) -> None:
    path = tmp_path / "out.csv"

    write_csv(_result([]), [], path)

    assert path.exists()
    assert path.read_text(encoding="utf-8") == ""


def test_csv_empty_rows_with_order_gives_header_only(tmp_path) -> None:
    path = tmp_path / "out.csv"

    write_csv(_result([]), ["x", "y"], path)

    assert path.read_text(encoding="utf-8") == "x,y\n"


def test_csv_quotes_embedded_delimiters(tmp_path) -> None:
    path = tmp_path / "out.csv"
    result = _result([{"note": 'say "hi", then go', "n": 1}])

    write_csv(result, ["note", "n"], path)

    assert path.read_text(encoding="utf-8").splitlines()[1] == '"say ""hi"", then go",1'


def test_csv_formats_typed_cells(tmp_path) -> None:
    path = tmp_path / "out.csv"
    result = _result(
        [{"ok": True, "amount": Decimal("9.90"), "at": datetime(2025, 6, 1, 9, 30)}]
    )

    write_csv(result, ["ok", "amount", "at"], path)

    assert path.read_text(encoding="utf-8").splitlines()[1] == "true,9.90,2025-06-01 09:30:00"


# ---------------------------------------------------------------------------
# write_json
# ---------------------------------------------------------------------------


def test_json_payload(tmp_path) -> None:
    path = tmp_path / "out.json"
    result = _result([{"x": 1, "price": Decimal("1.50"), "label": "日本"}])

    write_json(result, path)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["task_id"] == "daily"
    assert payload["row_count"] == 1
    assert payload["timestamp"] == "2025-06-01T09:00:00+00:00"
    assert payload["data"] == [{"x": 1, "price": "1.50", "label": "日本"}]


# ---------------------------------------------------------------------------
# build_artifact
# ---------------------------------------------------------------------------


def test_artifact_written_then_removed(scratch: ScratchSpace) -> None:
    result = _result([{"x": 1}])

    with build_artifact(result, OutputFormat.CSV, ["x"], scratch=scratch) as artifact:
        assert artifact.path.exists()
        assert artifact.path.parent == scratch.root
        assert artifact.filename.startswith("daily_")
        assert artifact.filename.endswith(".csv")
        assert artifact.content_type == "text/csv"
        assert artifact.read_bytes() == b"x\n1\n"

    assert not artifact.path.exists()


def test_artifact_removed_when_block_raises(scratch: ScratchSpace) -> None:
    result = _result([{"x": 1}])

    with pytest.raises(RuntimeError, match="sink down"):  # noqa: PT012
        with build_artifact(result, OutputFormat.CSV, scratch=scratch) as artifact:
            path = artifact.path
            raise RuntimeError("sink down")

    assert not path.exists()


def test_cleanup_failure_keeps_delivery_error(scratch: ScratchSpace) -> None:
    error = DeliveryError("received non-success status code: 500", sink="webhook")

    with (
        patch.object(Path, "unlink", side_effect=PermissionError("denied")),
        pytest.raises(DeliveryError) as exc_info,
        build_artifact(_result([{"x": 1}]), OutputFormat.CSV, scratch=scratch),
    ):
        raise error

    assert exc_info.value is error


def test_json_artifact(scratch: ScratchSpace) -> None:
    with build_artifact(_result([{"x": 1}]), OutputFormat.JSON, scratch=scratch) as artifact:
        assert artifact.filename.endswith(".json")
        assert artifact.content_type == "application/json"
        assert json.loads(artifact.read_bytes())["data"] == [{"x": 1}]


def test_concurrent_artifacts_get_distinct_paths(scratch: ScratchSpace) -> None:
    result = _result([{"x": 1}])

    with (
        build_artifact(result, OutputFormat.CSV, scratch=scratch) as first,
        build_artifact(result, OutputFormat.CSV, scratch=scratch) as second,
    ):
        assert first.path != second.path


def test_unwritable_scratch_raises_encoding_error(tmp_path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way", encoding="utf-8")

    with pytest.raises(EncodingError, match="failed to create csv file") as exc_info:  # noqa: PT012
        with build_artifact(_result([]), OutputFormat.CSV, scratch=ScratchSpace(root=blocker)):
            pass
    assert exc_info.value.stage == "encode"


def test_default_scratch_is_shared_instance(scratch: ScratchSpace) -> None:
    with build_artifact(_result([{"x": 1}]), OutputFormat.CSV) as artifact:
        assert artifact.path.parent == scratch.root
