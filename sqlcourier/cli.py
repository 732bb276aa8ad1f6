"""sqlcourier command-line entry point.

Usage examples:
    # Scheduled production run (what the systemd unit invokes)
    sqlcourier run daily-signups

    # Dry-run: first few rows only, but delivered to the real destination
    sqlcourier test daily-signups

    # Show configured tasks
    sqlcourier list
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from sqlcourier.config import settings
from sqlcourier.errors import PipelineError
from sqlcourier.pipeline import Mode, Pipeline
from sqlcourier.store import ConfigStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlcourier", description="Run SQL tasks and deliver results"
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        help=f"Directory holding the definition files (default: {settings.config_dir})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Execute a task and deliver the full result")
    run.add_argument("task", help="Task name")

    test = sub.add_parser("test", help="Dry-run a task with a small row cap (delivers for real)")
    test.add_argument("task", help="Task name")

    sub.add_parser("list", help="List configured tasks")
    return parser


def _list_tasks(store: ConfigStore) -> int:
    tasks = store.list_tasks()
    if not tasks:
        print("No tasks configured.")
        return 0
    for task in tasks:
        schedule = task.schedule or "-"
        print(
            f"{task.name:24s} {task.database:16s} {task.output_format:5s} "
            f"→ {task.destination} [{schedule}]"
        )
    return 0


def _run(pipeline: Pipeline, name: str, mode: Mode) -> int:
    if mode is Mode.TEST:
        print(f"Testing task '{name}' (first {settings.dry_run_row_limit} rows)...")
        print("NOTE: a test run delivers to the real destination.\n")
    else:
        print(f"Running task '{name}'...")

    try:
        report = asyncio.run(pipeline.run_task(name, mode))
    except PipelineError as exc:
        print(f"\n❌ Task failed: {exc}", file=sys.stderr)
        return 1
    except TimeoutError:
        print(f"\n❌ Task '{name}' timed out after {settings.task_timeout:g}s", file=sys.stderr)
        return 1

    print(f"✓ Query returned {report.row_count} rows in {report.elapsed:.3f}s")
    print(f"✓ Delivered to '{report.destination}'")

    if mode is Mode.TEST:
        print("\nSample data (first row):")
        if report.sample_row is None:
            print("(no rows)")
        else:
            print(json.dumps(report.sample_row, indent=2, default=str, ensure_ascii=False))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    store = ConfigStore(args.config_dir)
    if args.command == "list":
        try:
            return _list_tasks(store)
        except PipelineError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1

    return _run(Pipeline(store=store), args.task, Mode(args.command))


if __name__ == "__main__":
    sys.exit(main())
