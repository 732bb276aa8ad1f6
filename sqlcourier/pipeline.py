"""Pipeline: execute a task's query and deliver the result.

Stages run strictly in sequence: connect → query → encode → deliver.  A
failing stage aborts the run; its :class:`PipelineError` is stamped with the
task name and re-raised as-is.  Nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlcourier.codec import build_artifact
from sqlcourier.columns import extract_columns
from sqlcourier.config import settings
from sqlcourier.delivery.router import DeliveryRouter
from sqlcourier.errors import PipelineError
from sqlcourier.executor import QueryExecutor
from sqlcourier.models import OutputFormat
from sqlcourier.store import ConfigStore

if TYPE_CHECKING:
    from sqlcourier.models import Task
    from sqlcourier.result import Row
    from sqlcourier.scratch import ScratchSpace

logger = logging.getLogger(__name__)


class Mode(StrEnum):
    """``run`` is the scheduled production path; ``test`` is a capped dry-run.

    A test run still delivers to the real destination.
    """

    RUN = "run"
    TEST = "test"


@dataclass
class PipelineReport:
    """Outcome of a successful pipeline run."""

    task: str
    mode: Mode
    destination: str
    row_count: int
    elapsed: float
    sample_row: Row | None = None


class Pipeline:
    """Wires the executor, codec, and delivery router together.

    Args:
        store: Source of database and destination definitions.
        executor: Runs queries; inject one with a custom connector in tests.
        router: Delivers artifacts.
        scratch: Where artifacts are written (defaults to the shared one).
    """

    def __init__(
        self,
        store: ConfigStore | None = None,
        executor: QueryExecutor | None = None,
        router: DeliveryRouter | None = None,
        scratch: ScratchSpace | None = None,
    ) -> None:
        self._store = store or ConfigStore()
        self._executor = executor or QueryExecutor()
        self._router = router or DeliveryRouter()
        self._scratch = scratch

    async def run(self, task: Task, mode: Mode = Mode.RUN) -> PipelineReport:
        """Run *task* once in *mode*.

        Raises:
            PipelineError: any stage failed; ``task`` and ``stage`` are set.
        """
        logger.info("Running task '%s' (mode=%s, database=%s)", task.name, mode, task.database)
        try:
            db = self._store.get_database(task.database)
            destination = self._store.get_destination(task.destination)
            if mode is Mode.TEST:
                logger.warning(
                    "Test run of '%s' delivers for real to destination '%s'",
                    task.name,
                    destination.name,
                )

            row_limit = settings.dry_run_row_limit if mode is Mode.TEST else None
            result = await self._executor.execute(db, task.query, row_limit, task_id=task.name)

            column_order: list[str] = []
            if task.output_format is OutputFormat.CSV:
                column_order = extract_columns(task.query)
            with build_artifact(
                result, task.output_format, column_order, scratch=self._scratch
            ) as artifact:
                await self._router.deliver(destination, artifact, task.message)
        except PipelineError as exc:
            exc.task = exc.task or task.name
            logger.error("Task '%s' failed at stage %s: %s", task.name, exc.stage, exc.message)
            raise

        logger.info(
            "Task '%s' delivered %d rows to '%s'", task.name, result.row_count, destination.name
        )
        return PipelineReport(
            task=task.name,
            mode=mode,
            destination=destination.name,
            row_count=result.row_count,
            elapsed=result.elapsed,
            sample_row=result.rows[0] if mode is Mode.TEST and result.rows else None,
        )

    async def run_task(
        self,
        name: str,
        mode: Mode = Mode.RUN,
        *,
        timeout: float | None = None,
    ) -> PipelineReport:
        """Look up task *name* and run it under a deadline.

        Raises:
            ConfigError: no task named *name*.
            TimeoutError: the deadline (``settings.task_timeout`` by default)
                passed; the in-flight query or request is cancelled.
        """
        try:
            task = self._store.get_task(name)
        except PipelineError as exc:
            exc.task = exc.task or name
            raise
        async with asyncio.timeout(timeout if timeout is not None else settings.task_timeout):
            return await self.run(task, mode)
