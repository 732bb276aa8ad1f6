"""Exception taxonomy for the query → deliver pipeline.

Every error the pipeline raises derives from :class:`PipelineError`.  The
orchestrator stamps ``task`` and ``stage`` onto the instance before
re-raising it, so callers always see the original type with enough context
to act on.  Cancellation is not part of this hierarchy: it propagates as
``asyncio.CancelledError``.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    default_stage = ""

    def __init__(self, message: str, *, task: str | None = None, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.task = task
        self.stage = stage or self.default_stage

    def __str__(self) -> str:
        context = "/".join(part for part in (self.task, self.stage) if part)
        if context:
            return f"[{context}] {self.message}"
        return self.message


class ConfigError(PipelineError):
    """A task, database, or destination definition is missing or invalid."""

    default_stage = "config"


class DatabaseConnectionError(PipelineError):
    """The database could not be reached, authenticated against, or pinged."""

    default_stage = "connect"


class QueryError(PipelineError):
    """The statement failed to run or a row failed to decode."""

    default_stage = "query"


class EncodingError(PipelineError):
    """The delivery artifact could not be built."""

    default_stage = "encode"


class NotSupportedError(PipelineError):
    """The destination kind is recognised but has no delivery implementation."""

    default_stage = "deliver"


class DeliveryError(PipelineError):
    """A sink rejected the artifact or could not be reached.

    Attributes:
        sink: ``"slack"``, ``"webhook"`` or ``"unknown"``.
        status_code: HTTP status for webhook rejections.
        cause: Underlying exception, when there is one.
    """

    default_stage = "deliver"

    def __init__(
        self,
        message: str,
        *,
        sink: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
        task: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, task=task, stage=stage)
        self.sink = sink
        self.status_code = status_code
        self.cause = cause
