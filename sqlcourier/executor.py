"""QueryExecutor: run one query against one database and materialise the rows.

The driver is synchronous (``psycopg2``); every blocking call runs in
``asyncio.to_thread()``.  Each call to :meth:`QueryExecutor.execute` owns a
fresh connection, closed on every exit path.  If the awaiting task is
cancelled mid-query the server-side statement is cancelled too, and the
connection is closed once the worker thread lets go of it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import psycopg2

from sqlcourier.config import settings
from sqlcourier.errors import DatabaseConnectionError, QueryError
from sqlcourier.result import Row, TabularResult, decode_cell

if TYPE_CHECKING:
    from sqlcourier.models import DatabaseConfig

logger = logging.getLogger(__name__)

# DB-API 2.0 connection factory
Connector = Callable[["DatabaseConfig"], Any]


def connect_postgres(db: DatabaseConfig) -> Any:
    """Open a psycopg2 connection for *db*."""
    return psycopg2.connect(
        host=db.host,
        port=db.port,
        user=db.user,
        password=db.password,
        dbname=db.dbname,
        sslmode=db.sslmode,
        connect_timeout=settings.db_connect_timeout,
    )


def _close_quietly(conn: Any) -> None:
    try:
        conn.close()
    except Exception:
        logger.warning("Failed to close database connection", exc_info=True)


def _interrupt(conn: Any) -> None:
    """Ask the server to abandon the running statement, if the driver can.

    Runs in a worker thread: psycopg2 opens a separate connection to send the
    cancel request.
    """
    cancel = getattr(conn, "cancel", None)
    if cancel is None:
        return
    try:
        cancel()
    except Exception:
        logger.warning("Failed to cancel running statement", exc_info=True)


def _release_when_done(conn: Any | None = None) -> Callable[[asyncio.Future], None]:
    """Done-callback that closes the connection a worker thread was using.

    With *conn* omitted, the future's own result is the connection (used
    while connecting).
    """

    def callback(fut: asyncio.Future) -> None:
        if fut.cancelled():
            return
        if fut.exception() is not None:
            if conn is not None:
                _close_quietly(conn)
            return
        _close_quietly(conn if conn is not None else fut.result())

    return callback


def _ping(conn: Any) -> None:
    cursor = conn.cursor()
    try:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    finally:
        cursor.close()


def _fetch(conn: Any, query: str, row_limit: int | None) -> tuple[list[str], list[Row], float]:
    """Run *query* and decode up to *row_limit* rows. Runs in a worker thread."""
    cursor = conn.cursor()
    try:
        start = time.perf_counter()
        try:
            cursor.execute(query)
            columns = [desc[0] for desc in cursor.description or ()]
            raw = cursor.fetchall() if row_limit is None else cursor.fetchmany(row_limit)
        except Exception as exc:
            msg = f"failed to execute query: {exc}"
            raise QueryError(msg) from exc

        rows: list[Row] = []
        for index, values in enumerate(raw):
            try:
                pairs = zip(columns, values, strict=True)
                rows.append({col: decode_cell(val) for col, val in pairs})
            except Exception as exc:
                msg = f"failed to decode row {index}: {exc}"
                raise QueryError(msg) from exc
        return columns, rows, time.perf_counter() - start
    finally:
        cursor.close()


class QueryExecutor:
    """Executes queries one connection at a time.

    Args:
        connect: Factory ``(DatabaseConfig) -> DB-API connection``.  Defaults
            to :func:`connect_postgres`; tests pass sqlite3 or fakes.
    """

    def __init__(self, connect: Connector | None = None) -> None:
        self._connect = connect or connect_postgres

    async def execute(
        self,
        db: DatabaseConfig,
        query: str,
        row_limit: int | None = None,
        *,
        task_id: str = "",
    ) -> TabularResult:
        """Run *query* on *db* and return the materialised rows.

        With *row_limit* set, reading stops after that many rows and
        ``row_count`` reflects only the rows read.

        Raises:
            DatabaseConnectionError: connect or ping failed.
            QueryError: the statement failed or a row could not be decoded.
        """
        conn = await self._open(db)
        captured = TabularResult(task_id=task_id)

        fetch = asyncio.ensure_future(asyncio.to_thread(_fetch, conn, query, row_limit))
        fetch.add_done_callback(_release_when_done(conn))
        try:
            columns, rows, elapsed = await asyncio.shield(fetch)
        except asyncio.CancelledError:
            logger.warning("Query for '%s' cancelled; cancelling statement on server", task_id)
            await asyncio.to_thread(_interrupt, conn)
            raise

        captured.columns = columns
        captured.rows = rows
        captured.row_count = len(rows)
        captured.elapsed = elapsed
        logger.info(
            "Query for '%s' returned %d rows in %.3fs%s",
            task_id,
            captured.row_count,
            elapsed,
            f" (limit {row_limit})" if row_limit is not None else "",
        )
        return captured

    async def _open(self, db: DatabaseConfig) -> Any:
        """Connect and ping. The caller owns the returned connection."""
        connecting = asyncio.ensure_future(asyncio.to_thread(self._connect, db))
        try:
            conn = await asyncio.shield(connecting)
        except asyncio.CancelledError:
            connecting.add_done_callback(_release_when_done())
            raise
        except Exception as exc:
            msg = f"failed to connect to database '{db.name}': {exc}"
            raise DatabaseConnectionError(msg) from exc

        pinging = asyncio.ensure_future(asyncio.to_thread(_ping, conn))
        try:
            await asyncio.shield(pinging)
        except asyncio.CancelledError:
            pinging.add_done_callback(_release_when_done(conn))
            await asyncio.to_thread(_interrupt, conn)
            raise
        except Exception as exc:
            _close_quietly(conn)
            msg = f"failed to ping database '{db.name}': {exc}"
            raise DatabaseConnectionError(msg) from exc

        logger.debug("Connected to database '%s' (%s:%d)", db.name, db.host, db.port)
        return conn
