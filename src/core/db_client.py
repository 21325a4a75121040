"""SQLite database client wrapper with transaction support."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from src.core.config import settings


logger = logging.getLogger(__name__)


class DatabaseError(RuntimeError):
    """Raised when the storage layer fails for reasons other than a constraint."""


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def to_db_value(value: Any) -> Any:
    """Convert a Python value into something SQLite can store."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict | list | tuple):
        return json.dumps(list(value) if isinstance(value, tuple) else value)
    if isinstance(value, bool):
        return int(value)
    return value


class Database:
    """One aiosqlite connection plus explicit, serialized transactions.

    The connection runs in autocommit mode; `transaction()` opens
    `BEGIN IMMEDIATE` so a transaction holds the SQLite write lock from its
    first statement. Statements issued on this connection outside a transaction
    wait for any in-flight transaction so they only ever observe committed state.
    Work started inside `transaction()` (including nested calls) joins it.
    """

    def __init__(self, *, db_path: str | None = None, busy_timeout_ms: int | None = None) -> None:
        self._path = get_db_path(db_path)
        self._busy_timeout_ms = busy_timeout_ms if busy_timeout_ms is not None else settings.sqlite_busy_timeout_ms
        self._conn: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()
        self._tx_lock = asyncio.Lock()
        self._in_transaction: ContextVar[bool] = ContextVar(f"schedshare_tx_{id(self)}", default=False)

    @property
    def path(self) -> Path:
        return self._path

    async def connect(self) -> aiosqlite.Connection:
        """Get or lazily open the underlying connection."""
        if self._conn is not None:
            return self._conn

        async with self._connect_lock:
            # Double-check after acquiring lock
            if self._conn is not None:
                return self._conn

            self._path.parent.mkdir(parents=True, exist_ok=True)

            conn = await aiosqlite.connect(str(self._path), isolation_level=None)
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA foreign_keys = ON")
            await conn.execute("PRAGMA journal_mode = WAL")
            await conn.execute(f"PRAGMA busy_timeout = {int(self._busy_timeout_ms)}")

            self._conn = conn
            logger.info("Created new SQLite connection", extra={"db_path": str(self._path)})
            return conn

    async def close(self) -> None:
        """Close the connection if it is open."""
        if self._conn is None:
            return

        try:
            await self._conn.close()
            logger.info("Closed SQLite connection", extra={"db_path": str(self._path)})
        except aiosqlite.Error as e:
            logger.warning("Error closing SQLite connection", extra={"error": str(e), "db_path": str(self._path)})
        finally:
            self._conn = None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed block as one atomic write transaction."""
        if self._in_transaction.get():
            yield
            return

        async with self._tx_lock:
            conn = await self.connect()
            token = self._in_transaction.set(True)
            try:
                await conn.execute("BEGIN IMMEDIATE")
            except aiosqlite.Error as e:
                self._in_transaction.reset(token)
                logger.error("begin_transaction_failed", extra={"error": str(e)})
                msg = f"Failed to start transaction: {e}"
                raise DatabaseError(msg) from e

            try:
                yield
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
            else:
                await conn.execute("COMMIT")
            finally:
                self._in_transaction.reset(token)

    @asynccontextmanager
    async def _statement_guard(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._in_transaction.get():
            yield await self.connect()
            return
        async with self._tx_lock:
            yield await self.connect()

    async def execute(self, query: str, params: Iterable[Any] = ()) -> aiosqlite.Cursor:
        """Execute a write statement.

        Raises:
            aiosqlite.IntegrityError: Propagated untouched so repositories can map constraints
            DatabaseError: For any other storage failure
        """
        values = [to_db_value(p) for p in params]
        async with self._statement_guard() as conn:
            try:
                return await conn.execute(query, values)
            except aiosqlite.IntegrityError:
                raise
            except aiosqlite.Error as e:
                logger.error("execute_failed", extra={"error": str(e)})
                msg = f"Failed to execute statement: {e}"
                raise DatabaseError(msg) from e

    async def fetch_one(self, query: str, params: Iterable[Any] = ()) -> dict[str, Any] | None:
        """Return the first row of a query as a dict, or None."""
        values = [to_db_value(p) for p in params]
        async with self._statement_guard() as conn:
            try:
                cursor = await conn.execute(query, values)
                row = await cursor.fetchone()
            except aiosqlite.Error as e:
                logger.error("fetch_one_failed", extra={"error": str(e)})
                msg = f"Failed to fetch row: {e}"
                raise DatabaseError(msg) from e
        return dict(row) if row is not None else None

    async def fetch_all(self, query: str, params: Iterable[Any] = ()) -> list[dict[str, Any]]:
        """Return all rows of a query as dicts."""
        values = [to_db_value(p) for p in params]
        async with self._statement_guard() as conn:
            try:
                cursor = await conn.execute(query, values)
                rows = await cursor.fetchall()
            except aiosqlite.Error as e:
                logger.error("fetch_all_failed", extra={"error": str(e)})
                msg = f"Failed to fetch rows: {e}"
                raise DatabaseError(msg) from e
        return [dict(row) for row in rows]


async def init_db(database: Database) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from src.core import schema

    await schema.init_db(database)
