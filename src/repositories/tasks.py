"""SQLite adapter for the Task Store contract."""

import logging
from collections.abc import Mapping
from typing import Any

import aiosqlite

from src.core.db_client import Database
from src.core.errors import InvalidPatchError
from src.domain.task import Task


logger = logging.getLogger(__name__)

# Columns this adapter will ever write; identity and ownership are excluded.
_WRITABLE_COLUMNS = frozenset(Task.model_fields) - {"id", "owner_id", "created_at"}


class SqliteTaskRepository:
    """Reads and writes tasks on the `tasks` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get_task(self, task_id: str) -> Task | None:
        row = await self._db.fetch_one("SELECT * FROM tasks WHERE id = ?", (task_id,))
        return Task.model_validate(row) if row else None

    async def list_tasks_by_owner(self, owner_id: str) -> list[Task]:
        rows = await self._db.fetch_all(
            "SELECT * FROM tasks WHERE owner_id = ? ORDER BY scheduled_date ASC, id ASC",
            (owner_id,),
        )
        return [Task.model_validate(row) for row in rows]

    async def update_task_fields(self, task_id: str, fields: Mapping[str, Any]) -> Task:
        if not fields:
            msg = "Empty update payload"
            raise ValueError(msg)

        unknown = set(fields) - _WRITABLE_COLUMNS
        if unknown:
            msg = f"Unsupported task fields: {sorted(unknown)}"
            raise ValueError(msg)

        columns = list(fields)
        set_clause = ", ".join(f"{column} = ?" for column in columns)
        try:
            cursor = await self._db.execute(
                f"UPDATE tasks SET {set_clause} WHERE id = ?",  # noqa: S608
                [*(fields[column] for column in columns), task_id],
            )
        except aiosqlite.IntegrityError as e:
            logger.warning(
                "Rejected task update violating a column constraint",
                extra={"task_id": task_id, "fields": columns, "error": str(e)},
            )
            msg = "Title, category and priority cannot be cleared"
            raise InvalidPatchError(msg) from e
        if cursor.rowcount == 0:
            msg = f"Task not found: {task_id}"
            raise KeyError(msg)

        logger.info("Updated task record", extra={"task_id": task_id, "fields": columns})
        task = await self.get_task(task_id)
        if task is None:
            msg = f"Task not found: {task_id}"
            raise KeyError(msg)
        return task

    async def delete_task(self, task_id: str) -> None:
        cursor = await self._db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        if cursor.rowcount == 0:
            msg = f"Task not found: {task_id}"
            raise KeyError(msg)

        logger.info("Deleted task record", extra={"task_id": task_id})
