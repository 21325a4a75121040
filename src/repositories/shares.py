"""SQLite-backed share repository."""

import json
import logging
from collections.abc import Collection
from typing import Any

import aiosqlite

from src.core.db_client import Database, DatabaseError
from src.core.errors import DuplicateActiveShareError
from src.domain.share import Share, ShareDraft, ShareState


logger = logging.getLogger(__name__)

_MUTABLE_COLUMNS = (
    "permission",
    "scope_type",
    "selected_task_ids",
    "state",
    "message",
    "updated_at",
    "accepted_at",
    "declined_at",
    "revoked_at",
)


def _row_to_share(row: dict[str, Any]) -> Share:
    record = dict(row)
    record["id"] = str(record["id"])
    record["selected_task_ids"] = json.loads(record.get("selected_task_ids") or "[]")
    return Share.model_validate(record)


def _states_clause(states: Collection[ShareState]) -> tuple[str, list[str]]:
    values = [str(state) for state in states]
    return f"state IN ({', '.join('?' for _ in values)})", values


class SqliteShareRepository:
    """Share storage on the `shares` table.

    The partial unique index `idx_shares_active_pair` is what guarantees a
    single pending-or-accepted share per (owner, recipient) pair.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    async def insert(self, draft: ShareDraft) -> Share:
        data = draft.model_dump(mode="json")
        columns = list(data)
        query = f"INSERT INTO shares ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})"  # noqa: S608

        try:
            cursor = await self._db.execute(query, data.values())
        except aiosqlite.IntegrityError as e:
            if "UNIQUE" in str(e):
                logger.info(
                    "Rejected duplicate active share",
                    extra={"owner_id": draft.owner_id, "recipient_id": draft.recipient_id},
                )
                raise DuplicateActiveShareError from e
            logger.error("insert_share_failed", extra={"owner_id": draft.owner_id, "error": str(e)})
            msg = f"Failed to insert share: {e}"
            raise DatabaseError(msg) from e

        share = await self.get(str(cursor.lastrowid))
        if share is None:
            msg = f"Inserted share {cursor.lastrowid} could not be read back"
            raise DatabaseError(msg)

        logger.info("Created share record", extra={"share_id": share.id})
        return share

    async def get(self, share_id: str) -> Share | None:
        if not share_id.isdigit():
            return None
        row = await self._db.fetch_one("SELECT * FROM shares WHERE id = ?", (int(share_id),))
        return _row_to_share(row) if row else None

    async def save(self, share: Share) -> Share:
        data = share.model_dump(mode="json", include=set(_MUTABLE_COLUMNS))
        set_clause = ", ".join(f"{column} = ?" for column in _MUTABLE_COLUMNS)
        values = [data[column] for column in _MUTABLE_COLUMNS]
        values.append(int(share.id))

        try:
            cursor = await self._db.execute(f"UPDATE shares SET {set_clause} WHERE id = ?", values)  # noqa: S608
        except aiosqlite.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateActiveShareError from e
            msg = f"Failed to update share {share.id}: {e}"
            raise DatabaseError(msg) from e

        if cursor.rowcount == 0:
            msg = f"Share not found: {share.id}"
            raise KeyError(msg)

        logger.info("Updated share record", extra={"share_id": share.id, "state": str(share.state)})
        return share

    async def list_by_owner(self, owner_id: str, *, states: Collection[ShareState]) -> list[Share]:
        return await self._list("owner_id = ?", [owner_id], states)

    async def list_by_recipient(self, recipient_id: str, *, states: Collection[ShareState]) -> list[Share]:
        return await self._list("recipient_id = ?", [recipient_id], states)

    async def list_between(
        self,
        owner_id: str,
        recipient_id: str,
        *,
        states: Collection[ShareState],
    ) -> list[Share]:
        return await self._list("owner_id = ? AND recipient_id = ?", [owner_id, recipient_id], states)

    async def list_all(self) -> list[Share]:
        rows = await self._db.fetch_all("SELECT * FROM shares ORDER BY created_at ASC, id ASC")
        return [_row_to_share(row) for row in rows]

    async def _list(self, condition: str, params: list[Any], states: Collection[ShareState]) -> list[Share]:
        if not states:
            return []
        states_sql, state_params = _states_clause(states)
        query = f"SELECT * FROM shares WHERE {condition} AND {states_sql} ORDER BY created_at DESC, id DESC"  # noqa: S608
        rows = await self._db.fetch_all(query, [*params, *state_params])
        return [_row_to_share(row) for row in rows]
