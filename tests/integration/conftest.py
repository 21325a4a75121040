"""Pytest configuration and fixtures for integration tests."""

from collections.abc import AsyncIterator
from datetime import datetime
from pathlib import Path

import pytest

from src.core.db_client import Database
from src.interface.dependencies import SharingServices
from tests.unit.mocks import FIXED_NOW, FrozenClock


class Seeder:
    """Writes rows owned by external systems (identity, Task Store) straight into SQLite."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def principal(
        self,
        principal_id: str,
        username: str,
        email: str | None = None,
        role: str = "member",
    ) -> None:
        await self._db.execute(
            "INSERT INTO principals (id, username, email, role) VALUES (?, ?, ?, ?)",
            (principal_id, username, email, role),
        )

    async def task(
        self,
        task_id: str,
        owner_id: str,
        title: str,
        scheduled_date: datetime | None = FIXED_NOW,
        **extra: object,
    ) -> None:
        columns = ["id", "owner_id", "title", "scheduled_date", *extra]
        values = [task_id, owner_id, title, scheduled_date, *extra.values()]
        await self._db.execute(
            f"INSERT INTO tasks ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",  # noqa: S608
            values,
        )


@pytest.fixture
async def seeded_db(sqlite_db: Database) -> Database:
    """SQLite database with alice, bob, carol and an admin, plus two of alice's tasks."""
    seed = Seeder(sqlite_db)
    await seed.principal("u-alice", "alice", "alice@example.com")
    await seed.principal("u-bob", "bob", "Bob@Example.com")
    await seed.principal("u-carol", "carol", "carol@example.com")
    await seed.principal("u-admin", "admin", "admin@example.com", role="admin")
    await seed.task("t-1", "u-alice", "Standup", notes="agenda")
    await seed.task("t-2", "u-alice", "Dentist")
    return sqlite_db


@pytest.fixture
def sqlite_services(seeded_db: Database, clock: FrozenClock) -> SharingServices:
    """Services wired to the SQLite adapters."""
    return SharingServices.for_database(seeded_db, clock=clock)


@pytest.fixture
async def second_connection(sqlite_path: Path, seeded_db: Database) -> AsyncIterator[Database]:
    """An independent connection to the same database file, as a second worker process would hold."""
    database = Database(db_path=str(sqlite_path), busy_timeout_ms=5000)
    yield database
    await database.close()
