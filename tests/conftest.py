"""Pytest configuration and shared fixtures."""

import logging
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from src.core.db_client import Database, init_db
from tests.unit.mocks import FrozenClock


logger = logging.getLogger(__name__)


@pytest.fixture
def clock() -> FrozenClock:
    """Provide a clock frozen at FIXED_NOW."""
    return FrozenClock()


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    """Path to a throwaway SQLite database file."""
    return tmp_path / "schedshare_test.db"


@pytest.fixture
async def sqlite_db(sqlite_path: Path) -> AsyncIterator[Database]:
    """Provide an initialized SQLite database, closed after the test."""
    database = Database(db_path=str(sqlite_path), busy_timeout_ms=5000)
    await init_db(database)
    yield database
    await database.close()
