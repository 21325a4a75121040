"""SQLite schema management (code-first approach)."""

import logging

from src.core.db_client import Database


logger = logging.getLogger(__name__)


# Central list of all tables in the schema
TABLES = [
    "principals",
    "tasks",
    "shares",
]

# States in which a share still grants (or may come to grant) access
ACTIVE_SHARE_STATES_SQL = "('pending', 'accepted')"

_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS principals (
        id TEXT PRIMARY KEY,
        username TEXT NOT NULL UNIQUE,
        email TEXT UNIQUE,
        role TEXT NOT NULL DEFAULT 'member' CHECK (role IN ('member', 'admin')),
        created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f+00:00', 'now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        title TEXT NOT NULL,
        category TEXT NOT NULL DEFAULT 'general',
        priority TEXT NOT NULL DEFAULT 'medium',
        timer INTEGER,
        scheduled_date TEXT,
        notes TEXT,
        youtube_url TEXT,
        completed INTEGER NOT NULL DEFAULT 0,
        archived INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f+00:00', 'now'))
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks (owner_id)",
    """
    CREATE TABLE IF NOT EXISTS shares (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        owner_id TEXT NOT NULL,
        recipient_id TEXT NOT NULL,
        recipient_username TEXT NOT NULL,
        recipient_email TEXT,
        permission TEXT NOT NULL CHECK (permission IN ('view', 'edit', 'full')),
        scope_type TEXT NOT NULL CHECK (scope_type IN ('full', 'selective')),
        selected_task_ids TEXT NOT NULL DEFAULT '[]',
        state TEXT NOT NULL CHECK (
            state IN ('pending', 'accepted', 'declined_by_recipient', 'revoked_by_owner', 'revoked_by_recipient')
        ),
        message TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        accepted_at TEXT,
        declined_at TEXT,
        revoked_at TEXT,
        CHECK (owner_id <> recipient_id)
    )
    """,
    # At most one pending-or-accepted share per (owner, recipient) pair.
    f"""
    CREATE UNIQUE INDEX IF NOT EXISTS idx_shares_active_pair
    ON shares (owner_id, recipient_id)
    WHERE state IN {ACTIVE_SHARE_STATES_SQL}
    """,
    "CREATE INDEX IF NOT EXISTS idx_shares_owner ON shares (owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_shares_recipient ON shares (recipient_id)",
]


async def init_db(database: Database) -> None:
    """Create all tables and indexes if they do not exist yet."""
    async with database.transaction():
        for statement in _STATEMENTS:
            await database.execute(statement)

    logger.info("Schema initialized", extra={"tables": TABLES, "db_path": str(database.path)})
