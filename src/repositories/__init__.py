"""SQLite adapters for the sharing ports."""

from src.repositories.principals import SqlitePrincipalDirectory
from src.repositories.shares import SqliteShareRepository
from src.repositories.tasks import SqliteTaskRepository


__all__ = [
    "SqlitePrincipalDirectory",
    "SqliteShareRepository",
    "SqliteTaskRepository",
]
