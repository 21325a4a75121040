"""SQLite-backed principal directory."""

from src.core.db_client import Database
from src.domain.principal import Principal


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlitePrincipalDirectory:
    """Looks principals up in the `principals` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, principal_id: str) -> Principal | None:
        row = await self._db.fetch_one("SELECT * FROM principals WHERE id = ?", (principal_id,))
        return Principal.model_validate(row) if row else None

    async def find_by_identifier(self, identifier: str) -> Principal | None:
        username = identifier.strip()
        normalized_email = username.lower()
        # Prefer an exact username match over an email match
        row = await self._db.fetch_one(
            """
            SELECT * FROM principals
            WHERE username = ? OR LOWER(email) = ?
            ORDER BY CASE WHEN username = ? THEN 0 ELSE 1 END
            LIMIT 1
            """,
            (username, normalized_email, username),
        )
        return Principal.model_validate(row) if row else None

    async def search(self, query: str, *, limit: int) -> list[Principal]:
        pattern = f"%{_escape_like(query.lower())}%"
        rows = await self._db.fetch_all(
            """
            SELECT * FROM principals
            WHERE LOWER(username) LIKE ? ESCAPE '\\' OR LOWER(COALESCE(email, '')) LIKE ? ESCAPE '\\'
            ORDER BY username ASC
            LIMIT ?
            """,
            (pattern, pattern, limit),
        )
        return [Principal.model_validate(row) for row in rows]
