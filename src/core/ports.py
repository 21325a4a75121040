"""Ports (interfaces) the sharing services depend on.

Services receive these through their constructors instead of reaching for a
module-level client, so storage can be swapped (SQLite in production,
in-memory fakes in unit tests).
"""

from collections.abc import Collection, Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from src.domain.principal import Principal
from src.domain.share import Share, ShareDraft, ShareState
from src.domain.task import Task


class Transactional(Protocol):
    """Something that can run a block of reads and writes atomically."""

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Open a transaction; nested calls join the outer one."""
        ...


class ShareRepository(Protocol):
    """Storage for Share records. Shares are never hard-deleted."""

    async def insert(self, draft: ShareDraft) -> Share:
        """Insert a new share.

        Raises:
            DuplicateActiveShareError: If an active share already exists for the
                same (owner, recipient) pair. Enforced by the store, atomically.
        """
        ...

    async def get(self, share_id: str) -> Share | None: ...

    async def save(self, share: Share) -> Share:
        """Persist every mutable field of an existing share."""
        ...

    async def list_by_owner(self, owner_id: str, *, states: Collection[ShareState]) -> list[Share]: ...

    async def list_by_recipient(self, recipient_id: str, *, states: Collection[ShareState]) -> list[Share]: ...

    async def list_between(
        self,
        owner_id: str,
        recipient_id: str,
        *,
        states: Collection[ShareState],
    ) -> list[Share]: ...

    async def list_all(self) -> list[Share]: ...


class TaskRepository(Protocol):
    """The external Task Store, reduced to what sharing needs."""

    async def get_task(self, task_id: str) -> Task | None: ...

    async def list_tasks_by_owner(self, owner_id: str) -> list[Task]: ...

    async def update_task_fields(self, task_id: str, fields: Mapping[str, Any]) -> Task:
        """Apply an already allow-listed patch and return the updated task."""
        ...

    async def delete_task(self, task_id: str) -> None: ...


class PrincipalDirectory(Protocol):
    """Read-only view of the identity system."""

    async def get(self, principal_id: str) -> Principal | None: ...

    async def find_by_identifier(self, identifier: str) -> Principal | None:
        """Resolve an exact username or a case-insensitive email."""
        ...

    async def search(self, query: str, *, limit: int) -> list[Principal]: ...
