"""Agenda item returned by the aggregated calendar views."""

from src.domain.share import Permission
from src.domain.task import Task


class AgendaItem(Task):
    """A task on a principal's agenda, tagged when it comes from someone else's share."""

    is_shared: bool = False
    share_id: str | None = None
    share_owner_id: str | None = None
    share_owner_username: str | None = None
    share_permission: Permission | None = None

    @classmethod
    def owned(cls, task: Task) -> "AgendaItem":
        return cls(**task.model_dump())

    @classmethod
    def shared(
        cls,
        task: Task,
        *,
        share_id: str,
        owner_id: str,
        owner_username: str,
        permission: Permission,
    ) -> "AgendaItem":
        return cls(
            **task.model_dump(),
            is_shared=True,
            share_id=share_id,
            share_owner_id=owner_id,
            share_owner_username=owner_username,
            share_permission=permission,
        )
