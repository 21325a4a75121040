"""Merged agenda of a principal's own tasks and the tasks shared with them."""

import logging
from datetime import UTC, datetime, timedelta

from src.core.logging import span
from src.core.ports import PrincipalDirectory, ShareRepository, TaskRepository
from src.domain.agenda import AgendaItem
from src.domain.share import ShareState
from src.domain.task import Task


logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # Naive timestamps from the Task Store are UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def day_window(now: datetime) -> tuple[datetime, datetime]:
    """Return `[00:00, 24:00)` of the calendar day containing `now`, in `now`'s timezone."""
    start = _aware(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def agenda_sort_key(item: AgendaItem) -> tuple[datetime, int, str]:
    """Scheduled time, then owned before shared, then task id."""
    scheduled = item.scheduled_date or datetime.min
    return (_aware(scheduled), 1 if item.is_shared else 0, item.id)


def _is_listable(task: Task) -> bool:
    return task.scheduled_date is not None and not task.archived


class AggregatedViewBuilder:
    """Builds calendar views that mix owned and shared tasks."""

    def __init__(
        self,
        *,
        shares: ShareRepository,
        tasks: TaskRepository,
        principals: PrincipalDirectory,
    ) -> None:
        self._shares = shares
        self._tasks = tasks
        self._principals = principals

    async def build_upcoming(self, principal_id: str, now: datetime, horizon: datetime) -> list[AgendaItem]:
        """Own tasks due in `[now, horizon]` merged with today's shared tasks.

        Args:
            principal_id: Principal whose agenda is built
            now: Current instant; also fixes the calendar day for shared items
            horizon: Inclusive end of the window for owned tasks

        Returns:
            Agenda items sorted by scheduled time
        """
        with span("aggregated_view.build_upcoming"):
            start, end = _aware(now), _aware(horizon)

            owned = [
                AgendaItem.owned(task)
                for task in await self._tasks.list_tasks_by_owner(principal_id)
                if _is_listable(task) and start <= _aware(task.scheduled_date) <= end  # type: ignore[arg-type]
            ]
            shared = await self._collect_shared(principal_id, now)

            seen = {item.id for item in owned}
            items = owned + [item for item in shared if item.id not in seen]
            items.sort(key=agenda_sort_key)

            logger.debug(
                "Built upcoming agenda",
                extra={"principal_id": principal_id, "owned": len(owned), "shared": len(items) - len(owned)},
            )
            return items

    async def list_shared_events(self, recipient_id: str, now: datetime) -> list[AgendaItem]:
        """Today's tasks from every accepted share addressed to the recipient."""
        with span("aggregated_view.list_shared_events"):
            items = await self._collect_shared(recipient_id, now)
            items.sort(key=agenda_sort_key)
            return items

    async def _collect_shared(self, recipient_id: str, now: datetime) -> list[AgendaItem]:
        day_start, day_end = day_window(now)
        shares = await self._shares.list_by_recipient(recipient_id, states={ShareState.ACCEPTED})

        by_task: dict[str, AgendaItem] = {}
        for share in shares:
            owner = await self._principals.get(share.owner_id)
            owner_username = owner.display_name if owner else share.owner_id

            for task in await self._tasks.list_tasks_by_owner(share.owner_id):
                if not _is_listable(task) or not share.covers(task):
                    continue
                if not day_start <= _aware(task.scheduled_date) < day_end:  # type: ignore[arg-type]
                    continue

                existing = by_task.get(task.id)
                if existing is not None and existing.share_permission is not None:
                    if existing.share_permission.rank >= share.permission.rank:
                        continue
                by_task[task.id] = AgendaItem.shared(
                    task,
                    share_id=share.id,
                    owner_id=share.owner_id,
                    owner_username=owner_username,
                    permission=share.permission,
                )

        return list(by_task.values())
