"""Effective permission of a principal over one task, derived from live share state.

Nothing here is cached: every call reads the shares as they are committed right
now, so a revoke or a scope change takes effect on the very next check.
"""

import logging
from dataclasses import dataclass

from src.core.logging import span
from src.core.ports import ShareRepository, TaskRepository
from src.domain.share import ACTIVE_STATES, Permission, Share, ShareState
from src.domain.task import Task


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of evaluating one principal against one task."""

    permission: Permission | None
    # An active share (pending or accepted) from the task owner covers the task
    related: bool
    is_owner: bool = False
    share: Share | None = None


class AccessControlEvaluator:
    """Computes effective permissions from the current state of shares."""

    def __init__(self, *, shares: ShareRepository, tasks: TaskRepository) -> None:
        self._shares = shares
        self._tasks = tasks

    async def effective_permission(self, principal_id: str, task_id: str) -> Permission | None:
        """Return the permission `principal_id` holds over `task_id`, or None.

        A missing task yields None. The owner always holds FULL, independent of
        any share.
        """
        with span("access_control.effective_permission"):
            task = await self._tasks.get_task(task_id)
            if task is None:
                return None
            decision = await self.evaluate(principal_id, task)
            return decision.permission

    async def evaluate(self, principal_id: str, task: Task) -> AccessDecision:
        """Evaluate a principal against an already loaded task.

        Only accepted shares grant a permission. Pending shares still count as a
        relationship so callers can answer "forbidden" rather than "not found".
        When several accepted shares qualify, the highest level wins.
        """
        if principal_id == task.owner_id:
            return AccessDecision(permission=Permission.FULL, related=True, is_owner=True)

        candidates = await self._shares.list_between(task.owner_id, principal_id, states=ACTIVE_STATES)
        covering = [share for share in candidates if share.covers(task)]
        if not covering:
            return AccessDecision(permission=None, related=False)

        accepted = [share for share in covering if share.state == ShareState.ACCEPTED]
        if not accepted:
            return AccessDecision(permission=None, related=True)

        if len(accepted) > 1:
            logger.warning(
                "Multiple accepted shares cover one task",
                extra={"task_id": task.id, "principal_id": principal_id, "share_ids": [s.id for s in accepted]},
            )

        best = max(accepted, key=lambda share: share.permission.rank)
        return AccessDecision(permission=best.permission, related=True, share=best)
