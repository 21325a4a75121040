"""Authorization gateway for changes recipients make to tasks shared with them.

Authorization and the Task Store write happen inside the same storage
transaction, and permission is re-derived from live share state on every call.
A revoke committed before the transaction starts wins; one committed after it
finds the update already applied.
"""

import logging
from collections.abc import Mapping
from typing import Any

from src.core.errors import ForbiddenError, InvalidPatchError, NotFoundError
from src.core.logging import log_with_principal_context, span
from src.core.ports import TaskRepository, Transactional
from src.domain.share import Permission
from src.domain.task import SHARED_TASK_EDITABLE_FIELDS, Task
from src.services.access_control import AccessControlEvaluator, AccessDecision


logger = logging.getLogger(__name__)


def filter_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only the fields a share recipient is allowed to change."""
    return {key: value for key, value in patch.items() if key in SHARED_TASK_EDITABLE_FIELDS}


class SharedMutationGateway:
    """Forwards update/delete requests on shared tasks once they are authorized."""

    def __init__(
        self,
        *,
        tasks: TaskRepository,
        evaluator: AccessControlEvaluator,
        database: Transactional,
    ) -> None:
        self._tasks = tasks
        self._evaluator = evaluator
        self._db = database

    async def update_shared_task(self, *, caller_id: str, task_id: str, patch: Mapping[str, Any]) -> Task:
        """Apply an allow-listed patch to a task the caller can edit.

        Args:
            caller_id: Authenticated principal making the change
            task_id: Task to change
            patch: Requested field changes; keys outside the allow-list are dropped

        Returns:
            The updated task

        Raises:
            NotFoundError: If the task is missing or no live share relates it to the caller
            ForbiddenError: If the share is pending or only grants view
            InvalidPatchError: If nothing in the patch may be changed
        """
        with span("shared_mutation_gateway.update_shared_task"):
            async with self._db.transaction():
                decision = await self._authorize(
                    caller_id=caller_id,
                    task_id=task_id,
                    required=Permission.EDIT,
                    operation="update",
                )

                allowed = filter_patch(patch)
                dropped = sorted(set(patch) - set(allowed))
                if dropped:
                    log_with_principal_context(
                        logger,
                        "warning",
                        "Dropped non-editable fields from shared task patch",
                        principal_id=caller_id,
                        task_id=task_id,
                        fields=dropped,
                    )
                if not allowed:
                    msg = "No valid updates provided"
                    raise InvalidPatchError(msg)

                try:
                    updated = await self._tasks.update_task_fields(task_id, allowed)
                except KeyError as e:
                    raise NotFoundError("Task not found") from e

            log_with_principal_context(
                logger,
                "info",
                "Shared task updated",
                principal_id=caller_id,
                task_id=task_id,
                share_id=decision.share.id if decision.share else None,
                fields=sorted(allowed),
            )
            return updated

    async def delete_shared_task(self, *, caller_id: str, task_id: str) -> None:
        """Delete a task the caller holds full access to.

        Raises:
            NotFoundError: If the task is missing or no live share relates it to the caller
            ForbiddenError: If the share is pending or grants less than full access
        """
        with span("shared_mutation_gateway.delete_shared_task"):
            async with self._db.transaction():
                decision = await self._authorize(
                    caller_id=caller_id,
                    task_id=task_id,
                    required=Permission.FULL,
                    operation="delete",
                )
                try:
                    await self._tasks.delete_task(task_id)
                except KeyError as e:
                    raise NotFoundError("Task not found") from e

            log_with_principal_context(
                logger,
                "info",
                "Shared task deleted",
                principal_id=caller_id,
                task_id=task_id,
                share_id=decision.share.id if decision.share else None,
            )

    async def _authorize(
        self,
        *,
        caller_id: str,
        task_id: str,
        required: Permission,
        operation: str,
    ) -> AccessDecision:
        task = await self._tasks.get_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")

        decision = await self._evaluator.evaluate(caller_id, task)
        if not decision.related:
            log_with_principal_context(
                logger,
                "info",
                "Shared task access denied: no relationship",
                principal_id=caller_id,
                task_id=task_id,
                operation=operation,
            )
            raise NotFoundError("Task not found")

        if decision.permission is None or not decision.permission.allows(required):
            log_with_principal_context(
                logger,
                "info",
                "Shared task access denied: insufficient permission",
                principal_id=caller_id,
                task_id=task_id,
                operation=operation,
                permission=str(decision.permission) if decision.permission else None,
            )
            msg = (
                f"You do not have permission to {operation} this task. "
                f"{required.value.capitalize()} access is required."
            )
            raise ForbiddenError(msg)

        return decision
