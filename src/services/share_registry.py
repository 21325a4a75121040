"""Share registry: create, list, update and revoke schedule shares.

Shares are soft-deactivated, never deleted. Uniqueness of the active share per
(owner, recipient) pair is left to the repository, which enforces it in the
store itself; this module never does check-then-insert.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from src.core.config import constants, settings
from src.core.errors import (
    ForbiddenError,
    InvalidScopeError,
    NotFoundError,
    RecipientNotFoundError,
    SelfShareForbiddenError,
)
from src.core.logging import log_with_principal_context, span
from src.core.ports import PrincipalDirectory, ShareRepository, TaskRepository, Transactional
from src.domain.share import (
    ACTIVE_STATES,
    Permission,
    ReceivedShare,
    ScopeType,
    Share,
    ShareDraft,
    ShareState,
    ShareUpdate,
)
from src.models.service_models import RecipientMatch, SharedSchedule


logger = logging.getLogger(__name__)

# What an owner keeps seeing: live shares and the ones the recipient turned down.
OWNER_VISIBLE_STATES = frozenset({*ACTIVE_STATES, ShareState.DECLINED_BY_RECIPIENT})


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_selection(task_ids: list[str] | None) -> list[str]:
    """De-duplicate task ids, dropping blanks and keeping first-seen order."""
    if not task_ids:
        return []
    return list(dict.fromkeys(task_id for task_id in task_ids if task_id))


def mask_email(email: str | None) -> str | None:
    """Hide the local part of an email beyond its first characters."""
    if not email or "@" not in email:
        return email
    local, _, domain = email.partition("@")
    visible = local[: constants.MASKED_EMAIL_VISIBLE_CHARS]
    return f"{visible}***@{domain}"


class ShareRegistry:
    """Owner- and recipient-facing management of Share records."""

    def __init__(
        self,
        *,
        shares: ShareRepository,
        tasks: TaskRepository,
        principals: PrincipalDirectory,
        database: Transactional,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._shares = shares
        self._tasks = tasks
        self._principals = principals
        self._db = database
        self._clock = clock

    async def create(
        self,
        *,
        owner_id: str,
        recipient_identifier: str,
        permission: Permission = Permission.VIEW,
        scope_type: ScopeType = ScopeType.FULL,
        selected_task_ids: list[str] | None = None,
        message: str | None = None,
    ) -> Share:
        """Offer the owner's schedule to another principal.

        Args:
            owner_id: Principal sharing their schedule
            recipient_identifier: Recipient username (exact) or email (case-insensitive)
            permission: Level granted once accepted
            scope_type: Whole schedule or an explicit selection
            selected_task_ids: Task ids for a selective share; ignored for a full one
            message: Optional note for the recipient

        Returns:
            The new share, in the pending state

        Raises:
            RecipientNotFoundError: If the identifier matches nobody
            SelfShareForbiddenError: If the identifier resolves to the owner
            InvalidScopeError: If a selective share selects nothing or too much
            DuplicateActiveShareError: If a pending or accepted share already links the pair
        """
        with span("share_registry.create"):
            recipient = await self._principals.find_by_identifier(recipient_identifier)
            if recipient is None:
                log_with_principal_context(logger, "info", "Share recipient not found", principal_id=owner_id)
                raise RecipientNotFoundError

            if recipient.id == owner_id:
                raise SelfShareForbiddenError

            selection: list[str] = []
            if scope_type == ScopeType.SELECTIVE:
                selection = normalize_selection(selected_task_ids)
                if not selection:
                    msg = "Select at least one task for a selective share."
                    raise InvalidScopeError(msg)
                if len(selection) > settings.max_selected_tasks:
                    msg = f"A selective share can include at most {settings.max_selected_tasks} tasks."
                    raise InvalidScopeError(msg)

            now = self._clock()
            draft = ShareDraft(
                owner_id=owner_id,
                recipient_id=recipient.id,
                recipient_username=recipient.username,
                recipient_email=recipient.email,
                permission=permission,
                scope_type=scope_type,
                selected_task_ids=selection,
                state=ShareState.PENDING,
                message=message or None,
                created_at=now,
                updated_at=now,
            )

            async with self._db.transaction():
                share = await self._shares.insert(draft)

            log_with_principal_context(
                logger,
                "info",
                "Share created",
                principal_id=owner_id,
                share_id=share.id,
                recipient_id=recipient.id,
                permission=str(permission),
                scope_type=str(scope_type),
            )
            return share

    async def list_owner_shares(self, owner_id: str) -> list[Share]:
        """Shares the owner created that are live or were declined by the recipient.

        Shares the owner revoked are treated as forgotten and left out.
        """
        with span("share_registry.list_owner_shares"):
            return await self._shares.list_by_owner(owner_id, states=OWNER_VISIBLE_STATES)

    async def list_recipient_shares(self, recipient_id: str) -> list[ReceivedShare]:
        """Pending and accepted shares addressed to the recipient, with owner identity."""
        with span("share_registry.list_recipient_shares"):
            shares = await self._shares.list_by_recipient(recipient_id, states=ACTIVE_STATES)

            received = []
            for share in shares:
                owner = await self._principals.get(share.owner_id)
                received.append(
                    ReceivedShare(
                        **share.model_dump(),
                        owner_username=owner.username if owner else share.owner_id,
                        owner_email=owner.email if owner else None,
                    )
                )
            return received

    async def update(self, *, share_id: str, owner_id: str, patch: ShareUpdate) -> Share:
        """Change permission, scope, selection or message of a live share.

        Only fields present in the patch are applied. Switching to a full scope
        clears the selection. Switching to selective without ids keeps whatever
        selection the share had, which may leave it exposing nothing.

        Raises:
            NotFoundError: If the share is missing, not owned by the caller, or no longer active
        """
        with span("share_registry.update"):
            fields = patch.model_fields_set

            async with self._db.transaction():
                share = await self._shares.get(share_id)
                if share is None or share.owner_id != owner_id or not share.is_active:
                    raise NotFoundError

                changes: dict[str, object] = {}
                if "permission" in fields and patch.permission is not None:
                    changes["permission"] = patch.permission
                if "message" in fields:
                    changes["message"] = patch.message or None

                scope_type = patch.scope_type if "scope_type" in fields and patch.scope_type else share.scope_type
                changes["scope_type"] = scope_type
                if scope_type == ScopeType.FULL:
                    changes["selected_task_ids"] = []
                elif "selected_task_ids" in fields and patch.selected_task_ids is not None:
                    changes["selected_task_ids"] = normalize_selection(patch.selected_task_ids)
                elif share.scope_type == ScopeType.FULL:
                    changes["selected_task_ids"] = []

                selection = changes.get("selected_task_ids", share.selected_task_ids)
                if isinstance(selection, list) and len(selection) > settings.max_selected_tasks:
                    msg = f"A selective share can include at most {settings.max_selected_tasks} tasks."
                    raise InvalidScopeError(msg)

                changes["updated_at"] = self._clock()
                updated = await self._shares.save(share.model_copy(update=changes))

            if updated.scope_type == ScopeType.SELECTIVE and not updated.selected_task_ids:
                log_with_principal_context(
                    logger,
                    "warning",
                    "Share is active but its selection is empty",
                    principal_id=owner_id,
                    share_id=share_id,
                )

            log_with_principal_context(
                logger,
                "info",
                "Share updated",
                principal_id=owner_id,
                share_id=share_id,
                fields=sorted(fields),
            )
            return updated

    async def revoke(self, *, share_id: str, caller_id: str) -> Share:
        """End a live share. Either the owner or the recipient may do this.

        Raises:
            NotFoundError: If the share is missing, already ended, or unrelated to the caller
        """
        with span("share_registry.revoke"):
            async with self._db.transaction():
                share = await self._shares.get(share_id)
                if share is None or not share.is_active:
                    raise NotFoundError

                if caller_id == share.owner_id:
                    state = ShareState.REVOKED_BY_OWNER
                elif caller_id == share.recipient_id:
                    state = ShareState.REVOKED_BY_RECIPIENT
                else:
                    raise NotFoundError

                now = self._clock()
                revoked = await self._shares.save(
                    share.model_copy(update={"state": state, "revoked_at": now, "updated_at": now})
                )

            log_with_principal_context(
                logger,
                "info",
                "Share revoked",
                principal_id=caller_id,
                share_id=share_id,
                state=str(state),
            )
            return revoked

    async def get_shared_schedule(self, *, share_id: str, recipient_id: str) -> SharedSchedule:
        """Every scheduled, in-scope task visible through one accepted share.

        Raises:
            ForbiddenError: If the share is addressed to the caller but not yet accepted
            NotFoundError: If the share is missing, ended, or addressed to someone else
        """
        with span("share_registry.get_shared_schedule"):
            share = await self._shares.get(share_id)
            if share is None or share.recipient_id != recipient_id or not share.is_active:
                raise NotFoundError
            if share.state != ShareState.ACCEPTED:
                msg = "Accept this share to see the schedule."
                raise ForbiddenError(msg)

            owner_tasks = await self._tasks.list_tasks_by_owner(share.owner_id)
            visible = [
                task
                for task in owner_tasks
                if share.covers(task) and task.scheduled_date is not None and not task.archived
            ]
            visible.sort(key=lambda task: (task.scheduled_date, task.id))

            return SharedSchedule(share=share, permission=share.permission, tasks=visible)

    async def search_recipients(self, *, caller_id: str, query: str) -> list[RecipientMatch]:
        """Suggest principals to share with, masking their emails."""
        with span("share_registry.search_recipients"):
            query = query.strip()
            if len(query) < constants.MIN_SEARCH_QUERY_LENGTH:
                return []

            # Over-fetch by one so excluding the caller still fills the page
            candidates = await self._principals.search(query, limit=settings.user_search_limit + 1)
            return [
                RecipientMatch(id=principal.id, username=principal.username, email=mask_email(principal.email))
                for principal in candidates
                if principal.id != caller_id
            ][: settings.user_search_limit]
