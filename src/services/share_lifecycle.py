"""Recipient-side lifecycle transitions for schedule shares."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from src.core.errors import NotFoundError
from src.core.logging import log_with_principal_context, span
from src.core.ports import ShareRepository, Transactional
from src.domain.share import Share, ShareState


logger = logging.getLogger(__name__)


# Allowed recipient transitions; owner/recipient revocation lives in the registry.
RECIPIENT_TRANSITIONS: dict[ShareState, set[ShareState]] = {
    ShareState.PENDING: {ShareState.ACCEPTED, ShareState.DECLINED_BY_RECIPIENT},
    ShareState.ACCEPTED: {ShareState.DECLINED_BY_RECIPIENT},
    ShareState.DECLINED_BY_RECIPIENT: set(),
    ShareState.REVOKED_BY_OWNER: set(),
    ShareState.REVOKED_BY_RECIPIENT: set(),
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ShareLifecycleManager:
    """Accept and decline transitions, performed by the share's recipient."""

    def __init__(
        self,
        *,
        shares: ShareRepository,
        database: Transactional,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._shares = shares
        self._db = database
        self._clock = clock

    async def accept(self, *, share_id: str, recipient_id: str) -> Share:
        """Accept a pending share. Accepting an already accepted share is a no-op.

        Raises:
            NotFoundError: If the share is missing, ended, or addressed to someone else
        """
        with span("share_lifecycle.accept"):
            async with self._db.transaction():
                share = await self._load_for_recipient(share_id=share_id, recipient_id=recipient_id)
                if share.state == ShareState.ACCEPTED:
                    return share

                now = self._clock()
                accepted = await self._transition(
                    share, ShareState.ACCEPTED, accepted_at=now, updated_at=now
                )

            log_with_principal_context(logger, "info", "Share accepted", principal_id=recipient_id, share_id=share_id)
            return accepted

    async def decline(self, *, share_id: str, recipient_id: str) -> Share:
        """Decline a pending or accepted share. The share stays visible to its owner.

        Raises:
            NotFoundError: If the share is missing, ended, or addressed to someone else
        """
        with span("share_lifecycle.decline"):
            async with self._db.transaction():
                share = await self._load_for_recipient(share_id=share_id, recipient_id=recipient_id)

                now = self._clock()
                declined = await self._transition(
                    share, ShareState.DECLINED_BY_RECIPIENT, declined_at=now, updated_at=now
                )

            log_with_principal_context(logger, "info", "Share declined", principal_id=recipient_id, share_id=share_id)
            return declined

    async def _load_for_recipient(self, *, share_id: str, recipient_id: str) -> Share:
        share = await self._shares.get(share_id)
        # One error for missing, ended and not-yours so share ids cannot be probed
        if share is None or share.recipient_id != recipient_id or share.is_terminal:
            raise NotFoundError
        return share

    async def _transition(self, share: Share, target: ShareState, **timestamps: datetime) -> Share:
        if target not in RECIPIENT_TRANSITIONS[share.state]:
            raise NotFoundError
        return await self._shares.save(share.model_copy(update={"state": target, **timestamps}))
