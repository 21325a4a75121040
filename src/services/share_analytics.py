"""Admin-only reporting over every share in the system."""

import logging
from datetime import UTC, date, datetime, timedelta

from src.core.config import constants, settings
from src.core.errors import ForbiddenError
from src.core.logging import span
from src.core.ports import PrincipalDirectory, ShareRepository
from src.domain.share import Permission, ScopeType, Share, ShareState
from src.models.service_models import (
    PermissionBreakdown,
    RecentActivity,
    ScopeBreakdown,
    ShareListPage,
    ShareStateCounts,
    ShareSummary,
    TimelineEntry,
)


logger = logging.getLogger(__name__)

REVOKED_STATES = frozenset({ShareState.REVOKED_BY_OWNER, ShareState.REVOKED_BY_RECIPIENT})

# Status filter accepted by the admin list
STATUS_FILTERS: dict[str, frozenset[ShareState]] = {
    "active": frozenset({ShareState.PENDING, ShareState.ACCEPTED}),
    "pending": frozenset({ShareState.PENDING}),
    "accepted": frozenset({ShareState.ACCEPTED}),
    "declined": frozenset({ShareState.DECLINED_BY_RECIPIENT}),
    "revoked": REVOKED_STATES,
}


def _utc_date(value: datetime) -> date:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).date()


def _ended_at(share: Share) -> datetime | None:
    if share.state == ShareState.DECLINED_BY_RECIPIENT:
        return share.declined_at or share.updated_at
    if share.state in REVOKED_STATES:
        return share.revoked_at or share.updated_at
    return None


class ShareAnalytics:
    """Summary, listing and timeline of shares for administrators."""

    def __init__(self, *, shares: ShareRepository, principals: PrincipalDirectory) -> None:
        self._shares = shares
        self._principals = principals

    async def summary(self, caller_id: str, now: datetime) -> ShareSummary:
        """Counts by lifecycle state, breakdowns of active shares, recent activity."""
        with span("share_analytics.summary"):
            await self._require_admin(caller_id)
            shares = await self._shares.list_all()
            active = [share for share in shares if share.is_active]

            since = now - timedelta(days=constants.RECENT_ACTIVITY_DAYS)
            recent_created = sum(1 for share in shares if _at_or_after(share.created_at, since))
            recent_accepted = sum(1 for share in shares if _at_or_after(share.accepted_at, since))

            return ShareSummary(
                summary=ShareStateCounts(
                    total_shares=len(shares),
                    active_shares=len(active),
                    pending_shares=_count_state(shares, ShareState.PENDING),
                    accepted_shares=_count_state(shares, ShareState.ACCEPTED),
                    declined_shares=_count_state(shares, ShareState.DECLINED_BY_RECIPIENT),
                    revoked_shares=sum(1 for share in shares if share.state in REVOKED_STATES),
                ),
                permissions=PermissionBreakdown(
                    view_only=sum(1 for share in active if share.permission == Permission.VIEW),
                    can_edit=sum(1 for share in active if share.permission == Permission.EDIT),
                    full_access=sum(1 for share in active if share.permission == Permission.FULL),
                ),
                scope_types=ScopeBreakdown(
                    full_schedule=sum(1 for share in active if share.scope_type == ScopeType.FULL),
                    selective=sum(1 for share in active if share.scope_type == ScopeType.SELECTIVE),
                ),
                recent_activity=RecentActivity(
                    new_shares=recent_created,
                    accepted_shares=recent_accepted,
                    period_days=constants.RECENT_ACTIVITY_DAYS,
                ),
            )

    async def list_shares(
        self,
        caller_id: str,
        *,
        status: str | None = None,
        permission: Permission | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> ShareListPage:
        """Shares ordered by creation time, filtered first and then paginated.

        An unknown status is ignored, as is a missing permission filter.
        """
        with span("share_analytics.list_shares"):
            await self._require_admin(caller_id)
            limit = limit if limit and limit > 0 else settings.admin_list_default_limit
            offset = max(offset, 0)

            shares = await self._shares.list_all()
            states = STATUS_FILTERS.get(status) if status else None
            if states is not None:
                shares = [share for share in shares if share.state in states]
            if permission is not None:
                shares = [share for share in shares if share.permission == permission]

            return ShareListPage(
                shares=shares[offset : offset + limit],
                limit=limit,
                offset=offset,
                total=len(shares),
            )

    async def timeline(self, caller_id: str, now: datetime, days: int | None = None) -> list[TimelineEntry]:
        """Daily created/accepted/ended counts from `days` ago through today, in UTC."""
        with span("share_analytics.timeline"):
            await self._require_admin(caller_id)
            days = days if days and days > 0 else settings.admin_timeline_default_days

            today = _utc_date(now)
            buckets: dict[date, dict[str, int]] = {
                today - timedelta(days=offset): {"created": 0, "accepted": 0, "ended": 0}
                for offset in range(days, -1, -1)
            }

            for share in await self._shares.list_all():
                events = (
                    ("created", share.created_at),
                    ("accepted", share.accepted_at),
                    ("ended", _ended_at(share)),
                )
                for key, timestamp in events:
                    if timestamp is None:
                        continue
                    bucket = buckets.get(_utc_date(timestamp))
                    if bucket is not None:
                        bucket[key] += 1

            return [
                TimelineEntry(date=day.isoformat(), **counts) for day, counts in sorted(buckets.items())
            ]

    async def _require_admin(self, caller_id: str) -> None:
        principal = await self._principals.get(caller_id)
        if principal is None or not principal.is_admin:
            logger.warning("Non-admin attempted share analytics access", extra={"principal_id": caller_id})
            msg = "Admin access required"
            raise ForbiddenError(msg)


def _count_state(shares: list[Share], state: ShareState) -> int:
    return sum(1 for share in shares if share.state == state)


def _at_or_after(value: datetime | None, since: datetime) -> bool:
    if value is None:
        return False
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    if since.tzinfo is None:
        since = since.replace(tzinfo=UTC)
    return value >= since
