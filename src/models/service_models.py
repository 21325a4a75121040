"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting repository
records into typed objects with validation.
"""

from pydantic import BaseModel

from src.domain.share import Permission, Share
from src.domain.task import Task


class RecipientMatch(BaseModel):
    """A principal offered by recipient search, with the email masked."""

    id: str
    username: str
    email: str | None = None


class SharedSchedule(BaseModel):
    """Everything a recipient may see through one accepted share."""

    share: Share
    permission: Permission
    tasks: list[Task]


class ShareStateCounts(BaseModel):
    """Share totals by lifecycle state."""

    total_shares: int
    active_shares: int
    pending_shares: int
    accepted_shares: int
    declined_shares: int
    revoked_shares: int


class PermissionBreakdown(BaseModel):
    """Active shares by permission level."""

    view_only: int
    can_edit: int
    full_access: int


class ScopeBreakdown(BaseModel):
    """Active shares by scope type."""

    full_schedule: int
    selective: int


class RecentActivity(BaseModel):
    """Share activity within the recent window."""

    new_shares: int
    accepted_shares: int
    period_days: int


class ShareSummary(BaseModel):
    """Admin overview of all shares."""

    summary: ShareStateCounts
    permissions: PermissionBreakdown
    scope_types: ScopeBreakdown
    recent_activity: RecentActivity


class ShareListPage(BaseModel):
    """One page of the admin share list."""

    shares: list[Share]
    limit: int
    offset: int
    total: int


class TimelineEntry(BaseModel):
    """Share lifecycle events on one calendar day."""

    date: str
    created: int
    accepted: int
    ended: int
