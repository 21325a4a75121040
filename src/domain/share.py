"""Share domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from src.domain.task import Task


MAX_MESSAGE_LENGTH = 500


class Permission(StrEnum):
    """Permission level a share grants over the owner's tasks."""

    VIEW = "view"  # Read-only
    EDIT = "edit"  # Mutate allow-listed fields
    FULL = "full"  # Mutate and delete

    @property
    def rank(self) -> int:
        return _PERMISSION_RANK[self]

    def allows(self, required: "Permission") -> bool:
        """Return True if this level includes everything `required` grants."""
        return self.rank >= required.rank


_PERMISSION_RANK = {Permission.VIEW: 1, Permission.EDIT: 2, Permission.FULL: 3}


class ScopeType(StrEnum):
    """Whether a share covers the owner's whole schedule or an explicit subset."""

    FULL = "full"
    SELECTIVE = "selective"


class ShareState(StrEnum):
    """Share lifecycle state."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED_BY_RECIPIENT = "declined_by_recipient"
    REVOKED_BY_OWNER = "revoked_by_owner"
    REVOKED_BY_RECIPIENT = "revoked_by_recipient"


ACTIVE_STATES = frozenset({ShareState.PENDING, ShareState.ACCEPTED})
TERMINAL_STATES = frozenset(set(ShareState) - ACTIVE_STATES)


class ShareDraft(BaseModel):
    """A share about to be inserted; the repository assigns the id."""

    owner_id: str
    recipient_id: str
    recipient_username: str
    recipient_email: str | None = None
    permission: Permission = Permission.VIEW
    scope_type: ScopeType = ScopeType.FULL
    selected_task_ids: list[str] = Field(default_factory=list)
    state: ShareState = ShareState.PENDING
    message: str | None = None
    created_at: datetime
    updated_at: datetime


class Share(ShareDraft):
    """Share data transfer object."""

    id: str = Field(..., description="Unique share ID from database")
    accepted_at: datetime | None = None
    declined_at: datetime | None = None
    revoked_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATES

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def covers(self, task: Task) -> bool:
        """Return True if the task falls inside this share's scope.

        Lifecycle state is not considered here.
        """
        if task.owner_id != self.owner_id:
            return False
        if self.scope_type == ScopeType.FULL:
            return True
        return task.id in self.selected_task_ids


class ReceivedShare(Share):
    """A share as seen by its recipient, annotated with the owner's identity."""

    owner_username: str
    owner_email: str | None = None


class ShareCreate(BaseModel):
    """Payload for creating a share."""

    recipient_identifier: str = Field(..., min_length=1, description="Recipient username or email")
    permission: Permission = Permission.VIEW
    scope_type: ScopeType = ScopeType.FULL
    selected_task_ids: list[str] | None = None
    message: str | None = Field(default=None, max_length=MAX_MESSAGE_LENGTH)


class ShareUpdate(BaseModel):
    """Partial update of a share; only fields that were set are applied."""

    permission: Permission | None = None
    scope_type: ScopeType | None = None
    selected_task_ids: list[str] | None = None
    message: str | None = Field(default=None, max_length=MAX_MESSAGE_LENGTH)
