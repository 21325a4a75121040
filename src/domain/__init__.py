"""Domain models and DTOs."""

from src.domain.agenda import AgendaItem
from src.domain.principal import Principal, PrincipalRole
from src.domain.share import (
    ACTIVE_STATES,
    TERMINAL_STATES,
    Permission,
    ReceivedShare,
    ScopeType,
    Share,
    ShareCreate,
    ShareDraft,
    ShareState,
    ShareUpdate,
)
from src.domain.task import SHARED_TASK_EDITABLE_FIELDS, SharedTaskPatch, Task


__all__ = [
    "ACTIVE_STATES",
    "SHARED_TASK_EDITABLE_FIELDS",
    "TERMINAL_STATES",
    "AgendaItem",
    "Permission",
    "Principal",
    "PrincipalRole",
    "ReceivedShare",
    "ScopeType",
    "Share",
    "ShareCreate",
    "ShareDraft",
    "ShareState",
    "ShareUpdate",
    "SharedTaskPatch",
    "Task",
]
