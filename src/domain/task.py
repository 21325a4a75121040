"""Task domain models (the Task Store's view of a scheduled item)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Fields a share recipient may change; ownership, identity, completion and archival never are.
SHARED_TASK_EDITABLE_FIELDS = frozenset(
    {
        "title",
        "category",
        "priority",
        "timer",
        "scheduled_date",
        "notes",
        "youtube_url",
    }
)


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from the Task Store")
    owner_id: str = Field(..., description="Owning principal ID")
    title: str = Field(..., description="Task title")
    category: str = Field(default="general", description="Free-form category")
    priority: str = Field(default="medium", description="Priority label")
    timer: int | None = Field(default=None, description="Optional timer in minutes")
    scheduled_date: datetime | None = Field(default=None, description="Calendar slot, if scheduled")
    notes: str | None = Field(default=None, description="Optional notes")
    youtube_url: str | None = Field(default=None, description="Optional video link")
    completed: bool = Field(default=False, description="Completion flag")
    archived: bool = Field(default=False, description="Archival flag")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")


class SharedTaskPatch(BaseModel):
    """Request body for updating a shared task.

    Keys outside the editable allow-list are dropped rather than rejected.
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    category: str | None = None
    priority: str | None = None
    timer: int | None = None
    scheduled_date: datetime | None = None
    notes: str | None = None
    youtube_url: str | None = None

    @field_validator("title", "category", "priority")
    @classmethod
    def reject_null(cls, value: str | None) -> str:
        """Required task fields may be changed but not cleared."""
        if value is None:
            msg = "must not be null"
            raise ValueError(msg)
        return value
