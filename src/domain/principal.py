"""Principal domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, Field


class PrincipalRole(StrEnum):
    """Role of a principal, as supplied by the identity system."""

    MEMBER = "member"
    ADMIN = "admin"


class Principal(BaseModel):
    """Principal data transfer object."""

    id: str = Field(..., description="Unique principal ID")
    username: str = Field(..., description="Unique username")
    email: str | None = Field(default=None, description="Email address, if known")
    role: PrincipalRole = Field(default=PrincipalRole.MEMBER, description="Role in the system")

    @property
    def display_name(self) -> str:
        return self.username

    @property
    def is_admin(self) -> bool:
        return self.role == PrincipalRole.ADMIN
