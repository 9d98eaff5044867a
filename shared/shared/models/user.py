from uuid import UUID

from pydantic import BaseModel, ConfigDict

from shared.constants import Role


class CurrentUser(BaseModel):
    """User context decoded from the session token."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID
    role: Role = Role.USER
