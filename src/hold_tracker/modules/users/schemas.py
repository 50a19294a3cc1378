"""User schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from hold_tracker.modules.users.models import UserRole


class UserResponse(BaseModel):
    """Public view of a staff account."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: UserRole
    is_active: bool
    created_at: datetime | None = None


class SetAdminRequest(BaseModel):
    """Request body for PUT /users/{user_id}/admin."""

    is_admin: bool
