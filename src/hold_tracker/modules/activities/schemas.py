"""
Activity Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from hold_tracker.modules.activities.models import ActivityAction


class ActivityCreate(BaseModel):
    """Request body for POST /activities. The actor comes from the token."""

    action: ActivityAction
    details: str = Field("", max_length=2000)


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user: str
    action: ActivityAction
    details: str
    timestamp: datetime
