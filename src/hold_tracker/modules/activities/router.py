"""
Activities Router

Read and append the audit log.

Endpoints:
- GET /activities - Most recent entries first (max 1000)
- POST /activities - Append an entry on behalf of the signed-in user
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.auth import CurrentUser, get_current_user
from hold_tracker.core.database import get_db
from hold_tracker.modules.activities import repository
from hold_tracker.modules.activities.schemas import ActivityCreate, ActivityRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[ActivityRead], summary="List Activities")
async def list_activities(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[ActivityRead]:
    """Return the audit log, newest first."""
    activities = await repository.list_recent(db)
    return [ActivityRead.model_validate(activity) for activity in activities]


@router.post(
    "",
    response_model=ActivityRead,
    status_code=status.HTTP_201_CREATED,
    summary="Log Activity",
)
async def log_activity(
    data: ActivityCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ActivityRead:
    """Append an audit entry. The actor is always the authenticated user."""
    activity = await repository.append(db, data.action, data.details, user=user.email)
    return ActivityRead.model_validate(activity)
