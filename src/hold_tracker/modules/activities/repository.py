"""
Activities Repository

Append and read audit log entries.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import SYSTEM_ACTOR, Activity, ActivityAction

logger = logging.getLogger(__name__)

MAX_ACTIVITIES_RETURNED = 1000


async def append(
    db: AsyncSession,
    action: ActivityAction,
    details: str,
    user: str = SYSTEM_ACTOR,
) -> Activity:
    """Append one entry and commit it on its own."""
    activity = Activity(user=user, action=action, details=details)
    db.add(activity)
    await db.commit()
    await db.refresh(activity)

    logger.info(f"Activity logged: {action.value} - {details}")
    return activity


async def list_recent(db: AsyncSession, limit: int = MAX_ACTIVITIES_RETURNED) -> list[Activity]:
    """Most recent entries first."""
    result = await db.execute(select(Activity).order_by(Activity.id.desc()).limit(limit))
    return list(result.scalars().all())


async def log_safely(
    db: AsyncSession,
    action: ActivityAction,
    details: str,
    user: str = SYSTEM_ACTOR,
) -> Activity | None:
    """
    Append an entry, logging instead of raising if the write fails.

    Used after the primary operation has already succeeded, so an audit
    failure cannot turn a completed create/update/delete into an error.
    """
    try:
        return await append(db, action, details, user)
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to log activity {action.value}: {e}", exc_info=True)
        return None
