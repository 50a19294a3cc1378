"""
Reminders Router

External trigger for the reminder batch, for deployments that schedule it
from outside the process (e.g. a platform cron calling this URL).

Endpoints:
- GET /reminders/run - Run one batch now

Security:
- Requires "Authorization: Bearer <BATCH_SECRET>", not a user token
- Must not be called concurrently; the in-process scheduler never overlaps
  runs, but this endpoint does not serialize callers
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.auth import verify_batch_secret
from hold_tracker.core.crypto import FieldCipher
from hold_tracker.core.database import get_db
from hold_tracker.core.deps import get_field_cipher, get_mail_transport
from hold_tracker.core.email import MailTransport
from hold_tracker.modules.reminders.jobs import (
    BatchState,
    get_batch_sleep,
    reminder_today,
    run_reminder_batch,
)
from hold_tracker.modules.reminders.schemas import BatchRunResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/run",
    response_model=BatchRunResponse,
    summary="Run Reminder Batch",
    responses={
        401: {"description": "Missing or wrong batch secret"},
        500: {"description": "Batch aborted (mail transport unconfigured or selection failed)"},
    },
    dependencies=[Depends(verify_batch_secret)],
)
async def run_batch(
    db: AsyncSession = Depends(get_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    transport: MailTransport = Depends(get_mail_transport),
    sleep=Depends(get_batch_sleep),
) -> BatchRunResponse:
    """Select, notify and advance. Per-owner send failures are reported, not raised."""
    result = await run_reminder_batch(db, cipher, transport, reminder_today(), sleep=sleep)

    if result.state == BatchState.ABORTED:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "BATCH_ABORTED",
                "message": result.message,
            },
        )

    return BatchRunResponse(**result.to_dict())
