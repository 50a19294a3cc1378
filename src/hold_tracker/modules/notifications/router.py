"""
Notifications Router

Manual email actions for signed-in staff.

Endpoints:
- POST /notifications/send - Send one ad hoc email (single attempt)
- POST /notifications/digest - Email a follow-up digest for chosen records

Security:
- Requires a valid staff token
- Rate limited to prevent using the mailbox for spam
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.auth import CurrentUser, get_current_user
from hold_tracker.core.crypto import FieldCipher
from hold_tracker.core.database import get_db
from hold_tracker.core.deps import get_field_cipher, get_mail_transport
from hold_tracker.core.email import MailSendError, MailTransport, MailTransportUnconfiguredError
from hold_tracker.core.rate_limit import rate_limit
from hold_tracker.modules.notifications import service
from hold_tracker.modules.notifications.schemas import (
    DigestRequest,
    DigestResponse,
    SendEmailRequest,
    SendEmailResponse,
)
from hold_tracker.modules.records.service import RecordServiceError
from hold_tracker.modules.reminders.jobs import get_batch_sleep

logger = logging.getLogger(__name__)

router = APIRouter()

# Rate limits for email-sending endpoints
RATE_LIMIT_SEND = (10, 60)  # 10 emails per minute
RATE_LIMIT_DIGEST = (5, 60)  # 5 digests per minute


def _mail_not_configured() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "MAIL_NOT_CONFIGURED",
            "message": "Email sending is not configured on this server.",
        },
    )


@router.post(
    "/send",
    response_model=SendEmailResponse,
    summary="Send Email",
    responses={
        429: {"description": "Too many requests"},
        500: {"description": "Mail not configured or the send failed"},
    },
)
@rate_limit(limit=RATE_LIMIT_SEND[0], window_seconds=RATE_LIMIT_SEND[1])
async def send_email(
    request: Request,
    data: SendEmailRequest,
    db: AsyncSession = Depends(get_db),
    transport: MailTransport = Depends(get_mail_transport),
    user: CurrentUser = Depends(get_current_user),
) -> SendEmailResponse:
    """Send one email. Makes a single attempt; the caller decides whether to retry."""
    try:
        message_id = await service.send_single(
            db, transport, data.to, data.subject, data.html_body, actor=user.email
        )
    except MailTransportUnconfiguredError as e:
        raise _mail_not_configured() from e
    except MailSendError as e:
        logger.error(f"Ad hoc email from user {user.id} failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "EMAIL_SEND_FAILED",
                "message": "The email could not be sent.",
            },
        ) from e

    return SendEmailResponse(message_id=message_id)


@router.post(
    "/digest",
    response_model=DigestResponse,
    summary="Send Follow-up Digest",
    responses={
        404: {"description": "A record id does not exist"},
        429: {"description": "Too many requests"},
        500: {"description": "Mail not configured"},
    },
)
@rate_limit(limit=RATE_LIMIT_DIGEST[0], window_seconds=RATE_LIMIT_DIGEST[1])
async def send_digest(
    request: Request,
    data: DigestRequest,
    db: AsyncSession = Depends(get_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    transport: MailTransport = Depends(get_mail_transport),
    user: CurrentUser = Depends(get_current_user),
    sleep=Depends(get_batch_sleep),
) -> DigestResponse:
    """
    Email the chosen records grouped by owner, with the same retry as the
    reminder batch. Reminder dates are not changed.
    """
    try:
        summary = await service.send_digest(
            db,
            cipher,
            transport,
            data.record_ids,
            actor=user.email,
            recipient=data.recipient,
            sleep=sleep,
        )
    except RecordServiceError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message},
        ) from e
    except MailTransportUnconfiguredError as e:
        raise _mail_not_configured() from e

    return DigestResponse(
        sent=summary.sent,
        failed=summary.failed,
        notified_record_ids=summary.notified_record_ids,
        failed_owners=summary.failed_owners,
    )
