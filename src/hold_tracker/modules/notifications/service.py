"""
Notifications Service

Manual email actions: a single ad hoc message, and a follow-up digest of
hand-picked records grouped by owner the same way the reminder batch does it.
Neither action changes any record's reminder date.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.config import settings
from hold_tracker.core.crypto import FieldCipher
from hold_tracker.core.email import MailTransport, MailTransportUnconfiguredError
from hold_tracker.modules.activities import repository as activity_repository
from hold_tracker.modules.activities.models import ActivityAction
from hold_tracker.modules.records import service as record_service
from hold_tracker.modules.reminders.dispatcher import DispatchSummary, Sleep, dispatch

logger = logging.getLogger(__name__)


async def send_single(
    db: AsyncSession,
    transport: MailTransport,
    to: str,
    subject: str,
    html_body: str,
    actor: str,
) -> str:
    """
    Send one message with a single attempt.

    Returns:
        Provider message id

    Raises:
        MailTransportUnconfiguredError: Transport cannot send
        MailSendError: The attempt failed
    """
    if not transport.is_configured:
        raise MailTransportUnconfiguredError()

    message_id = await transport.send(to, subject, html_body)

    await activity_repository.log_safely(
        db, ActivityAction.SEND_EMAIL, f"Sent email '{subject}'", user=actor
    )
    return message_id


async def send_digest(
    db: AsyncSession,
    cipher: FieldCipher,
    transport: MailTransport,
    record_ids: list[str],
    actor: str,
    recipient: str | None = None,
    sleep: Sleep = asyncio.sleep,
) -> DispatchSummary:
    """
    Email a follow-up digest for the given records, one message per owner.

    Raises:
        RecordNotFoundError: If any record id does not exist (nothing is sent)
        MailTransportUnconfiguredError: Transport cannot send
    """
    # Resolve every record first so an unknown id fails before any email goes out
    records = [await record_service.get_record(db, cipher, record_id) for record_id in record_ids]

    summary = await dispatch(
        records,
        transport,
        recipient or settings.ops_mailbox,
        max_attempts=settings.send_max_attempts,
        sleep=sleep,
    )

    logger.info(f"Digest for {len(records)} records: sent={summary.sent}, failed={summary.failed}")
    await activity_repository.log_safely(
        db,
        ActivityAction.SEND_EMAIL,
        f"Sent follow-up digest for {len(summary.notified_record_ids)} students "
        f"({summary.failed} groups failed)",
        user=actor,
    )
    return summary
