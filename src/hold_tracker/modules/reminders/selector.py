"""
Reminder Selector

Decides which records are due for a follow-up reminder on a given day.
"""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.crypto import FieldCipher
from hold_tracker.modules.records import repository
from hold_tracker.modules.records.codec import from_storage
from hold_tracker.modules.records.models import REMINDABLE_STATUSES, OnHoldRecord
from hold_tracker.modules.records.schemas import RecordRead

logger = logging.getLogger(__name__)


def is_due(record: RecordRead | OnHoldRecord, today: date) -> bool:
    """
    In-memory form of the due predicate used by the selector query.

    Due means: reminders not suppressed, a reminder date that is set and on or
    before today, and a status that still needs follow-up.
    """
    return (
        not record.reminders_suppressed
        and record.next_reminder_date is not None
        and record.next_reminder_date <= today
        and record.status in REMINDABLE_STATUSES
    )


async def select_due(db: AsyncSession, cipher: FieldCipher, today: date) -> list[RecordRead]:
    """
    Records due for a reminder on `today`, decoded, ordered by record_id.

    Query errors propagate; the batch run turns them into an aborted run.
    """
    records = await repository.get_due_for_reminder(db, today)
    logger.info(f"Selected {len(records)} records due for reminder on {today.isoformat()}")
    return [from_storage(record, cipher) for record in records]
