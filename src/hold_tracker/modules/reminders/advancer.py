"""
Reminder Advancer

After a dispatch, pushes next_reminder_date forward for the records whose
group was actually notified, and writes the batch audit entries.

Records in a group whose send failed keep their date, so they are selected
again on the next run.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.modules.activities import repository as activity_repository
from hold_tracker.modules.activities.models import ActivityAction
from hold_tracker.modules.records import repository
from hold_tracker.modules.reminders.dispatcher import DispatchSummary

logger = logging.getLogger(__name__)

DEFAULT_ADVANCE_DAYS = 7


@dataclass
class AdvanceResult:
    advanced: int = 0
    failed: bool = False


async def advance(
    db: AsyncSession,
    summary: DispatchSummary,
    today: date,
    advance_days: int = DEFAULT_ADVANCE_DAYS,
) -> AdvanceResult:
    """
    Set next_reminder_date = today + advance_days for every notified record.

    Audit entries:
    - CRON_JOB with the sent/failed counts (always)
    - CRON_JOB_UPDATE with the number of advanced rows, when the update succeeds
    - CRON_JOB_FAILED when the bulk update raises (the transaction is rolled back)

    A failed update is reported, not raised: the emails were already sent.
    """
    await activity_repository.log_safely(
        db,
        ActivityAction.CRON_JOB,
        f"Sent {summary.sent} reminder emails, {summary.failed} failed.",
    )

    if summary.sent == 0 or not summary.notified_record_ids:
        return AdvanceResult()

    new_date = today + timedelta(days=advance_days)

    try:
        advanced = await repository.bulk_set_next_reminder_date(
            db, summary.notified_record_ids, new_date
        )
    except Exception as e:
        await db.rollback()
        logger.error(
            f"Failed to advance reminder date for {len(summary.notified_record_ids)} records: {e}",
            exc_info=True,
        )
        await activity_repository.log_safely(
            db,
            ActivityAction.CRON_JOB_FAILED,
            f"Failed to update reminder date for {len(summary.notified_record_ids)} students: "
            f"{type(e).__name__}",
        )
        return AdvanceResult(failed=True)

    logger.info(f"Advanced reminder date to {new_date.isoformat()} for {advanced} records")
    await activity_repository.log_safely(
        db,
        ActivityAction.CRON_JOB_UPDATE,
        f"Updated reminder date for {advanced} students.",
    )
    return AdvanceResult(advanced=advanced)
