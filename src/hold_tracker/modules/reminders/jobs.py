"""
Reminder Batch Job

One batch run selects the records due today, sends one reminder per owner,
and advances the reminder date of the records that were notified.

States:
    IDLE -> SELECTING -> DISPATCHING -> ADVANCING -> DONE
    Any state before ADVANCING can end in ABORTED.

Abort conditions:
- The mail transport is not configured (checked before selecting, so no
  email is attempted and no date moves)
- The selector query fails

Per-group send failures never abort a run; those records keep their date and
are picked up again by the next run.

Schedule:
- Runs at each time in REMINDER_SCHEDULE (default 08:00, 10:00, 12:00, 14:00
  and 16:00) in REMINDER_TIMEZONE
- Can also be triggered over HTTP (GET /reminders/run) or manually via the
  debug job endpoints
"""

import asyncio
import enum
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.config import settings
from hold_tracker.core.crypto import FieldCipher
from hold_tracker.core.database import async_session_maker
from hold_tracker.core.email import MailTransport, MailTransportUnconfiguredError
from hold_tracker.core.scheduler import register_job
from hold_tracker.modules.activities import repository as activity_repository
from hold_tracker.modules.activities.models import ActivityAction
from hold_tracker.modules.reminders.advancer import advance
from hold_tracker.modules.reminders.dispatcher import Sleep, dispatch
from hold_tracker.modules.reminders.selector import select_due

logger = logging.getLogger(__name__)

# Job ID for registration and manual triggering
JOB_ID_SEND_REMINDERS = "reminders_send_batch"

NO_REMINDERS_MESSAGE = "Ran successfully, no reminders to send."


class BatchState(str, enum.Enum):
    IDLE = "IDLE"
    SELECTING = "SELECTING"
    DISPATCHING = "DISPATCHING"
    ADVANCING = "ADVANCING"
    DONE = "DONE"
    ABORTED = "ABORTED"


@dataclass
class BatchResult:
    state: BatchState = BatchState.IDLE
    due: int = 0
    sent: int = 0
    failed: int = 0
    advanced: int = 0
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["state"] = self.state.value
        return result


def get_batch_sleep() -> Sleep:
    """Sleep used between send retries. A dependency so tests can replace it."""
    return asyncio.sleep


def reminder_today(timezone: str | None = None) -> date:
    """Today's date in the reminder timezone."""
    return datetime.now(ZoneInfo(timezone or settings.reminder_timezone)).date()


async def _abort(db: AsyncSession, result: BatchResult, message: str) -> BatchResult:
    result.state = BatchState.ABORTED
    result.message = message
    logger.error(f"Reminder batch aborted: {message}")
    await activity_repository.log_safely(db, ActivityAction.CRON_JOB_FAILED, message)
    return result


async def run_reminder_batch(
    db: AsyncSession,
    cipher: FieldCipher,
    transport: MailTransport,
    today: date,
    recipient: str | None = None,
    max_attempts: int | None = None,
    advance_days: int | None = None,
    sleep: Sleep = asyncio.sleep,
) -> BatchResult:
    """
    Run one reminder batch.

    Args:
        db: Database session
        cipher: Field cipher used to decode the selected records
        transport: Mail transport
        today: The day to select for and to advance from
        recipient: Mailbox that receives every reminder (default OPS_MAILBOX)
        max_attempts: Send attempts per group (default SEND_MAX_ATTEMPTS)
        advance_days: Days to push the reminder date (default REMINDER_ADVANCE_DAYS)
        sleep: Awaitable sleep used between retries

    Returns:
        BatchResult with the final state and counts
    """
    recipient = recipient or settings.ops_mailbox
    if max_attempts is None:
        max_attempts = settings.send_max_attempts
    if advance_days is None:
        advance_days = settings.reminder_advance_days

    result = BatchResult()
    logger.info(f"Starting reminder batch for {today.isoformat()}")

    if not transport.is_configured:
        return await _abort(db, result, "Mail transport is not configured; no reminders sent.")

    result.state = BatchState.SELECTING
    try:
        records = await select_due(db, cipher, today)
    except Exception as e:
        await db.rollback()
        logger.error(f"Reminder selection failed: {e}", exc_info=True)
        return await _abort(db, result, f"Failed to select due records: {type(e).__name__}")

    result.due = len(records)

    if not records:
        result.state = BatchState.DONE
        result.message = NO_REMINDERS_MESSAGE
        await activity_repository.log_safely(db, ActivityAction.CRON_JOB, NO_REMINDERS_MESSAGE)
        logger.info("Reminder batch completed: nothing due")
        return result

    result.state = BatchState.DISPATCHING
    try:
        summary = await dispatch(
            records,
            transport,
            recipient,
            max_attempts=max_attempts,
            sleep=sleep,
            as_of=today,
        )
    except MailTransportUnconfiguredError as e:
        return await _abort(db, result, str(e))

    result.sent = summary.sent
    result.failed = summary.failed

    result.state = BatchState.ADVANCING
    advance_result = await advance(db, summary, today, advance_days=advance_days)
    result.advanced = advance_result.advanced

    result.state = BatchState.DONE
    result.message = f"Sent {summary.sent} reminder emails, {summary.failed} failed."
    if advance_result.failed:
        result.message += " Reminder dates were not advanced."

    logger.info(
        f"Reminder batch completed. Due: {result.due}, Sent: {result.sent}, "
        f"Failed: {result.failed}, Advanced: {result.advanced}"
    )
    return result


def build_reminder_trigger(
    times: list[tuple[int, int]] | None = None,
    timezone: str | None = None,
) -> OrTrigger:
    """One CronTrigger per (hour, minute), combined so the job fires at each."""
    times = times or settings.reminder_times
    timezone = timezone or settings.reminder_timezone
    return OrTrigger(
        [CronTrigger(hour=hour, minute=minute, timezone=timezone) for hour, minute in times]
    )


def register_reminder_jobs(cipher: FieldCipher, transport: MailTransport) -> None:
    """
    Register the reminder batch with the scheduler.

    Call during application startup, before the scheduler is started. The job
    opens its own database session for each run.
    """

    async def send_reminder_batch() -> dict[str, Any]:
        async with async_session_maker() as db:
            result = await run_reminder_batch(db, cipher, transport, reminder_today())
        return result.to_dict()

    register_job(
        job_id=JOB_ID_SEND_REMINDERS,
        func=send_reminder_batch,
        trigger=build_reminder_trigger(),
    )
    logger.info(
        f"Registered job: {JOB_ID_SEND_REMINDERS} "
        f"(schedule: {settings.reminder_schedule} {settings.reminder_timezone})"
    )
