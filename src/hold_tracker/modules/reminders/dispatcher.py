"""
Notification Dispatcher

Turns a list of due records into one reminder email per owner and sends each
through the mail transport with bounded retry.

Rules:
- Records are grouped by owner name (trimmed). Records with no owner go to
  the "Unassigned" group. Groups keep the order in which owners first appear.
- Every message goes to the operations mailbox; the owner is named in the
  subject and greeting.
- Groups are sent one after another. A group that still fails after the last
  attempt is reported and the rest of the groups are still sent.
- Before attempt k+1 the dispatcher waits 2**(k-1) seconds (1s, then 2s).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from html import escape

from hold_tracker.core.email import (
    MailTransport,
    MailTransportUnconfiguredError,
    render_email_layout,
)
from hold_tracker.modules.records.schemas import RecordRead

logger = logging.getLogger(__name__)

UNASSIGNED_OWNER = "Unassigned"
DEFAULT_MAX_ATTEMPTS = 3

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class SendOutcome:
    """Result of sending one message with retry."""

    success: bool
    attempts: int
    message_id: str | None = None
    error: str | None = None


@dataclass
class DispatchSummary:
    """Result of dispatching every group in one batch."""

    sent: int = 0
    failed: int = 0
    notified_record_ids: list[str] = field(default_factory=list)
    failed_owners: list[str] = field(default_factory=list)


def group_by_owner(records: Iterable[RecordRead]) -> dict[str, list[RecordRead]]:
    """Group records by owner name, preserving first-seen owner order."""
    groups: dict[str, list[RecordRead]] = {}
    for record in records:
        owner = (record.owner_name or "").strip() or UNASSIGNED_OWNER
        groups.setdefault(owner, []).append(record)
    return groups


def reminder_subject(owner: str, count: int) -> str:
    return f"[{owner}] [Reminder] Automated Follow-up for {count} students"


def render_reminder_email(owner: str, records: list[RecordRead], as_of: date | None = None) -> str:
    """
    Render the reminder body for one owner.

    One table row per record with name, phone, category, reason and reminder
    date. All values are HTML-escaped.
    """
    rows = []
    for record in records:
        reminder_date = record.next_reminder_date.isoformat() if record.next_reminder_date else ""
        rows.append(
            "<tr>"
            f"<td>{escape(record.student_name)}</td>"
            f"<td>{escape(record.contact_phone)}</td>"
            f"<td>{escape(record.category)}</td>"
            f"<td>{escape(record.hold_reason)}</td>"
            f"<td>{escape(reminder_date)}</td>"
            "</tr>"
        )

    as_of_line = f" as of {escape(as_of.isoformat())}" if as_of else ""
    body = f"""
            <p>Hello {escape(owner)},</p>
            <p>The following {len(records)} students are due for follow-up{as_of_line}:</p>
            <table>
                <thead>
                    <tr><th>Name</th><th>Phone</th><th>Category</th><th>Reason</th><th>Reminder Date</th></tr>
                </thead>
                <tbody>
                    {"".join(rows)}
                </tbody>
            </table>
            <p>Please update each record once you have followed up.</p>
    """
    return render_email_layout("Follow-up Reminder", body)


async def send_with_retry(
    send: Callable[[], Awaitable[str]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    sleep: Sleep = asyncio.sleep,
) -> SendOutcome:
    """
    Call `send` until it succeeds or `max_attempts` attempts have failed.

    Any exception from `send` (including a timeout) is a failed attempt.
    Never raises for a send failure.

    Raises:
        ValueError: If max_attempts is less than 1
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    last_error: str | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            message_id = await send()
            return SendOutcome(success=True, attempts=attempt, message_id=message_id)
        except Exception as e:
            last_error = f"{type(e).__name__}: {e}"
            logger.warning(f"Send attempt {attempt}/{max_attempts} failed: {last_error}")

        if attempt < max_attempts:
            await sleep(2 ** (attempt - 1))

    return SendOutcome(success=False, attempts=max_attempts, error=last_error)


async def dispatch(
    records: list[RecordRead],
    transport: MailTransport,
    recipient: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    sleep: Sleep = asyncio.sleep,
    as_of: date | None = None,
) -> DispatchSummary:
    """
    Send one reminder per owner group.

    Raises:
        MailTransportUnconfiguredError: Before any attempt, if the transport cannot send
    """
    if not transport.is_configured:
        raise MailTransportUnconfiguredError()

    summary = DispatchSummary()

    for owner, group in group_by_owner(records).items():
        subject = reminder_subject(owner, len(group))
        html_content = render_reminder_email(owner, group, as_of)

        async def send_group(subject: str = subject, html_content: str = html_content) -> str:
            return await transport.send(recipient, subject, html_content)

        outcome = await send_with_retry(send_group, max_attempts=max_attempts, sleep=sleep)

        if outcome.success:
            summary.sent += 1
            summary.notified_record_ids.extend(record.record_id for record in group)
            logger.info(
                f"Reminder sent for owner '{owner}' ({len(group)} records, "
                f"attempts: {outcome.attempts})"
            )
        else:
            summary.failed += 1
            summary.failed_owners.append(owner)
            logger.error(
                f"Reminder for owner '{owner}' failed after {outcome.attempts} attempts: "
                f"{outcome.error}"
            )

    return summary
