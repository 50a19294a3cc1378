"""
On-Hold Records Repository

Database operations for on-hold records. Works on the stored (encrypted)
representation only; encoding and decoding live in codec.py and service.py.

Design Principles:
- All queries are parameterized (no SQL injection)
- Async operations for non-blocking I/O
- Single responsibility - only database operations, no business logic
- record_id uniqueness is enforced by the unique index, not only by a pre-check
"""

from collections.abc import Sequence
from datetime import date
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import RECORD_ID_CONSTRAINT, REMINDABLE_STATUSES, OnHoldRecord


class RecordIdExistsError(ValueError):
    """Raised when the unique index rejects a record_id that is already taken."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record ID {record_id} already exists")


def _is_record_id_violation(error: IntegrityError) -> bool:
    """
    True when the violated constraint is the record_id unique constraint.

    PostgreSQL names the constraint in the message; SQLite names the column.
    """
    message = str(error.orig)
    return RECORD_ID_CONSTRAINT in message or "on_hold_records.record_id" in message


async def create(db: AsyncSession, stored_fields: dict[str, Any]) -> OnHoldRecord:
    """
    Insert a new record from already-encoded fields.

    Raises:
        RecordIdExistsError: If another row already holds the record_id
        IntegrityError: Any other constraint violation, unchanged
    """
    new_record = OnHoldRecord(**stored_fields)
    db.add(new_record)

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if _is_record_id_violation(e):
            raise RecordIdExistsError(stored_fields["record_id"]) from e
        raise

    await db.refresh(new_record)
    return new_record


async def get_by_record_id(db: AsyncSession, record_id: str) -> OnHoldRecord | None:
    """Get a record by its business identifier."""
    result = await db.execute(select(OnHoldRecord).where(OnHoldRecord.record_id == record_id))
    return result.scalar_one_or_none()


async def record_id_exists(db: AsyncSession, record_id: str) -> bool:
    result = await db.execute(
        select(OnHoldRecord.id).where(OnHoldRecord.record_id == record_id)
    )
    return result.first() is not None


async def list_all(db: AsyncSession) -> list[OnHoldRecord]:
    """All records, most recently created first."""
    result = await db.execute(
        select(OnHoldRecord).order_by(OnHoldRecord.created_at.desc(), OnHoldRecord.record_id)
    )
    return list(result.scalars().all())


async def get_by_contact_email_hash(db: AsyncSession, email_hash: str) -> list[OnHoldRecord]:
    """Records whose contact email hashes to the given value."""
    if not email_hash:
        return []
    result = await db.execute(
        select(OnHoldRecord)
        .where(OnHoldRecord.contact_email_hash == email_hash)
        .order_by(OnHoldRecord.created_at.desc())
    )
    return list(result.scalars().all())


async def update_fields(
    db: AsyncSession,
    record: OnHoldRecord,
    stored_changes: dict[str, Any],
) -> OnHoldRecord:
    """
    Apply already-encoded changes to a record.

    record_id, created_by and the storage id are never touched here.
    """
    protected = {"id", "record_id", "created_by", "created_at"}

    for key, value in stored_changes.items():
        if key in protected:
            continue
        if hasattr(record, key):
            setattr(record, key, value)

    await db.commit()
    await db.refresh(record)
    return record


async def delete(db: AsyncSession, record: OnHoldRecord) -> None:
    """Permanently remove a record."""
    await db.delete(record)
    await db.commit()


# ============================================
# Reminder Batch Repository Methods
# ============================================


async def get_due_for_reminder(db: AsyncSession, today: date) -> list[OnHoldRecord]:
    """
    Get records eligible for a reminder on `today`.

    A record is due when:
    1. Reminders are not suppressed
    2. It has a next_reminder_date on or before today (NULL never matches)
    3. Its status is On hold or Pending

    Ordered by record_id so a given store state always yields the same sequence.
    """
    result = await db.execute(
        select(OnHoldRecord)
        .where(
            OnHoldRecord.reminders_suppressed.is_(False),
            OnHoldRecord.next_reminder_date.is_not(None),
            OnHoldRecord.next_reminder_date <= today,
            OnHoldRecord.status.in_(REMINDABLE_STATUSES),
        )
        .order_by(OnHoldRecord.record_id)
    )
    return list(result.scalars().all())


async def bulk_set_next_reminder_date(
    db: AsyncSession,
    record_ids: Sequence[str],
    next_reminder_date: date,
) -> int:
    """
    Set next_reminder_date for many records in one UPDATE statement.

    Bypasses the codec: only the date column changes.

    Returns:
        Number of rows updated
    """
    if not record_ids:
        return 0

    result = await db.execute(
        update(OnHoldRecord)
        .where(OnHoldRecord.record_id.in_(list(record_ids)))
        .values(next_reminder_date=next_reminder_date)
    )
    await db.commit()
    return result.rowcount or 0
