"""
On-Hold Records Service Layer

Record Store operations: every read decodes through the codec, every write
encodes through it, and every mutation leaves an audit entry.

This module implements:
1. CRUD keyed by the caller-assigned record_id:
   - create fails with DuplicateRecordError (pre-check plus unique index)
   - read/update/delete fail with RecordNotFoundError
   - update never changes record_id or created_by
   - delete is permanent
2. Listing with search/filters (done on decoded values, since the searchable
   notes and email are encrypted at rest)
3. Reminder suppression toggle
4. Dashboard analytics
5. Lookup by contact email through the hash index

Security considerations:
- Audit details and log lines carry record ids and actors only, never the
  contents of encrypted fields
"""

import logging
from collections import Counter
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hold_tracker.core.crypto import FieldCipher
from hold_tracker.modules.activities import repository as activity_repository
from hold_tracker.modules.activities.models import ActivityAction
from hold_tracker.modules.records import repository
from hold_tracker.modules.records.codec import ENCRYPTED_FIELDS, from_storage, to_storage
from hold_tracker.modules.records.models import OnHoldRecord, RecordStatus
from hold_tracker.modules.records.schemas import (
    RecordAnalytics,
    RecordCreate,
    RecordFilters,
    RecordRead,
    RecordUpdate,
)
from hold_tracker.modules.reminders.selector import is_due

logger = logging.getLogger(__name__)

# Update fields that cannot be cleared; a null for these means "leave unchanged"
_NON_NULLABLE_UPDATE_FIELDS = {"student_name", "status", "reminders_suppressed"}


class RecordServiceError(Exception):
    """Base exception for record service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class DuplicateRecordError(RecordServiceError):
    """Raised when a record_id is already in use."""

    def __init__(self, record_id: str):
        super().__init__(
            message=f"Record ID {record_id} already exists",
            error_code="DUPLICATE_RECORD_ID",
            status_code=400,
        )


class RecordNotFoundError(RecordServiceError):
    """Raised when no record has the given record_id."""

    def __init__(self, record_id: str | None = None):
        message = f"Record {record_id} not found" if record_id else "Record not found"
        super().__init__(
            message=message,
            error_code="RECORD_NOT_FOUND",
            status_code=404,
        )


async def _get_or_raise(db: AsyncSession, record_id: str) -> OnHoldRecord:
    record = await repository.get_by_record_id(db, record_id)
    if not record:
        raise RecordNotFoundError(record_id)
    return record


# ============================================
# CRUD
# ============================================


async def create_record(
    db: AsyncSession,
    cipher: FieldCipher,
    data: RecordCreate,
    actor: str,
) -> RecordRead:
    """
    Create a record.

    Args:
        db: Database session
        cipher: Field cipher for the sensitive fields
        data: Plaintext record
        actor: Email of the creating user; stored as created_by

    Returns:
        The stored record, decoded

    Raises:
        DuplicateRecordError: If record_id already exists (the store is unchanged)
    """
    if await repository.record_id_exists(db, data.record_id):
        raise DuplicateRecordError(data.record_id)

    fields = data.model_dump()
    fields["created_by"] = actor

    try:
        record = await repository.create(db, to_storage(fields, cipher))
    except repository.RecordIdExistsError as e:
        # Lost a race with a concurrent create for the same id
        logger.warning(f"Concurrent create rejected by unique index: {data.record_id}")
        raise DuplicateRecordError(data.record_id) from e

    logger.info(f"Record created: {record.record_id}")
    await activity_repository.log_safely(
        db,
        ActivityAction.ADD_RECORD,
        f"Added record {record.record_id} ({record.student_name})",
        user=actor,
    )
    return from_storage(record, cipher)


async def get_record(db: AsyncSession, cipher: FieldCipher, record_id: str) -> RecordRead:
    """
    Raises:
        RecordNotFoundError: If the record does not exist
    """
    record = await _get_or_raise(db, record_id)
    return from_storage(record, cipher)


async def list_records(
    db: AsyncSession,
    cipher: FieldCipher,
    filters: RecordFilters | None = None,
    actor_email: str | None = None,
    actor_name: str | None = None,
) -> list[RecordRead]:
    """
    All records, most recently created first, optionally filtered.

    Filters:
    - search: case-insensitive substring of student name, record id,
      category, hold reason or contact email
    - team / status / section: exact match
    - mine: only records created by the actor or owned by the actor's name
    """
    records = [from_storage(record, cipher) for record in await repository.list_all(db)]

    if not filters:
        return records

    if filters.mine:
        records = [
            r
            for r in records
            if (actor_email and r.created_by.lower() == actor_email.lower())
            or (actor_name and r.owner_name == actor_name)
        ]

    if filters.search:
        term = filters.search.strip().lower()
        records = [
            r
            for r in records
            if term in r.student_name.lower()
            or term in r.record_id.lower()
            or term in r.category.lower()
            or term in r.hold_reason.lower()
            or term in r.contact_email.lower()
        ]

    if filters.team:
        records = [r for r in records if r.team == filters.team]

    if filters.status:
        records = [r for r in records if r.status == filters.status]

    if filters.section:
        records = [r for r in records if r.held_section == filters.section]

    return records


async def update_record(
    db: AsyncSession,
    cipher: FieldCipher,
    record_id: str,
    data: RecordUpdate,
    actor: str,
) -> RecordRead:
    """
    Merge the supplied fields into a record.

    Sensitive fields are re-encrypted only when their plaintext changed.
    record_id and created_by are never modified.

    Raises:
        RecordNotFoundError: If the record does not exist
    """
    record = await _get_or_raise(db, record_id)

    changes: dict[str, Any] = {}
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            if key in _NON_NULLABLE_UPDATE_FIELDS:
                continue
            if key != "next_reminder_date" and key != "initiated_date":
                value = ""
        changes[key] = value

    for field in ENCRYPTED_FIELDS:
        if field in changes and changes[field] == cipher.decrypt(getattr(record, field) or ""):
            del changes[field]

    record = await repository.update_fields(db, record, to_storage(changes, cipher))

    logger.info(f"Record updated: {record_id} (fields: {sorted(changes)})")
    await activity_repository.log_safely(
        db,
        ActivityAction.EDIT_RECORD,
        f"Edited record {record_id} ({record.student_name})",
        user=actor,
    )
    return from_storage(record, cipher)


async def delete_record(db: AsyncSession, record_id: str, actor: str) -> None:
    """
    Permanently delete a record. There is no undo.

    Raises:
        RecordNotFoundError: If the record does not exist
    """
    record = await _get_or_raise(db, record_id)
    student_name = record.student_name

    await repository.delete(db, record)

    logger.info(f"Record deleted: {record_id}")
    await activity_repository.log_safely(
        db,
        ActivityAction.DELETE_RECORD,
        f"Deleted record {record_id} ({student_name})",
        user=actor,
    )


async def set_reminders_suppressed(
    db: AsyncSession,
    cipher: FieldCipher,
    record_id: str,
    suppressed: bool,
    actor: str,
) -> RecordRead:
    """
    Turn automatic reminders off (suppressed=True) or back on for a record.

    Raises:
        RecordNotFoundError: If the record does not exist
    """
    record = await _get_or_raise(db, record_id)
    record = await repository.update_fields(db, record, {"reminders_suppressed": suppressed})

    state = "disabled" if suppressed else "enabled"
    await activity_repository.log_safely(
        db,
        ActivityAction.TOGGLE_REMINDER,
        f"Reminders {state} for record {record_id}",
        user=actor,
    )
    return from_storage(record, cipher)


async def find_by_contact_email(
    db: AsyncSession,
    cipher: FieldCipher,
    email: str,
) -> list[RecordRead]:
    """Find records by contact email using the hash index (no row decryption to match)."""
    records = await repository.get_by_contact_email_hash(db, cipher.hash_identifier(email))
    return [from_storage(record, cipher) for record in records]


# ============================================
# Analytics
# ============================================


def _status_bucket(status: RecordStatus | str) -> str:
    """Case/whitespace-insensitive status label, matching the dashboard's counting rules."""
    raw = status.value if isinstance(status, RecordStatus) else str(status or "")
    normalized = raw.strip().lower()
    if "hold" in normalized:
        return RecordStatus.ON_HOLD.value
    for candidate in RecordStatus:
        if normalized == candidate.value.lower():
            return candidate.value
    return raw.strip() or "Unknown"


async def get_analytics(
    db: AsyncSession,
    cipher: FieldCipher,
    today: date,
) -> RecordAnalytics:
    """Aggregate counts over all records."""
    records = await list_records(db, cipher)

    by_status = {status.value: 0 for status in RecordStatus}
    by_status.update(Counter(_status_bucket(r.status) for r in records))

    return RecordAnalytics(
        total=len(records),
        by_status=by_status,
        by_team=dict(Counter(r.team or "Unassigned" for r in records)),
        by_category=dict(Counter(r.category or "Uncategorized" for r in records)),
        due_today=sum(1 for r in records if is_due(r, today)),
        reminders_suppressed=sum(1 for r in records if r.reminders_suppressed),
    )
