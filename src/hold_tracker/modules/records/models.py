"""
On-Hold Record Models

Database model for tracked on-hold student records.

Sensitive columns (contact_email, contact_phone, hold_reason,
follow_up_comments) hold AES-GCM envelopes, never plaintext. The *_hash
columns are keyed one-way hashes used only for equality lookup.
"""

import enum
import uuid
from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from hold_tracker.core.database import Base


class RecordStatus(str, enum.Enum):
    """Follow-up status of a record."""

    ON_HOLD = "On hold"
    ADDED = "Added"
    PENDING = "Pending"
    REFUNDED = "Refunded"
    DISCONTINUED = "Discontinued"


# Statuses that still need a follow-up and therefore get reminders
REMINDABLE_STATUSES = (RecordStatus.ON_HOLD, RecordStatus.PENDING)

RECORD_ID_CONSTRAINT = "uq_on_hold_records_record_id"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class OnHoldRecord(Base):
    """
    A student whose enrolment is on hold and needs follow-up.

    `id` is the storage key; `record_id` is the business identifier the UI
    assigns and uses in every URL.
    """

    __tablename__ = "on_hold_records"

    # Storage key
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Business key - uq_on_hold_records_record_id enforces uniqueness even for concurrent creates
    record_id: Mapped[str] = mapped_column(String(100), nullable=False)

    # Student and enrolment details (plain)
    student_name: Mapped[str] = mapped_column(String(200), nullable=False)
    initiated_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    held_section: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    changed_to_section: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    # Ownership
    owner_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    team: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Encrypted contact details
    contact_email: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact_phone: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact_email_hash: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    contact_phone_hash: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    # Encrypted notes
    hold_reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    follow_up_comments: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Follow-up tracking
    status: Mapped[RecordStatus] = mapped_column(
        Enum(RecordStatus, name="record_status"),
        nullable=False,
        default=RecordStatus.ON_HOLD,
    )
    next_reminder_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reminders_suppressed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Audit timestamps (client-side default keeps sub-second ordering for listings)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("record_id", name=RECORD_ID_CONSTRAINT),
        Index("ix_on_hold_records_due", "reminders_suppressed", "status", "next_reminder_date"),
        Index("ix_on_hold_records_created_at", "created_at"),
        Index("ix_on_hold_records_contact_email_hash", "contact_email_hash"),
        Index("ix_on_hold_records_contact_phone_hash", "contact_phone_hash"),
    )

    def __repr__(self) -> str:
        return f"<OnHoldRecord(record_id={self.record_id}, status={self.status.value})>"
