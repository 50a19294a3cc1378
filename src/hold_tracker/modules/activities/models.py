"""
Activity Models

Append-only audit log. The autoincrement id gives insertion order.
"""

import enum
from datetime import UTC, datetime

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hold_tracker.core.database import Base


class ActivityAction(str, enum.Enum):
    """Fixed vocabulary of audited actions."""

    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    ADD_RECORD = "ADD_RECORD"
    EDIT_RECORD = "EDIT_RECORD"
    DELETE_RECORD = "DELETE_RECORD"
    ANALYZE_RECORD = "ANALYZE_RECORD"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    SEND_EMAIL = "SEND_EMAIL"
    TOGGLE_REMINDER = "TOGGLE_REMINDER"
    CRON_JOB = "CRON_JOB"
    CRON_JOB_UPDATE = "CRON_JOB_UPDATE"
    CRON_JOB_FAILED = "CRON_JOB_FAILED"


# Actor recorded for entries written by the server itself
SYSTEM_ACTOR = "SYSTEM"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Activity(Base):
    """One audit log entry. Never updated or deleted."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[ActivityAction] = mapped_column(
        Enum(ActivityAction, name="activity_action"), nullable=False, index=True
    )
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
