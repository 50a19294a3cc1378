"""create hold tracker tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration:
1. Creates the users table with the user_role enum
2. Creates the on_hold_records table with the record_status enum, the unique
   record_id index, the due-for-reminder index and the contact hash indexes
3. Creates the activities audit table with the activity_action enum
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d2"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

USER_ROLES = ("ADMIN", "STAFF")
RECORD_STATUSES = ("ON_HOLD", "ADDED", "PENDING", "REFUNDED", "DISCONTINUED")
ACTIVITY_ACTIONS = (
    "LOGIN",
    "LOGOUT",
    "ADD_RECORD",
    "EDIT_RECORD",
    "DELETE_RECORD",
    "ANALYZE_RECORD",
    "UNAUTHORIZED_ACCESS",
    "SEND_EMAIL",
    "TOGGLE_REMINDER",
    "CRON_JOB",
    "CRON_JOB_UPDATE",
    "CRON_JOB_FAILED",
)


def upgrade() -> None:
    """Create users, on_hold_records and activities."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("role", sa.Enum(*USER_ROLES, name="user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "on_hold_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("record_id", sa.String(length=100), nullable=False),
        # Student and enrolment details
        sa.Column("student_name", sa.String(length=200), nullable=False),
        sa.Column("initiated_date", sa.Date(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("held_section", sa.String(length=200), nullable=False),
        sa.Column("changed_to_section", sa.String(length=200), nullable=False),
        # Ownership
        sa.Column("owner_name", sa.String(length=200), nullable=False),
        sa.Column("team", sa.String(length=100), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        # Encrypted fields and lookup hashes
        sa.Column("contact_email", sa.Text(), nullable=False),
        sa.Column("contact_phone", sa.Text(), nullable=False),
        sa.Column("contact_email_hash", sa.String(length=64), nullable=False),
        sa.Column("contact_phone_hash", sa.String(length=64), nullable=False),
        sa.Column("hold_reason", sa.Text(), nullable=False),
        sa.Column("follow_up_comments", sa.Text(), nullable=False),
        # Follow-up tracking
        sa.Column("status", sa.Enum(*RECORD_STATUSES, name="record_status"), nullable=False),
        sa.Column("next_reminder_date", sa.Date(), nullable=True),
        sa.Column("reminders_suppressed", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("record_id", name="uq_on_hold_records_record_id"),
    )
    op.create_index(
        "ix_on_hold_records_due",
        "on_hold_records",
        ["reminders_suppressed", "status", "next_reminder_date"],
    )
    op.create_index("ix_on_hold_records_created_at", "on_hold_records", ["created_at"])
    op.create_index(
        "ix_on_hold_records_contact_email_hash", "on_hold_records", ["contact_email_hash"]
    )
    op.create_index(
        "ix_on_hold_records_contact_phone_hash", "on_hold_records", ["contact_phone_hash"]
    )

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user", sa.String(length=255), nullable=False),
        sa.Column(
            "action", sa.Enum(*ACTIVITY_ACTIONS, name="activity_action"), nullable=False
        ),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activities_action", "activities", ["action"])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_index("ix_activities_action", table_name="activities")
    op.drop_table("activities")

    op.drop_index("ix_on_hold_records_contact_phone_hash", table_name="on_hold_records")
    op.drop_index("ix_on_hold_records_contact_email_hash", table_name="on_hold_records")
    op.drop_index("ix_on_hold_records_created_at", table_name="on_hold_records")
    op.drop_index("ix_on_hold_records_due", table_name="on_hold_records")
    op.drop_table("on_hold_records")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    sa.Enum(name="activity_action").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="record_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)
