"""
On-Hold Record Schemas

Pydantic schemas for request validation and response serialization.
Requests and responses always carry plaintext; encryption happens in the codec.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hold_tracker.modules.records.models import RecordStatus

_STATUS_ALIASES = {
    status.value.lower().replace(" ", "").replace("-", "").replace("_", ""): status
    for status in RecordStatus
}


def _coerce_status(value):
    """Accept "Pending", "pending", "on-hold", "ON_HOLD" and friends."""
    if isinstance(value, str):
        key = value.strip().lower().replace(" ", "").replace("-", "").replace("_", "")
        return _STATUS_ALIASES.get(key, value)
    return value


class RecordFields(BaseModel):
    """Editable fields shared by create and update."""

    student_name: str = Field(..., min_length=1, max_length=200)
    initiated_date: date | None = None
    category: str = Field("", max_length=100)
    held_section: str = Field("", max_length=200)
    changed_to_section: str = Field("", max_length=200)
    owner_name: str = Field("", max_length=200)
    team: str = Field("", max_length=100)

    contact_email: str = Field("", max_length=255)
    contact_phone: str = Field("", max_length=50)
    hold_reason: str = Field("", max_length=5000)
    follow_up_comments: str = Field("", max_length=5000)

    status: RecordStatus = RecordStatus.ON_HOLD
    next_reminder_date: date | None = None
    reminders_suppressed: bool = False

    normalize_status = field_validator("status", mode="before")(_coerce_status)


class RecordCreate(RecordFields):
    """Request body for POST /records."""

    record_id: str = Field(..., min_length=1, max_length=100)

    @field_validator("record_id")
    @classmethod
    def strip_record_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("record_id must not be blank")
        return value


class RecordUpdate(BaseModel):
    """
    Request body for PUT /records/{record_id}.

    Every field is optional; only supplied fields are changed. record_id and
    created_by are not part of this schema, so values sent for them are ignored.
    """

    student_name: str | None = Field(None, min_length=1, max_length=200)
    initiated_date: date | None = None
    category: str | None = Field(None, max_length=100)
    held_section: str | None = Field(None, max_length=200)
    changed_to_section: str | None = Field(None, max_length=200)
    owner_name: str | None = Field(None, max_length=200)
    team: str | None = Field(None, max_length=100)

    contact_email: str | None = Field(None, max_length=255)
    contact_phone: str | None = Field(None, max_length=50)
    hold_reason: str | None = Field(None, max_length=5000)
    follow_up_comments: str | None = Field(None, max_length=5000)

    status: RecordStatus | None = None
    next_reminder_date: date | None = None
    reminders_suppressed: bool | None = None

    normalize_status = field_validator("status", mode="before")(_coerce_status)


class RecordRead(BaseModel):
    """A decoded record as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    record_id: str
    student_name: str
    initiated_date: date | None = None
    category: str = ""
    held_section: str = ""
    changed_to_section: str = ""
    owner_name: str = ""
    team: str = ""
    created_by: str = ""

    contact_email: str = ""
    contact_phone: str = ""
    hold_reason: str = ""
    follow_up_comments: str = ""

    status: RecordStatus
    next_reminder_date: date | None = None
    reminders_suppressed: bool = False

    created_at: datetime | None = None
    updated_at: datetime | None = None


class RecordFilters(BaseModel):
    """Query filters for listing records."""

    search: str | None = None
    team: str | None = None
    status: RecordStatus | None = None
    section: str | None = None
    mine: bool = False

    normalize_status = field_validator("status", mode="before")(_coerce_status)


class ReminderToggleRequest(BaseModel):
    """Request body for PUT /records/{record_id}/reminders."""

    suppressed: bool


class DeleteRecordResponse(BaseModel):
    record_id: str
    message: str = "Record deleted successfully"


class RecordAnalytics(BaseModel):
    """Aggregate counts for the analytics dashboard."""

    total: int
    by_status: dict[str, int]
    by_team: dict[str, int]
    by_category: dict[str, int]
    due_today: int
    reminders_suppressed: int
