"""Test doubles and builders shared across the suite."""

from datetime import date
from uuid import uuid4

from hold_tracker.core.email import MailSendError
from hold_tracker.core.security import create_access_token
from hold_tracker.modules.records.schemas import RecordCreate

TEST_KEY_HEX = "000102030405060708090a0b0c0d0e0f101112131415161718191a1b1c1d1e1f"
OTHER_KEY_HEX = "ff" * 32

STAFF_EMAIL = "staff@example.com"
STAFF_NAME = "Alice"
ADMIN_EMAIL = "admin@example.com"
ADMIN_NAME = "Root Admin"

TODAY = date(2026, 10, 19)


class FakeMailTransport:
    """
    In-memory MailTransport.

    A send whose subject contains one of `fail_subjects` raises MailSendError.
    `fail_first` makes the first N attempts fail regardless of subject.
    """

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.sent: list[dict] = []
        self.attempts = 0
        self.fail_subjects: set[str] = set()
        self.fail_first = 0

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def send(self, to: str, subject: str, html_content: str) -> str:
        self.attempts += 1
        if self.attempts <= self.fail_first:
            raise MailSendError("provider unavailable")
        if any(marker in subject for marker in self.fail_subjects):
            raise MailSendError("provider rejected message")
        self.sent.append({"to": to, "subject": subject, "html": html_content})
        return f"msg-{len(self.sent)}"


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def build_record(**overrides) -> RecordCreate:
    """A valid record with realistic values; override any field."""
    values = {
        "record_id": f"REC-{uuid4().hex[:8]}",
        "student_name": "Jane Doe",
        "initiated_date": date(2026, 10, 1),
        "category": "Fees",
        "held_section": "Grade 5",
        "changed_to_section": "",
        "owner_name": "Alice",
        "team": "North",
        "contact_email": "parent@example.com",
        "contact_phone": "+91 98765 43210",
        "hold_reason": "Awaiting fee confirmation",
        "follow_up_comments": "",
        "status": "On hold",
        "next_reminder_date": TODAY,
        "reminders_suppressed": False,
    }
    values.update(overrides)
    return RecordCreate(**values)


def auth_headers(email: str, role: str, name: str, user_id: str | None = None) -> dict[str, str]:
    token = create_access_token(
        subject=user_id or str(uuid4()),
        additional_claims={"email": email, "role": role, "name": name},
    )
    return {"Authorization": f"Bearer {token}"}
