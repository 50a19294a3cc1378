"""
Unit tests for the record codec (plaintext <-> stored form).
"""

from hold_tracker.modules.records.codec import ENCRYPTED_FIELDS, from_storage, to_storage
from hold_tracker.modules.records.models import OnHoldRecord, RecordStatus


def _record(**fields) -> OnHoldRecord:
    """An unsaved row with every column set, as it would be after insert."""
    values = {
        "record_id": "REC-1",
        "student_name": "Jane Doe",
        "initiated_date": None,
        "category": "",
        "held_section": "",
        "changed_to_section": "",
        "owner_name": "",
        "team": "",
        "created_by": "",
        "contact_email": "",
        "contact_phone": "",
        "hold_reason": "",
        "follow_up_comments": "",
        "status": RecordStatus.ON_HOLD,
        "next_reminder_date": None,
        "reminders_suppressed": False,
    }
    values.update(fields)
    return OnHoldRecord(**values)


class TestToStorage:
    def test_sensitive_fields_are_encrypted(self, cipher):
        stored = to_storage(
            {
                "record_id": "REC-1",
                "student_name": "Jane Doe",
                "contact_email": "parent@example.com",
                "contact_phone": "+91 98765 43210",
                "hold_reason": "Awaiting fee confirmation",
                "follow_up_comments": "Called twice",
            },
            cipher,
        )

        assert stored["record_id"] == "REC-1"
        assert stored["student_name"] == "Jane Doe"
        for field in ENCRYPTED_FIELDS:
            assert stored[field].count(":") == 2
        assert "parent@example.com" not in stored["contact_email"]

    def test_lookup_hashes_are_added(self, cipher):
        stored = to_storage({"contact_email": "parent@example.com"}, cipher)

        assert stored["contact_email_hash"] == cipher.hash_identifier("parent@example.com")
        assert "contact_phone_hash" not in stored

    def test_partial_update_only_emits_given_fields(self, cipher):
        stored = to_storage({"hold_reason": "Updated"}, cipher)

        assert set(stored) == {"hold_reason"}

    def test_empty_values_stay_empty(self, cipher):
        stored = to_storage({"follow_up_comments": "", "contact_phone": None}, cipher)

        assert stored["follow_up_comments"] == ""
        assert stored["contact_phone"] == ""


class TestFromStorage:
    def test_decodes_back_to_plaintext(self, cipher):
        stored = to_storage(
            {
                "record_id": "REC-1",
                "student_name": "Jane Doe",
                "contact_email": "parent@example.com",
                "hold_reason": "Awaiting fee confirmation",
                "status": RecordStatus.PENDING,
            },
            cipher,
        )
        record = _record(**stored)

        decoded = from_storage(record, cipher)

        assert decoded.contact_email == "parent@example.com"
        assert decoded.hold_reason == "Awaiting fee confirmation"
        assert decoded.status == RecordStatus.PENDING

    def test_legacy_plaintext_rows_pass_through(self, cipher):
        record = _record(
            record_id="REC-OLD",
            contact_email="legacy@example.com",
            hold_reason="Imported before encryption",
        )

        decoded = from_storage(record, cipher)

        assert decoded.contact_email == "legacy@example.com"
        assert decoded.hold_reason == "Imported before encryption"
