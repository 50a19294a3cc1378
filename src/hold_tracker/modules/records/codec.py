"""
Record Codec

Maps plaintext record fields to their at-rest representation and back.

Field policy:
- ENCRYPTED_FIELDS are stored as AES-GCM envelopes (reversible).
- HASHED_FIELDS additionally get a keyed one-way hash column for equality
  lookup (e.g. "find the record for this email") without decrypting rows.
- Every other field is stored as given.

Empty values are stored as "" and never as an envelope of "".
"""

from typing import Any

from hold_tracker.core.crypto import FieldCipher
from hold_tracker.modules.records.models import OnHoldRecord
from hold_tracker.modules.records.schemas import RecordRead

ENCRYPTED_FIELDS = ("contact_email", "contact_phone", "hold_reason", "follow_up_comments")

# plaintext field -> hash column
HASHED_FIELDS = {
    "contact_email": "contact_email_hash",
    "contact_phone": "contact_phone_hash",
}


def to_storage(fields: dict[str, Any], cipher: FieldCipher) -> dict[str, Any]:
    """
    Encode plaintext fields for storage.

    Only keys present in `fields` are emitted, so the same function serves a
    full create and a partial update.

    Args:
        fields: Plaintext field values keyed by column name
        cipher: The process FieldCipher

    Returns:
        A new dict with sensitive fields encrypted and lookup hashes added
    """
    stored = dict(fields)

    for field in ENCRYPTED_FIELDS:
        if field not in fields:
            continue
        value = fields[field] or ""
        stored[field] = cipher.encrypt(value)

        hash_column = HASHED_FIELDS.get(field)
        if hash_column:
            stored[hash_column] = cipher.hash_identifier(value)

    return stored


def from_storage(record: OnHoldRecord, cipher: FieldCipher) -> RecordRead:
    """Decode a stored record into its plaintext API form."""
    decoded = RecordRead.model_validate(record)

    updates = {field: cipher.decrypt(getattr(record, field) or "") for field in ENCRYPTED_FIELDS}
    return decoded.model_copy(update=updates)
