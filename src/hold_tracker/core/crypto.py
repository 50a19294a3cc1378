"""
Field Encryption

AES-256-GCM encryption for sensitive record fields, plus a keyed one-way hash
for identifiers that only ever need equality lookup.

Envelope format (one string per encrypted value):

    <iv hex>:<auth tag hex>:<ciphertext hex>

Leniency policy:
- encrypt("") and decrypt("") both return "" (empty means "absent").
- decrypt() returns its input unchanged when the value is not a well-formed
  envelope or fails authentication. Rows written before encryption was enabled
  (plain text) and corrupted envelopes must not break list views. Failures are
  logged without the value itself.

Key management:
- ENCRYPTION_KEY holds 64 hex characters (32 bytes).
- Without a key, startup fails unless ENCRYPTION_EPHEMERAL_KEY=true, in which
  case a random key lives only as long as the process. Anything encrypted in
  that mode cannot be decrypted after a restart.
"""

import hashlib
import hmac
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from hold_tracker.core.config import Settings

logger = logging.getLogger(__name__)

KEY_SIZE = 32  # 256-bit
KEY_HEX_LENGTH = KEY_SIZE * 2
IV_LENGTH = 16
TAG_LENGTH = 16
ENVELOPE_SEPARATOR = ":"


class EncryptionKeyMissingError(RuntimeError):
    """Raised at startup when no persistent encryption key is configured."""

    def __init__(self):
        super().__init__(
            "ENCRYPTION_KEY is not set. Configure a 64-character hex key, or set "
            "ENCRYPTION_EPHEMERAL_KEY=true to run with a throwaway key."
        )


def parse_key(key_hex: str) -> bytes:
    """
    Decode a hex key string into 32 key bytes.

    Only the first 64 hex characters are used.

    Raises:
        ValueError: If the key is too short or not valid hex
    """
    key_hex = key_hex.strip()[:KEY_HEX_LENGTH]
    if len(key_hex) != KEY_HEX_LENGTH:
        raise ValueError(f"Encryption key must be {KEY_HEX_LENGTH} hex characters")
    return bytes.fromhex(key_hex)


def split_envelope(envelope: str) -> tuple[bytes, bytes, bytes]:
    """
    Split an envelope into (iv, tag, ciphertext) bytes.

    Raises:
        ValueError: If the envelope does not have three hex segments of the right sizes
    """
    parts = envelope.split(ENVELOPE_SEPARATOR)
    if len(parts) != 3:
        raise ValueError(f"Expected 3 envelope segments, got {len(parts)}")
    iv_hex, tag_hex, ciphertext_hex = parts
    iv, tag = bytes.fromhex(iv_hex), bytes.fromhex(tag_hex)
    if len(iv) != IV_LENGTH or len(tag) != TAG_LENGTH:
        raise ValueError("Envelope IV or tag has the wrong length")
    return iv, tag, bytes.fromhex(ciphertext_hex)


class FieldCipher:
    """Encrypts, decrypts and hashes individual field values with one static key."""

    def __init__(self, key: bytes, hash_salt: bytes | None = None, ephemeral: bool = False):
        if len(key) != KEY_SIZE:
            raise ValueError(f"Encryption key must be {KEY_SIZE} bytes")
        self._aesgcm = AESGCM(key)
        # Separate the lookup-hash key from the encryption key when no salt is given
        self._hash_key = hash_salt or hashlib.sha256(b"identifier-hash:" + key).digest()
        self.ephemeral = ephemeral

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            return ""

        iv = os.urandom(IV_LENGTH)
        # AESGCM appends the tag to the ciphertext
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return ENVELOPE_SEPARATOR.join((iv.hex(), tag.hex(), ciphertext.hex()))

    def decrypt_strict(self, envelope: str) -> str:
        """
        Decrypt an envelope, raising on any failure.

        Raises:
            ValueError: Malformed envelope or undecodable plaintext
            InvalidTag: Wrong key or tampered data
        """
        if not envelope:
            return ""
        iv, tag, ciphertext = split_envelope(envelope)
        plaintext = self._aesgcm.decrypt(iv, ciphertext + tag, None)
        return plaintext.decode("utf-8")

    def decrypt(self, envelope: str) -> str:
        if not envelope:
            return ""
        try:
            return self.decrypt_strict(envelope)
        except (ValueError, InvalidTag) as e:
            logger.warning(
                f"Decryption fallback ({type(e).__name__}): returning stored value unchanged"
            )
            return envelope

    def hash_identifier(self, value: str) -> str:
        """Keyed SHA-256 of the trimmed, lower-cased value. Not reversible."""
        if not value:
            return ""
        normalized = value.strip().lower()
        return hmac.new(self._hash_key, normalized.encode("utf-8"), hashlib.sha256).hexdigest()


def build_field_cipher(settings: Settings) -> FieldCipher:
    """
    Construct the process-wide FieldCipher from configuration.

    Raises:
        EncryptionKeyMissingError: No key configured and ephemeral mode not enabled
        ValueError: The configured key is malformed
    """
    hash_salt = None
    if settings.identifier_hash_salt:
        hash_salt = settings.identifier_hash_salt.encode("utf-8")

    if settings.encryption_key:
        return FieldCipher(parse_key(settings.encryption_key), hash_salt=hash_salt)

    if not settings.encryption_ephemeral_key:
        raise EncryptionKeyMissingError()

    logger.warning(
        "SECURITY: Running with an EPHEMERAL encryption key. Fields encrypted by this "
        "process cannot be decrypted after a restart. Set ENCRYPTION_KEY for persistent data."
    )
    return FieldCipher(os.urandom(KEY_SIZE), hash_salt=hash_salt, ephemeral=True)
