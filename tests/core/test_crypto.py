"""
Unit tests for field encryption.

These tests cover:
- Envelope format and round trips
- Empty value handling
- Decryption fallback for legacy plaintext, malformed and tampered values
- Identifier hashing
- Key parsing and startup key policy
"""

import pytest
from cryptography.exceptions import InvalidTag

from hold_tracker.core.config import Settings
from hold_tracker.core.crypto import (
    IV_LENGTH,
    TAG_LENGTH,
    EncryptionKeyMissingError,
    FieldCipher,
    build_field_cipher,
    parse_key,
)
from tests.helpers import OTHER_KEY_HEX, TEST_KEY_HEX


class TestEncrypt:
    """Tests for FieldCipher.encrypt."""

    def test_envelope_has_three_hex_segments(self, cipher):
        """Envelope is iv:tag:ciphertext, all hex."""
        envelope = cipher.encrypt("parent@example.com")
        iv_hex, tag_hex, ciphertext_hex = envelope.split(":")

        assert len(bytes.fromhex(iv_hex)) == IV_LENGTH
        assert len(bytes.fromhex(tag_hex)) == TAG_LENGTH
        assert len(bytes.fromhex(ciphertext_hex)) == len(b"parent@example.com")

    def test_empty_string_stays_empty(self, cipher):
        assert cipher.encrypt("") == ""

    def test_same_plaintext_gives_different_envelopes(self, cipher):
        """A fresh IV is drawn for every call."""
        assert cipher.encrypt("same value") != cipher.encrypt("same value")

    def test_plaintext_not_visible_in_envelope(self, cipher):
        envelope = cipher.encrypt("secret reason")
        assert "secret" not in envelope
        assert b"secret reason".hex() not in envelope


class TestDecrypt:
    """Tests for FieldCipher.decrypt and decrypt_strict."""

    @pytest.mark.parametrize(
        "plaintext",
        ["a", "parent@example.com", "+91 98765 43210", "Multi\nline reason", "ünïcødé ✓"],
    )
    def test_round_trip(self, cipher, plaintext):
        assert cipher.decrypt(cipher.encrypt(plaintext)) == plaintext

    def test_empty_string_stays_empty(self, cipher):
        assert cipher.decrypt("") == ""

    def test_legacy_plaintext_returned_unchanged(self, cipher):
        """Rows written before encryption was enabled still display."""
        assert cipher.decrypt("Awaiting documents") == "Awaiting documents"

    def test_value_with_colons_but_bad_hex_returned_unchanged(self, cipher):
        assert cipher.decrypt("zz:yy:xx") == "zz:yy:xx"

    @pytest.mark.parametrize(
        "stored",
        ["abc:def", "::", "00:00:00", "0:0:0", "ab:ab:ab:ab:ab:"],
    )
    def test_malformed_envelope_returned_unchanged(self, cipher, stored):
        """Wrong segment count, empty segments and too-short IVs all fall back."""
        assert cipher.decrypt(stored) == stored

    @pytest.mark.parametrize("stored", ["::", "00:00:00", "ab:ab:ab:ab:ab:"])
    def test_strict_rejects_malformed_envelope(self, cipher, stored):
        with pytest.raises(ValueError):
            cipher.decrypt_strict(stored)

    def test_wrong_key_returns_stored_value(self, cipher):
        envelope = cipher.encrypt("parent@example.com")
        other = FieldCipher(parse_key(OTHER_KEY_HEX))

        assert other.decrypt(envelope) == envelope

    def test_tampered_ciphertext_returns_stored_value(self, cipher):
        iv_hex, tag_hex, ciphertext_hex = cipher.encrypt("parent@example.com").split(":")
        flipped = f"{int(ciphertext_hex[:2], 16) ^ 0x01:02x}" + ciphertext_hex[2:]
        tampered = ":".join((iv_hex, tag_hex, flipped))

        assert cipher.decrypt(tampered) == tampered

    def test_fallback_does_not_log_the_value(self, cipher, caplog):
        cipher.decrypt("00:11:zz-not-hex-secret")
        assert "secret" not in caplog.text

    def test_strict_raises_on_malformed_envelope(self, cipher):
        with pytest.raises(ValueError):
            cipher.decrypt_strict("only:two")

    def test_strict_raises_on_wrong_key(self, cipher):
        envelope = FieldCipher(parse_key(OTHER_KEY_HEX)).encrypt("x")
        with pytest.raises(InvalidTag):
            cipher.decrypt_strict(envelope)


class TestHashIdentifier:
    """Tests for FieldCipher.hash_identifier."""

    def test_is_case_and_whitespace_insensitive(self, cipher):
        assert cipher.hash_identifier("  Parent@Example.com ") == cipher.hash_identifier(
            "parent@example.com"
        )

    def test_is_deterministic_hex(self, cipher):
        value = cipher.hash_identifier("parent@example.com")
        assert value == cipher.hash_identifier("parent@example.com")
        assert len(value) == 64
        int(value, 16)

    def test_empty_stays_empty(self, cipher):
        assert cipher.hash_identifier("") == ""

    def test_salt_changes_the_hash(self):
        key = parse_key(TEST_KEY_HEX)
        unsalted = FieldCipher(key).hash_identifier("parent@example.com")
        salted = FieldCipher(key, hash_salt=b"pepper").hash_identifier("parent@example.com")
        assert unsalted != salted


class TestKeyPolicy:
    """Tests for parse_key and build_field_cipher."""

    def test_parse_key_uses_first_64_hex_chars(self):
        assert parse_key(TEST_KEY_HEX + "abcdef") == parse_key(TEST_KEY_HEX)

    def test_parse_key_rejects_short_key(self):
        with pytest.raises(ValueError):
            parse_key("abcd")

    def test_parse_key_rejects_non_hex(self):
        with pytest.raises(ValueError):
            parse_key("g" * 64)

    def test_missing_key_fails_startup(self):
        settings = Settings(encryption_key=None, encryption_ephemeral_key=False)
        with pytest.raises(EncryptionKeyMissingError):
            build_field_cipher(settings)

    def test_ephemeral_mode_generates_key_and_warns(self, caplog):
        settings = Settings(encryption_key=None, encryption_ephemeral_key=True)

        cipher = build_field_cipher(settings)

        assert cipher.ephemeral is True
        assert cipher.decrypt(cipher.encrypt("x")) == "x"
        assert "EPHEMERAL" in caplog.text

    def test_configured_key_is_used(self, cipher):
        settings = Settings(encryption_key=TEST_KEY_HEX)

        built = build_field_cipher(settings)

        assert built.ephemeral is False
        assert built.decrypt(cipher.encrypt("parent@example.com")) == "parent@example.com"
