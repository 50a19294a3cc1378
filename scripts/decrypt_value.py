"""
Decrypt a Stored Field Value

Prints the plaintext of one encrypted field envelope (iv:tag:ciphertext),
for support staff inspecting a database row by hand.

The key is read from ENCRYPTION_KEY in the environment, or from an env file.

Usage:
    python scripts/decrypt_value.py "<iv hex>:<tag hex>:<ciphertext hex>"
    python scripts/decrypt_value.py "<envelope>" --env-file .env.production

Exit status is 1 for a malformed envelope, a missing key, or a wrong key.
"""

import argparse
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cryptography.exceptions import InvalidTag
from dotenv import dotenv_values

from hold_tracker.core.crypto import FieldCipher, parse_key


def _load_key(env_file: str | None) -> str | None:
    if env_file:
        return dotenv_values(env_file).get("ENCRYPTION_KEY")
    return os.environ.get("ENCRYPTION_KEY")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Decrypt one encrypted field value.")
    parser.add_argument("envelope", help='Encrypted value in the form "iv:tag:ciphertext"')
    parser.add_argument("--env-file", help="Read ENCRYPTION_KEY from this file")
    args = parser.parse_args(argv)

    if args.env_file and not Path(args.env_file).is_file():
        print(f"Error: env file not found: {args.env_file}", file=sys.stderr)
        return 1

    key_hex = _load_key(args.env_file)
    if not key_hex:
        print("Error: ENCRYPTION_KEY is not set", file=sys.stderr)
        return 1

    try:
        cipher = FieldCipher(parse_key(key_hex))
    except ValueError as e:
        print(f"Error: invalid ENCRYPTION_KEY: {e}", file=sys.stderr)
        return 1

    try:
        plaintext = cipher.decrypt_strict(args.envelope.strip())
    except InvalidTag:
        print("Error: decryption failed (wrong key or tampered value)", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: malformed envelope: {e}", file=sys.stderr)
        return 1

    print(plaintext)
    return 0


if __name__ == "__main__":
    sys.exit(main())
