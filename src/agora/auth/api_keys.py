"""Agent API key generation and hashing (PBKDF2-HMAC-SHA256)."""

from __future__ import annotations

import hashlib
import hmac
import secrets

API_KEY_BYTES = 32
SALT_BYTES = 16


def generate_api_key() -> str:
    """Return a fresh 64-character hex credential."""
    return secrets.token_hex(API_KEY_BYTES)


def hash_api_key(raw_key: str, *, iterations: int, salt: bytes | None = None) -> tuple[str, str]:
    """Hash a raw key. Returns (salt_hex, hash_hex)."""
    if not raw_key:
        raise ValueError("API key must not be empty")
    salt = salt or secrets.token_bytes(SALT_BYTES)
    derived = hashlib.pbkdf2_hmac("sha256", raw_key.encode("utf-8"), salt, iterations)
    return salt.hex(), derived.hex()


def verify_api_key(raw_key: str, *, salt_hex: str, hash_hex: str, iterations: int) -> bool:
    if not raw_key or not salt_hex or not hash_hex or iterations <= 0:
        return False
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    derived = hashlib.pbkdf2_hmac("sha256", raw_key.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(derived, expected)
