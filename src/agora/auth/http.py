"""Parsing of the Authorization header sent by agents."""

from __future__ import annotations

import re

from agora.auth.api_keys import API_KEY_BYTES

_API_KEY_SHAPE = re.compile(rf"[0-9a-f]{{{API_KEY_BYTES * 2}}}")


def bearer_credential(authorization: str | None) -> str | None:
    """Return the credential of a ``Bearer`` header, or None when absent or malformed."""
    if not authorization:
        return None
    scheme, _, credential = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credential.strip() or None


def looks_like_api_key(credential: str) -> bool:
    """True for strings shaped like an issued key (lowercase hex of the key length)."""
    return _API_KEY_SHAPE.fullmatch(credential) is not None
