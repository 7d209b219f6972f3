"""Signed session cookies for the admin panel.

A session token is the hex HMAC-SHA256 of ``"<subject>-session"`` under the
shared secret. Tokens carry no expiry; rotating the secret invalidates every
outstanding session.
"""

from __future__ import annotations

import hmac
from hashlib import sha256

ADMIN_SESSION_COOKIE = "admin_session"
ADMIN_SUBJECT = "admin"


def create_session_token(secret: str, subject: str = ADMIN_SUBJECT) -> str:
    payload = f"{subject}-session".encode()
    return hmac.new(secret.encode("utf-8"), payload, sha256).hexdigest()


def verify_session_token(token: str | None, secret: str, subject: str = ADMIN_SUBJECT) -> bool:
    if not token or not secret:
        return False
    expected = create_session_token(secret, subject)
    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))
