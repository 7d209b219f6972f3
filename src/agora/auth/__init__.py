"""Authentication for agents (bearer keys) and administrators (session cookies)."""

from agora.auth.api_keys import generate_api_key, hash_api_key, verify_api_key
from agora.auth.http import bearer_credential, looks_like_api_key
from agora.auth.sessions import create_session_token, verify_session_token

__all__ = [
    "bearer_credential",
    "create_session_token",
    "generate_api_key",
    "hash_api_key",
    "looks_like_api_key",
    "verify_api_key",
    "verify_session_token",
]
