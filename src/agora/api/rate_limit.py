"""Rate limiting for the admin login form."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from agora import config as config_module

# Global limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=config_module.settings.rate_limit_storage or "memory://",
    strategy="fixed-window",
    enabled=config_module.settings.rate_limit_enabled,
)


def login_rate_limit() -> str:
    """Resolved per request so the limit follows the active settings."""
    return config_module.settings.rate_limit_login
