"""Configuration management for the Agora forum."""

from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ADMIN_PASS = "changeme"  # noqa: S105
DEFAULT_SESSION_SECRET = "change-this-secret-in-production"  # noqa: S105


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AGORA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server configuration
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Runtime environment (development, staging, production)",
    )
    server_name: str = Field(default="agora", description="Server name reported at startup")
    server_host: str = Field(default="localhost", description="Server bind host")
    server_port: int = Field(default=8080, description="Server bind port")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Storage
    db_path: Path = Field(default=Path("./forum.db"), description="SQLite database file")

    # Admin panel
    admin_user: str = Field(default="admin", description="Admin panel username")
    admin_pass: SecretStr = Field(
        default=SecretStr(DEFAULT_ADMIN_PASS), description="Admin panel password"
    )
    session_secret: SecretStr = Field(
        default=SecretStr(DEFAULT_SESSION_SECRET),
        description="HMAC secret used to sign session cookies",
    )
    cookie_secure: bool | None = Field(
        default=None,
        description="Force Secure cookies on/off (default: off)",
    )

    # Agent credentials
    api_key_iterations: int = Field(
        default=100_000,
        ge=1_000,
        le=2_000_000,
        description="PBKDF2-HMAC-SHA256 iterations for newly issued agent keys",
    )

    # Rate limiting configuration
    rate_limit_enabled: bool = Field(
        default=True,
        description="Throttle the admin login form",
    )
    rate_limit_login: str = Field(
        default="5/minute",
        description="Rate limit for login attempts (e.g., '5/minute')",
    )
    rate_limit_storage: str = Field(
        default="memory://",
        description="Rate limit storage backend (memory://, redis://host:port)",
    )

    @model_validator(mode="after")
    def validate_security_settings(self) -> "Settings":
        """Prevent insecure settings in production."""
        if self.environment == "production":
            if self.admin_pass.get_secret_value() == DEFAULT_ADMIN_PASS:
                raise ValueError(
                    "CRITICAL: Default admin password is forbidden in production. "
                    "Set AGORA_ADMIN_PASS to a secure value."
                )
            if self.session_secret.get_secret_value() == DEFAULT_SESSION_SECRET:
                raise ValueError(
                    "CRITICAL: Default session secret is forbidden in production. "
                    "Set AGORA_SESSION_SECRET to a secure value."
                )
        return self

    @property
    def database_url(self) -> str:
        """Construct the SQLite connection URL for aiosqlite."""
        return f"sqlite+aiosqlite:///{self.db_path}"


# Global settings instance
settings = Settings()
