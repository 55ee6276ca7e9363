"""Service sync configuration using Pydantic Settings.

Values can be provided via environment variables (preferred) or fall back to
the defaults below. A ``Settings`` instance is intended to be retrieved via
``get_settings`` which caches the object for reuse across the process.

Environment variable prefix: ``SERVICE_SYNC_`` (e.g. ``SERVICE_SYNC_DB``).
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the event relay.

    Attributes map directly to environment variables using the
    ``SERVICE_SYNC_`` prefix (case-insensitive). For example,
    ``db`` <- ``SERVICE_SYNC_DB``.
    """

    # Broker settings
    db: str = Field(
        default="redis://localhost:6379/0",
        description="Broker address every service connection is created against",
    )  # fmt: skip
    backend: Literal["redis", "memory"] = Field(
        default="redis",
        description="Broker client implementation",
    )  # fmt: skip

    # Bootstrap settings
    connect_delay: float = Field(
        default=0.05,
        ge=0,
        description="Seconds between hook installation and the connect callback",
    )  # fmt: skip

    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level used by the CLI",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str:
        """Normalize and validate log level."""
        if v is None:
            return "INFO"

        v_upper = str(v).upper()

        allowed = {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR"}
        if v_upper not in allowed:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(sorted(allowed))}")

        return v_upper

    @field_validator("backend", mode="before")
    @classmethod
    def validate_backend(cls, v: str | None) -> str:
        """Normalize backend name to lower case."""
        if v is None:
            return "redis"
        return str(v).lower()

    model_config = SettingsConfigDict(
        env_prefix="SERVICE_SYNC_",
        case_sensitive=False,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a validated copy of these settings with ``overrides`` applied.

        Raises:
            ValidationError: If an override is not a valid value
        """
        return self.model_validate({**self.model_dump(), **overrides})


@lru_cache
def get_settings() -> Settings:
    """Return the cached ``Settings`` instance.

    The first invocation reads environment variables / .env file; subsequent
    calls reuse the same object to ensure consistent config.
    """

    return Settings()


__all__ = ["Settings", "get_settings"]
