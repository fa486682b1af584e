from pathlib import Path

from pydantic_settings import BaseSettings
from pydantic import field_validator


class ContactDropSettings(BaseSettings):
    """ContactDrop service configuration.

    Every field can be overridden from the environment (case-insensitive,
    no prefix), e.g. ``PORT=8080`` or ``SESSIONS_DIR=/var/lib/contactdrop``.
    """

    host: str = "0.0.0.0"
    port: int = 3000
    sessions_dir: str = "sessions"
    rate_window_ms: int = 60_000
    rate_max: int = 20
    rate_sweep_interval_seconds: int = 60
    contact_limit: int = 1000
    max_body_bytes: int = 50 * 1024

    model_config = {"env_prefix": "", "case_sensitive": False}

    @field_validator(
        "rate_window_ms",
        "rate_max",
        "rate_sweep_interval_seconds",
        "contact_limit",
        "max_body_bytes",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Expected a positive integer, got {v!r}")
        return v

    @property
    def sessions_path(self) -> Path:
        return Path(self.sessions_dir).resolve()
