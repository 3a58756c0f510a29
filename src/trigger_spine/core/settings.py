"""Centralized settings for trigger-spine.

Manifesto:
    One validated, cached settings object. Everything the dispatch layer
    can be tuned with (default loop ceiling, where deactivation records
    live, the rejection message shown on records) is read here from
    ``TRIGGER_SPINE_*`` environment variables or a ``.env`` file.

Tags:
    configuration, settings, pydantic, trigger-spine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REJECTION_MESSAGE = (
    "An unexpected error occurred while processing this record. Reference: {correlation_id}"
)
# Fields available to rejection_message templates.
REJECTION_PLACEHOLDERS = ("correlation_id", "handler", "error")


class TriggerSpineSettings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRIGGER_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    # ── Loop guard ───────────────────────────────────────────────
    default_max_loop_count: int | None = Field(
        default=None,
        ge=0,
        description="Ceiling applied to every new handler; None leaves handlers permissive",
    )

    # ── Deactivation ─────────────────────────────────────────────
    deactivation_backend: Literal["memory", "env", "database"] = "memory"
    deactivation_env_prefix: str = "TRIGGER_SPINE_DEACTIVATE_"
    database_url: str = "sqlite:///trigger_spine.db"
    database_echo: bool = False

    # ── Failure isolation ────────────────────────────────────────
    rejection_message: str = Field(
        default=DEFAULT_REJECTION_MESSAGE,
        description="Message attached to every record of a failed batch",
    )

    @field_validator("rejection_message")
    @classmethod
    def _require_correlation_placeholder(cls, value: str) -> str:
        if "{correlation_id}" not in value:
            raise ValueError("rejection_message must contain '{correlation_id}'")
        try:
            value.format(**dict.fromkeys(REJECTION_PLACEHOLDERS, ""))
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(
                f"rejection_message may only use the placeholders {', '.join(REJECTION_PLACEHOLDERS)}: {e!r}"
            ) from e
        return value


# Global settings instance
_settings: TriggerSpineSettings | None = None


def get_settings() -> TriggerSpineSettings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = TriggerSpineSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
