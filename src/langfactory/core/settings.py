"""Runtime settings for langfactory.

All knobs come from ``LANGFACTORY_*`` environment variables or a ``.env``
file, validated by pydantic at startup.

Fields
──────
database_url         : SQLite path, or ``:memory:``
log_level            : structlog log level
json_logs            : Force JSON (True) or console (False) output; None = auto
default_language     : Language scope for new namespaces
case_sensitive       : Catalog uniqueness compares values verbatim
enforce_no_match     : Reject catalog rows whose two values are equal
publish_max_attempts : Attempts per identifier before reporting failure
publish_base_delay   : First backoff delay in seconds
publish_max_delay    : Backoff ceiling in seconds
publish_workers      : Identifier groups published in parallel
busy_timeout         : Seconds SQLite waits on a locked database
autosave_delay       : Quiet period before a pending catalog save flushes
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FactorySettings(BaseSettings):
    """Settings shared by the API, the CLI and the publish pipeline."""

    model_config = SettingsConfigDict(
        env_prefix="LANGFACTORY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    database_url: str = Field(default="langfactory.db", description="SQLite database path")
    busy_timeout: float = 5.0

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Catalog rules ────────────────────────────────────────────
    default_language: str = "en"
    case_sensitive: bool = False
    enforce_no_match: bool = True
    autosave_delay: float = 0.6

    # ── Publish pipeline ─────────────────────────────────────────
    publish_max_attempts: int = Field(default=3, ge=1)
    publish_base_delay: float = Field(default=0.05, ge=0)
    publish_max_delay: float = Field(default=1.0, ge=0)
    publish_workers: int = Field(default=1, ge=1)


def get_settings() -> FactorySettings:
    """Build settings from the current environment."""
    return FactorySettings()
