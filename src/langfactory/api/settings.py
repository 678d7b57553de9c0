"""
API-specific settings.

Extends :class:`~langfactory.core.settings.FactorySettings` with parameters
that govern the REST transport (bind address, prefix, CORS). All values can
be overridden via ``LANGFACTORY_*`` environment variables.
"""

from __future__ import annotations

from pydantic import Field

from langfactory.core.settings import FactorySettings


class FactoryAPISettings(FactorySettings):
    """Settings for the langfactory REST API.

    Order of precedence (highest → lowest):
        1. Environment variables (``LANGFACTORY_API_PREFIX``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    # ── Server ───────────────────────────────────────────────────────────
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=12100, description="Bind port")
    debug: bool = Field(default=False, description="Expose exception text in 500 responses")

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api/v1", description="URL prefix for all endpoints")
    api_title: str = Field(default="langfactory API", description="OpenAPI title")
    api_version: str = Field(default="0.1.0", description="OpenAPI version string")

    # ── CORS ─────────────────────────────────────────────────────────────
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")
