"""
spac_os.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `SPACOS_`).
    Defaults are safe for local dev; one instance is injected across layers.
    """

    model_config = SettingsConfigDict(env_prefix="SPACOS_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev tokens.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "spac-os"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080
    api_workers: int = Field(default=1, ge=1)

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "spac-os"
    jwt_audience: str = "spac-os-api"
    jwt_secret: str = Field(default="dev-secret-change-me-before-deploying", repr=False)
    # Tolerated clock skew for exp/iat checks.
    jwt_leeway_seconds: int = Field(default=30, ge=0)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./spac_os.db"

    # Ephemeral (process-local) cache for external filing lookups
    filings_cache_ttl_seconds: float = Field(default=300.0, gt=0)
    filings_cache_max_entries: int = Field(default=100, ge=1)

    # Persisted document-analysis cache
    analysis_cache_enabled: bool = True
    analysis_cache_ttl_hours: int = Field(default=24, ge=1)

    # SEC EDGAR
    edgar_base_url: str = "https://data.sec.gov"
    edgar_user_agent: str = "SPAC-OS/1.0 (contact@example.com)"
    edgar_timeout_seconds: float = 10.0
    edgar_max_retries: int = Field(default=2, ge=0)
    edgar_backoff_seconds: float = 0.5
    edgar_min_interval_seconds: float = 0.1

    # Export
    export_max_rows: int = Field(default=10_000, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Tests construct `Settings(...)` directly and pass it to `create_app`; the cached
# instance is only used by dependencies that are not overridden.
