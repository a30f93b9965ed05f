"""Settings for tilehub services.

All knobs of the aggregation layer (serializer spacing, breaker thresholds,
cache backend, provider keys, request limits) live on one
``TileHubSettings`` object read from the environment.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads from ``TILEHUB_*`` env vars and .env files
    - **Sensible defaults:** Works out of the box with the in-memory cache
      and no provider keys (every source then reports ``unavailable``)
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> settings = TileHubSettings(min_delay_seconds=0.5)
    >>> settings.cache_backend
    'memory'

Tags:
    settings, configuration, pydantic, environment, tilehub

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TileHubSettings(BaseSettings):
    """Settings for the tilehub aggregation layer, API and CLI.

    Order of precedence (highest → lowest):
        1. Constructor arguments
        2. Environment variables (``TILEHUB_MIN_DELAY_SECONDS``, etc.)
        3. ``.env`` file
        4. Defaults below
    """

    model_config = SettingsConfigDict(
        env_prefix="TILEHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool | None = Field(default=None, description="None = auto (JSON when not a TTY)")

    # ── Server ───────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = "/api/v1"
    api_title: str = "tilehub API"
    api_version: str = "0.1.0"
    cors_origins: list[str] = Field(default=["*"])

    # ── Cache ────────────────────────────────────────────────────
    cache_backend: Literal["memory", "sql", "redis"] = "memory"
    database_url: str = "sqlite:///tilehub.db"
    redis_url: str = "redis://localhost:6379/0"
    cache_max_entries: int = 10_000
    negative_ttl_seconds: int = Field(
        default=120, description="TTL for zero-confidence tiles"
    )

    # ── Request serializer ───────────────────────────────────────
    min_delay_seconds: float = Field(default=1.0, ge=0)

    # ── Circuit breakers ─────────────────────────────────────────
    source_failure_threshold: int = Field(default=5, ge=1)
    source_cooldown_seconds: float = Field(default=30.0, ge=0)
    tile_failure_threshold: int = Field(default=5, ge=1)
    tile_cooldown_seconds: float = Field(default=30.0, ge=0)

    # ── Providers ────────────────────────────────────────────────
    http_timeout_seconds: float = 15.0
    web_search_timeout_seconds: float = 8.0
    user_agent: str = "tilehub/0.1 (+https://github.com/tilehub)"
    serper_api_key: str | None = None
    tavily_api_key: str | None = None
    youtube_api_key: str | None = None
    serpapi_api_key: str | None = None
    reddit_enabled: bool = True
    gdelt_enabled: bool = True
    min_primary_responses: int = Field(
        default=2, ge=1, description="Usable primary responses before fallbacks are skipped"
    )

    # ── Model-assisted extraction ────────────────────────────────
    llm_api_key: str | None = None
    llm_base_url: str = "https://api.groq.com/openai/v1"
    llm_model: str = "llama-3.1-8b-instant"
    llm_max_tokens: int = 2000
    ai_max_responses: int = Field(default=5, ge=1)
    ai_summary_chars: int = Field(default=2000, ge=100)

    # ── Request limits ───────────────────────────────────────────
    min_idea_length: int = 5
    max_tiles: int = 12


__all__ = ["TileHubSettings"]
