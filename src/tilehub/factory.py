"""
Composition root: build a fully wired tilehub from settings.

Every stateful collaborator (cache, breaker registry, serializer, source
registry) is created here and passed down explicitly. Tests build their own
with fakes through the keyword overrides.

Examples:
    >>> hub = create_tilehub(TileHubSettings(cache_backend="memory"))
    >>> batch = await hub.service.handle("AI meal planner for students")

Tags:
    factory, composition-root, dependency-injection, tilehub
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from tilehub.core.cache import (
    InMemoryTileStore,
    RedisTileStore,
    SqlTileStore,
    TileCache,
    TileStore,
)
from tilehub.core.logging import get_logger
from tilehub.core.orm import create_tilehub_engine
from tilehub.core.settings import TileHubSettings
from tilehub.execution.circuit_breaker import CircuitBreakerRegistry
from tilehub.execution.serializer import RequestSerializer
from tilehub.extraction.engine import ExtractionEngine
from tilehub.llm.openai_compat import OpenAICompatibleProvider
from tilehub.llm.protocol import LLMProvider
from tilehub.orchestration.orchestrator import Orchestrator
from tilehub.orchestration.synthesis import TileSynthesizer
from tilehub.service import DataHubService
from tilehub.sources.news_trends import GdeltClient, SerpApiTrendsClient
from tilehub.sources.registry import SourceRegistry
from tilehub.sources.search import SerperClient, TavilyClient
from tilehub.sources.social import RedditClient, YouTubeClient

logger = get_logger(__name__)


@dataclass
class TileHub:
    """Every wired component, for callers that need more than the service."""

    settings: TileHubSettings
    cache: TileCache
    breakers: CircuitBreakerRegistry
    serializer: RequestSerializer
    registry: SourceRegistry
    engine: ExtractionEngine
    synthesizer: TileSynthesizer
    orchestrator: Orchestrator
    service: DataHubService


def build_store(settings: TileHubSettings) -> TileStore:
    if settings.cache_backend == "sql":
        return SqlTileStore(create_tilehub_engine(settings.database_url))
    if settings.cache_backend == "redis":
        return RedisTileStore(settings.redis_url)
    return InMemoryTileStore(max_size=settings.cache_max_entries)


def build_registry(settings: TileHubSettings) -> SourceRegistry:
    common = {"timeout": settings.http_timeout_seconds, "user_agent": settings.user_agent}
    return SourceRegistry(
        [
            SerperClient(
                api_key=settings.serper_api_key,
                abort_timeout=settings.web_search_timeout_seconds,
                **common,
            ),
            TavilyClient(
                api_key=settings.tavily_api_key,
                abort_timeout=settings.web_search_timeout_seconds,
                **common,
            ),
            RedditClient(enabled=settings.reddit_enabled, **common),
            GdeltClient(enabled=settings.gdelt_enabled, **common),
            YouTubeClient(api_key=settings.youtube_api_key, **common),
            SerpApiTrendsClient(api_key=settings.serpapi_api_key, **common),
        ]
    )


def build_llm(settings: TileHubSettings) -> LLMProvider | None:
    if not settings.llm_api_key:
        return None
    return OpenAICompatibleProvider(
        settings.llm_api_key,
        base_url=settings.llm_base_url,
        default_model=settings.llm_model,
        timeout=settings.http_timeout_seconds,
    )


def create_tilehub(
    settings: TileHubSettings | None = None,
    *,
    store: TileStore | None = None,
    registry: SourceRegistry | None = None,
    llm: LLMProvider | None = None,
    serializer: RequestSerializer | None = None,
    breakers: CircuitBreakerRegistry | None = None,
) -> TileHub:
    """Wire a :class:`TileHub`; keyword overrides replace the settings-built parts."""
    settings = settings or TileHubSettings()

    cache = TileCache(
        store if store is not None else build_store(settings),
        negative_ttl=timedelta(seconds=settings.negative_ttl_seconds),
    )
    breakers = breakers or CircuitBreakerRegistry(
        failure_threshold=settings.source_failure_threshold,
        cooldown_seconds=settings.source_cooldown_seconds,
    )
    serializer = serializer or RequestSerializer(settings.min_delay_seconds, name="providers")
    registry = registry or build_registry(settings)
    llm = llm if llm is not None else build_llm(settings)

    engine = ExtractionEngine(
        llm=llm,
        serializer=serializer,
        max_responses=settings.ai_max_responses,
        summary_chars=settings.ai_summary_chars,
        model=settings.llm_model if llm is not None else None,
        max_tokens=settings.llm_max_tokens,
    )
    synthesizer = TileSynthesizer(
        registry,
        engine,
        breakers,
        serializer,
        min_primary_responses=settings.min_primary_responses,
    )
    orchestrator = Orchestrator(
        synthesizer,
        cache,
        breakers,
        tile_failure_threshold=settings.tile_failure_threshold,
        tile_cooldown_seconds=settings.tile_cooldown_seconds,
    )
    service = DataHubService(
        orchestrator,
        min_idea_length=settings.min_idea_length,
        max_tiles=settings.max_tiles,
    )
    logger.debug(
        "tilehub_created",
        cache_backend=settings.cache_backend,
        sources=registry.names(),
        llm=llm is not None,
        strategies=engine.strategy_names,
    )
    return TileHub(
        settings=settings,
        cache=cache,
        breakers=breakers,
        serializer=serializer,
        registry=registry,
        engine=engine,
        synthesizer=synthesizer,
        orchestrator=orchestrator,
        service=service,
    )


__all__ = ["TileHub", "create_tilehub", "build_store", "build_registry", "build_llm"]
