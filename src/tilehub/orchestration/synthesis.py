"""
Tile synthesis: sources → extraction → TileData.

Architecture:
    ::

        TileSynthesizer.synthesize(idea_text, tile, filters)
            │  query = idea + tile suffix + filter terms
            ▼
        for source in primary (then fallback, unless enough primaries answered):
            breaker[source:<name>:<tile>].execute(
                primary  = serializer.submit(registry.fetch, ...)
                           unavailable → raise SourceUnavailableError
                fallback = the unavailable response (or circuit-open response)
            )
            ▼
        ExtractionEngine.extract(requirements, responses)
            ▼
        TileData {metrics, citations, charts, confidence, data_quality,
                  explanation, missing_data_points, source_ids}

    Unconfigured sources short-circuit to ``unavailable`` without taking a
    serializer slot or touching a breaker.

Tags:
    orchestration, synthesis, tiles, tilehub
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tilehub.core.errors import (
    CircuitOpenError,
    ErrorContext,
    SourceUnavailableError,
    TileSynthesisError,
    describe_error,
)
from tilehub.core.logging import get_logger
from tilehub.core.models import (
    Citation,
    DataQuality,
    SourceResponse,
    SourceStatus,
    TileClass,
    TileData,
    TileType,
)
from tilehub.core.timestamps import to_iso8601
from tilehub.execution.circuit_breaker import CircuitBreakerRegistry, source_breaker_key
from tilehub.execution.serializer import RequestSerializer
from tilehub.extraction.engine import ExtractionEngine
from tilehub.extraction.requirements import TILE_REQUIREMENTS, ExtractionRequirements
from tilehub.extraction.strategies import ExtractionResult
from tilehub.sources.registry import SourceRegistry

logger = get_logger(__name__)

MAX_CITATIONS = 10


class TileSynthesizer:
    """Builds one tile from its sources.

    Args:
        registry: Source clients by name.
        engine: Extraction engine.
        breakers: Registry for the per-(source, tile) breakers.
        serializer: Queue every outbound provider call goes through.
        min_primary_responses: Usable primary responses after which
            fallback sources are skipped.
        requirements: Requirements per tile (defaults to the built-in table).
    """

    def __init__(
        self,
        registry: SourceRegistry,
        engine: ExtractionEngine,
        breakers: CircuitBreakerRegistry,
        serializer: RequestSerializer,
        *,
        min_primary_responses: int = 2,
        requirements: Mapping[TileType, ExtractionRequirements] | None = None,
    ):
        self.registry = registry
        self.engine = engine
        self.breakers = breakers
        self.serializer = serializer
        self.min_primary_responses = min_primary_responses
        self.requirements = dict(requirements or TILE_REQUIREMENTS)

    def requirements_for(self, tile: TileType) -> ExtractionRequirements:
        requirements = self.requirements.get(tile)
        if requirements is None:
            raise TileSynthesisError(
                f"No extraction requirements for tile {tile.value}",
                context=ErrorContext(tile=tile.value),
            )
        return requirements

    @staticmethod
    def build_query(
        idea_text: str, requirements: ExtractionRequirements, filters: Mapping[str, Any] | None = None
    ) -> str:
        parts = [" ".join(idea_text.split())]
        if requirements.query_suffix:
            parts.append(requirements.query_suffix)
        for key in ("region", "industry", "audience"):
            value = (filters or {}).get(key)
            if value:
                parts.append(str(value))
        return " ".join(parts)

    async def fetch_source(
        self,
        source: str,
        tile: TileType,
        query: str,
        params: dict[str, Any] | None = None,
    ) -> SourceResponse:
        """Fetch one source through its breaker and the serializer. Never raises."""
        if not self.registry.is_configured(source):
            return await self.registry.fetch(source, query, params)

        kind = self.registry.kind_of(source)
        breaker = self.breakers.get_or_create(source_breaker_key(source, tile.value))

        async def primary() -> SourceResponse:
            response = await self.serializer.submit(self.registry.fetch, source, query, params)
            if response.status is SourceStatus.UNAVAILABLE:
                raise SourceUnavailableError(
                    response.reason or f"{source} unavailable",
                    response=response,
                    context=ErrorContext(source=source, tile=tile.value),
                )
            return response

        def fallback(error: BaseException) -> SourceResponse:
            if isinstance(error, SourceUnavailableError) and error.response is not None:
                return error.response
            if isinstance(error, CircuitOpenError):
                retry_at = to_iso8601(breaker.snapshot().next_retry_at)
                return SourceResponse.unavailable(
                    source, kind, f"circuit open for {source}, retry after {retry_at}"
                )
            logger.warning("source_fetch_error", source=source, tile=tile.value, error=describe_error(error))
            return SourceResponse.unavailable(source, kind, describe_error(error))

        return await breaker.execute(primary, fallback)

    async def gather(
        self,
        tile: TileType,
        requirements: ExtractionRequirements,
        query: str,
        filters: Mapping[str, Any] | None = None,
    ) -> list[SourceResponse]:
        """Fetch primary sources in order, then fallbacks when primaries fell short."""
        responses: list[SourceResponse] = []
        for source in requirements.primary_sources:
            responses.append(await self.fetch_source(source, tile, query, self._params(requirements, source, filters)))

        usable_primary = sum(1 for r in responses if r.usable)
        if usable_primary >= self.min_primary_responses:
            return responses

        for source in requirements.fallback_sources:
            if source in requirements.primary_sources:
                continue
            responses.append(await self.fetch_source(source, tile, query, self._params(requirements, source, filters)))
        return responses

    @staticmethod
    def _params(
        requirements: ExtractionRequirements, source: str, filters: Mapping[str, Any] | None
    ) -> dict[str, Any]:
        params = requirements.params_for(source)
        if filters and filters.get("time_window"):
            params["time_window"] = filters["time_window"]
        return params

    async def synthesize(
        self, idea_text: str, tile: TileType, filters: Mapping[str, Any] | None = None
    ) -> TileData:
        requirements = self.requirements_for(tile)
        query = self.build_query(idea_text, requirements, filters)
        responses = await self.gather(tile, requirements, query, filters)
        result = await self.engine.extract(requirements, responses)
        return self.to_tile(requirements, responses, result)

    def to_tile(
        self,
        requirements: ExtractionRequirements,
        responses: list[SourceResponse],
        result: ExtractionResult,
    ) -> TileData:
        used = [r for r in responses if r.id in set(result.source_response_ids)]
        missing = list(result.missing_data_points)
        return TileData(
            metrics=dict(result.data or {}),
            citations=_dedupe_citations(used),
            charts=_charts(requirements.tile, used),
            insights=list(result.insights) or None,
            confidence=result.confidence,
            data_quality=DataQuality.from_confidence(result.confidence, len(missing)),
            explanation=_explain(requirements.tile, responses, result),
            missing_data_points=missing,
            source_ids=list(result.source_response_ids),
        )


def _dedupe_citations(responses: list[SourceResponse]) -> list[Citation]:
    seen: set[str] = set()
    citations: list[Citation] = []
    for response in responses:
        for citation in response.citations:
            if citation.url in seen:
                continue
            seen.add(citation.url)
            citations.append(citation)
            if len(citations) >= MAX_CITATIONS:
                return citations
    return citations


def _charts(tile: TileType, responses: list[SourceResponse]) -> list[dict[str, Any]]:
    if tile.tile_class is not TileClass.TREND:
        return []
    series = []
    for response in responses:
        points = [
            {"x": doc.title or doc.published_at, "y": doc.value}
            for doc in response.normalized or []
            if doc.value is not None
        ]
        if points:
            series.append({"name": response.source, "data": points})
    if not series:
        return []
    return [{"type": "line", "title": f"{tile.value.replace('_', ' ').title()} over time", "series": series}]


def _explain(tile: TileType, responses: list[SourceResponse], result: ExtractionResult) -> str:
    answered = [
        f"{r.source} ({len(r.normalized or [])} results)"
        for r in responses
        if r.status is SourceStatus.OK
    ]
    empty = [r.source for r in responses if r.status is SourceStatus.DEGRADED]
    unavailable = [f"{r.source} ({r.reason})" for r in responses if r.status is SourceStatus.UNAVAILABLE]

    parts = []
    if result.data:
        parts.append(f"Extracted via {result.method} with confidence {result.confidence:.2f}.")
    else:
        parts.append(f"No source returned usable data for {tile.value}.")
    if answered:
        parts.append(f"Answered: {', '.join(answered)}.")
    if empty:
        parts.append(f"No results: {', '.join(empty)}.")
    if unavailable:
        parts.append(f"Unavailable: {', '.join(unavailable)}.")
    if result.missing_data_points:
        parts.append(f"Missing: {', '.join(result.missing_data_points)}.")
    return " ".join(parts)


__all__ = ["TileSynthesizer"]
