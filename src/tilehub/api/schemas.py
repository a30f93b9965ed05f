"""
API schemas: request/response bodies and the RFC 7807 error envelope.

Wire format is camelCase (``forceRefresh``, ``cacheHits``, ``dataQuality``);
Python attributes stay snake_case through ``alias_generator=to_camel``.

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tilehub.core.models import Citation, MetricValue, TileBatch, TileData


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── RFC 7807 Problem Detail ─────────────────────────────────────────────


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Canonical envelope for every non-2xx response.
    """

    type: str = Field(default="about:blank", description="URI reference identifying the problem type")
    title: str = Field(description="Short, human-readable summary")
    status: int = Field(description="HTTP status code")
    detail: str = Field(default="", description="Human-readable explanation")
    instance: str = Field(default="", description="URI of the request that failed")
    category: str | None = Field(default=None, description="tilehub error category")


# ── Data hub ────────────────────────────────────────────────────────────


class DataHubRequest(CamelModel):
    """Body of ``POST /data-hub``.

    ``idea`` is validated by the service (length after trim), so a short
    idea is a 400 problem rather than a schema error.
    """

    idea: str | None = Field(default=None, description="Free-text product idea (>= 5 chars)")
    tiles: list[str] | None = Field(default=None, description="Tile ids; default set when omitted")
    force_refresh: bool = Field(default=False, description="Bypass the tile cache")
    filters: dict[str, Any] = Field(default_factory=dict, description="region / industry / time_window")


class MetricSchema(CamelModel):
    value: Any = None
    unit: str | None = None
    explanation: str | None = None
    confidence: float | None = None

    @classmethod
    def from_metric(cls, metric: MetricValue) -> MetricSchema:
        return cls(**metric.to_dict())


class CitationSchema(CamelModel):
    source: str
    url: str
    title: str | None = None
    fetched_at: str | None = None

    @classmethod
    def from_citation(cls, citation: Citation) -> CitationSchema:
        return cls(**citation.to_dict())


class TileSchema(CamelModel):
    metrics: dict[str, MetricSchema] = Field(default_factory=dict)
    citations: list[CitationSchema] = Field(default_factory=list)
    charts: list[dict[str, Any]] = Field(default_factory=list)
    insights: list[str] | None = None
    confidence: float = 0.0
    data_quality: str = "low"
    stale: bool = False
    error: str | None = None
    explanation: str = ""
    missing_data_points: list[str] = Field(default_factory=list)
    source_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_tile(cls, tile: TileData) -> TileSchema:
        return cls(
            metrics={name: MetricSchema.from_metric(m) for name, m in tile.metrics.items()},
            citations=[CitationSchema.from_citation(c) for c in tile.citations],
            charts=list(tile.charts),
            insights=tile.insights,
            confidence=tile.confidence,
            data_quality=tile.data_quality.value,
            stale=tile.stale,
            error=tile.error,
            explanation=tile.explanation,
            missing_data_points=list(tile.missing_data_points),
            source_ids=list(tile.source_ids),
        )


class MetaSchema(CamelModel):
    cache_hits: list[str] = Field(default_factory=list)
    generated: list[str] = Field(default_factory=list)
    elapsed_ms: float = 0.0
    idea_hash: str
    warnings: list[str] | None = None
    errors: list[str] | None = None


class DataHubResponse(CamelModel):
    success: bool = True
    tiles: dict[str, TileSchema]
    meta: MetaSchema

    @classmethod
    def from_batch(cls, batch: TileBatch) -> DataHubResponse:
        meta = batch.meta
        return cls(
            success=True,
            tiles={tile_id: TileSchema.from_tile(tile) for tile_id, tile in batch.tiles.items()},
            meta=MetaSchema(
                cache_hits=meta.cache_hits,
                generated=meta.generated,
                elapsed_ms=meta.elapsed_ms,
                idea_hash=meta.idea_hash,
                warnings=meta.warnings or None,
                errors=meta.errors or None,
            ),
        )


# ── Introspection ───────────────────────────────────────────────────────


class TileInfoSchema(CamelModel):
    tile: str
    tile_class: str
    ttl_seconds: int
    primary_sources: list[str]
    fallback_sources: list[str]
    required_data_points: list[str]


class BreakerSchema(CamelModel):
    key: str
    state: str
    consecutive_failures: int
    last_failure_at: str | None = None
    next_retry_at: str | None = None
    stats: dict[str, int] = Field(default_factory=dict)


class QueueStatusSchema(CamelModel):
    queue_length: int
    is_processing: bool
    min_delay: float
    in_flight: bool = False
    dispatched: int = 0


class HealthSchema(BaseModel):
    status: str = "ok"
    service: str = "tilehub"
    version: str
    cache_backend: str
    sources: dict[str, bool]
