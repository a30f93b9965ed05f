"""
Domain types for the tile aggregation layer.

Everything that crosses a component boundary in tilehub is one of the
dataclasses below. Provider payloads are normalized into ``SourceResponse``
on receipt; extraction produces ``MetricValue`` maps; the orchestrator
returns ``TileData`` per tile and caches it as a ``CacheEntry``.

Manifesto:
    Absence is data. A tile with no metrics, zero confidence and an
    explanation is a valid, inspectable result; a made-up number is not.
    The types make that explicit:

    - ``SourceResponse.status`` says whether a provider answered at all
    - ``TileData.missing_data_points`` names what could not be found
    - ``TileData.confidence`` / ``data_quality`` say how far to trust the rest

Architecture:
    ::

        SourceClient.fetch() ──► SourceResponse ─┐
                                  (normalized    │
                                   documents)    ▼
                                         ExtractionEngine
                                                 │
                                                 ▼
                           TileData {metrics, citations, charts, ...}
                                                 │
                                                 ▼
                              CacheEntry (idea_hash, tile_type, expiry)

Tags:
    models, dataclasses, domain, tilehub

Doc-Types:
    - API Reference
    - Data Model
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from tilehub.core.timestamps import from_iso8601, new_response_id, to_iso8601, utc_now

# =============================================================================
# ENUMS
# =============================================================================


class TileClass(str, Enum):
    """How fast a tile's underlying signal moves (drives cache TTL)."""

    FAST = "fast"
    TREND = "trend"
    STRUCTURAL = "structural"


class TileType(str, Enum):
    """The closed set of tile identifiers a caller may request."""

    MARKET_SIZE = "market_size"
    COMPETITION = "competition"
    SENTIMENT = "sentiment"
    MARKET_TRENDS = "market_trends"
    GOOGLE_TRENDS = "google_trends"
    WEB_SEARCH = "web_search"
    NEWS_ANALYSIS = "news_analysis"
    FINANCIAL_ANALYSIS = "financial_analysis"
    TWITTER_SENTIMENT = "twitter_sentiment"
    YOUTUBE_ANALYSIS = "youtube_analysis"

    @property
    def tile_class(self) -> TileClass:
        return _TILE_CLASSES[self]

    @classmethod
    def parse(cls, value: str | TileType) -> TileType | None:
        """Return the member for ``value`` or ``None`` if it is not a known tile."""
        if isinstance(value, TileType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


_TILE_CLASSES: dict[TileType, TileClass] = {
    TileType.SENTIMENT: TileClass.FAST,
    TileType.TWITTER_SENTIMENT: TileClass.FAST,
    TileType.WEB_SEARCH: TileClass.FAST,
    TileType.NEWS_ANALYSIS: TileClass.FAST,
    TileType.MARKET_TRENDS: TileClass.TREND,
    TileType.GOOGLE_TRENDS: TileClass.TREND,
    TileType.YOUTUBE_ANALYSIS: TileClass.TREND,
    TileType.MARKET_SIZE: TileClass.STRUCTURAL,
    TileType.COMPETITION: TileClass.STRUCTURAL,
    TileType.FINANCIAL_ANALYSIS: TileClass.STRUCTURAL,
}

# Tiles built when a request does not name any (financial analysis is opt-in).
DEFAULT_TILES: tuple[TileType, ...] = (
    TileType.MARKET_SIZE,
    TileType.COMPETITION,
    TileType.SENTIMENT,
    TileType.MARKET_TRENDS,
    TileType.GOOGLE_TRENDS,
    TileType.WEB_SEARCH,
    TileType.NEWS_ANALYSIS,
)


class SourceStatus(str, Enum):
    """Outcome of a provider call."""

    OK = "ok"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


class SourceKind(str, Enum):
    """Provider kind tag carried on every normalized response."""

    SEARCH = "search"
    SOCIAL = "social"
    NEWS = "news"
    VIDEO = "video"
    TRENDS = "trends"
    LLM = "llm"


class DataQuality(str, Enum):
    """Coarse trust level derived from confidence and completeness."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_confidence(cls, confidence: float, missing: int = 0) -> DataQuality:
        if confidence >= 0.75 and missing == 0:
            return cls.HIGH
        if confidence >= 0.5:
            return cls.MEDIUM
        return cls.LOW


# =============================================================================
# SOURCE RESPONSES
# =============================================================================


@dataclass(frozen=True)
class Citation:
    """Where a piece of evidence came from."""

    source: str
    url: str
    title: str | None = None
    fetched_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "url": self.url,
            "title": self.title,
            "fetched_at": to_iso8601(self.fetched_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Citation:
        return cls(
            source=data["source"],
            url=data["url"],
            title=data.get("title"),
            fetched_at=from_iso8601(data.get("fetched_at")) or utc_now(),
        )


@dataclass(frozen=True)
class SourceDocument:
    """
    One canonical item from any provider.

    Adapters map search hits, posts, articles, videos and trend points onto
    this shape so extraction never probes provider-specific payloads.

    Attributes:
        title: Headline / post title / video title
        url: Canonical link to the item
        snippet: Body text or description (may be empty)
        published_at: Provider timestamp, ISO 8601, if known
        engagement: Score / upvotes / views, if the provider reports one
        value: Numeric observation (trend interest points)
    """

    title: str
    url: str = ""
    snippet: str = ""
    published_at: str | None = None
    engagement: float | None = None
    value: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "published_at": self.published_at,
            "engagement": self.engagement,
            "value": self.value,
        }


@dataclass
class SourceResponse:
    """
    Typed result of a provider call. Clients always return one of these.

    ``normalized`` is ``None`` only when the provider was unavailable; a
    provider that answered with nothing useful is ``degraded`` with an empty
    list.
    """

    source: str
    kind: SourceKind
    status: SourceStatus
    reason: str | None = None
    raw: Any = None
    normalized: list[SourceDocument] | None = None
    citations: list[Citation] = field(default_factory=list)
    fetched_at: datetime = field(default_factory=utc_now)
    insights: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_response_id)

    @classmethod
    def unavailable(cls, source: str, kind: SourceKind, reason: str) -> SourceResponse:
        """Explicit 'no data' response. Never carries numbers."""
        return cls(
            source=source,
            kind=kind,
            status=SourceStatus.UNAVAILABLE,
            reason=reason,
            raw=None,
            normalized=None,
            citations=[],
        )

    @property
    def usable(self) -> bool:
        """True when the provider answered with at least one document or insight."""
        if self.status is SourceStatus.UNAVAILABLE:
            return False
        return bool(self.normalized) or bool(self.insights)

    def text_corpus(self) -> str:
        """Titles and snippets of all documents joined for pattern matching."""
        if not self.normalized:
            return ""
        return "\n".join(f"{doc.title}. {doc.snippet}".strip() for doc in self.normalized)

    def summary(self, max_chars: int) -> str:
        """Bounded JSON summary for model-assisted extraction."""
        payload = {
            "documents": [doc.to_dict() for doc in self.normalized or []],
            "insights": self.insights,
        }
        return json.dumps(payload, default=str)[:max_chars]


# =============================================================================
# TILES
# =============================================================================


@dataclass
class MetricValue:
    """A single extracted metric. ``value`` may be a number, text or list."""

    value: Any
    unit: str | None = None
    explanation: str | None = None
    confidence: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "unit": self.unit,
            "explanation": self.explanation,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetricValue:
        return cls(
            value=data.get("value"),
            unit=data.get("unit"),
            explanation=data.get("explanation"),
            confidence=data.get("confidence"),
        )


@dataclass
class TileData:
    """
    The assembled output for one tile.

    Invariants:
        - ``0 <= confidence <= 1`` (clamped on construction)
        - an ``error`` tile has empty ``metrics`` and ``confidence == 0``
    """

    metrics: dict[str, MetricValue] = field(default_factory=dict)
    citations: list[Citation] = field(default_factory=list)
    charts: list[dict[str, Any]] = field(default_factory=list)
    insights: list[str] | None = None
    confidence: float = 0.0
    data_quality: DataQuality = DataQuality.LOW
    stale: bool = False
    error: str | None = None
    explanation: str = ""
    missing_data_points: list[str] = field(default_factory=list)
    source_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.confidence = min(1.0, max(0.0, float(self.confidence)))
        if not isinstance(self.data_quality, DataQuality):
            self.data_quality = DataQuality(self.data_quality)

    @classmethod
    def empty(cls, explanation: str, missing: list[str] | None = None) -> TileData:
        """Sentinel tile without data. No placeholder numbers."""
        return cls(
            metrics={},
            confidence=0.0,
            data_quality=DataQuality.LOW,
            explanation=explanation,
            missing_data_points=list(missing or []),
        )

    @classmethod
    def failed(cls, error: str, explanation: str = "Tile failed to generate") -> TileData:
        tile = cls.empty(explanation)
        tile.error = error
        return tile

    def to_dict(self) -> dict[str, Any]:
        return {
            "metrics": {name: metric.to_dict() for name, metric in self.metrics.items()},
            "citations": [citation.to_dict() for citation in self.citations],
            "charts": list(self.charts),
            "insights": list(self.insights) if self.insights is not None else None,
            "confidence": self.confidence,
            "data_quality": self.data_quality.value,
            "stale": self.stale,
            "error": self.error,
            "explanation": self.explanation,
            "missing_data_points": list(self.missing_data_points),
            "source_ids": list(self.source_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TileData:
        return cls(
            metrics={
                name: MetricValue.from_dict(metric)
                for name, metric in (data.get("metrics") or {}).items()
            },
            citations=[Citation.from_dict(c) for c in data.get("citations") or []],
            charts=list(data.get("charts") or []),
            insights=data.get("insights"),
            confidence=data.get("confidence", 0.0),
            data_quality=DataQuality(data.get("data_quality", DataQuality.LOW.value)),
            stale=bool(data.get("stale", False)),
            error=data.get("error"),
            explanation=data.get("explanation", ""),
            missing_data_points=list(data.get("missing_data_points") or []),
            source_ids=list(data.get("source_ids") or []),
        )


@dataclass
class TileRequest:
    """One caller action asking for one tile."""

    idea_text: str
    tile_type: TileType
    filters: dict[str, Any] = field(default_factory=dict)
    force_refresh: bool = False


@dataclass
class CacheEntry:
    """A cached tile keyed by (idea_hash, tile_type)."""

    idea_hash: str
    tile_type: str
    data: TileData
    created_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        if self.expires_at <= self.created_at:
            raise ValueError(
                f"expires_at ({self.expires_at}) must be after created_at ({self.created_at})"
            )

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utc_now()) >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "idea_hash": self.idea_hash,
            "tile_type": self.tile_type,
            "data": self.data.to_dict(),
            "created_at": to_iso8601(self.created_at),
            "expires_at": to_iso8601(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheEntry:
        return cls(
            idea_hash=data["idea_hash"],
            tile_type=data["tile_type"],
            data=TileData.from_dict(data["data"]),
            created_at=from_iso8601(data["created_at"]),
            expires_at=from_iso8601(data["expires_at"]),
        )


# =============================================================================
# BATCH RESULT
# =============================================================================


@dataclass
class BuildMeta:
    """Bookkeeping for one ``build_tiles`` call."""

    idea_hash: str
    cache_hits: list[str] = field(default_factory=list)
    generated: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "cache_hits": list(self.cache_hits),
            "generated": list(self.generated),
            "elapsed_ms": self.elapsed_ms,
            "idea_hash": self.idea_hash,
        }
        if self.warnings:
            result["warnings"] = list(self.warnings)
        if self.errors:
            result["errors"] = list(self.errors)
        return result


@dataclass
class TileBatch:
    """Tiles keyed by tile id plus build metadata."""

    tiles: dict[str, TileData]
    meta: BuildMeta

    def to_dict(self) -> dict[str, Any]:
        return {
            "tiles": {tile_id: tile.to_dict() for tile_id, tile in self.tiles.items()},
            "meta": self.meta.to_dict(),
        }


__all__ = [
    "TileClass",
    "TileType",
    "DEFAULT_TILES",
    "SourceStatus",
    "SourceKind",
    "DataQuality",
    "Citation",
    "SourceDocument",
    "SourceResponse",
    "MetricValue",
    "TileData",
    "TileRequest",
    "CacheEntry",
    "BuildMeta",
    "TileBatch",
]
