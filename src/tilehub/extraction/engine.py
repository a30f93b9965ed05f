"""
Tiered extraction engine and data-gap analysis.

Architecture:
    ::

        ExtractionEngine.extract(requirements, responses)
            │
            ├─ LocalPatternStrategy    first non-empty → done
            ├─ ModelAssistedStrategy   (only when an LLM provider is configured)
            ├─ InsightMergeStrategy
            ▼
        nothing recovered → ExtractionResult(data=None, confidence=0,
                                             missing=all required points)

        identify_data_gaps(tile, responses, now) → DataGapReport

Examples:
    >>> engine = ExtractionEngine()
    >>> result = await engine.extract(get_requirements("sentiment"), responses)
    >>> result.method, result.confidence
    ('local_primary', 0.8)

Tags:
    extraction, engine, strategy-pattern, tilehub

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tilehub.core.logging import get_logger
from tilehub.core.models import SourceResponse, SourceStatus, TileType
from tilehub.core.timestamps import utc_now
from tilehub.execution.serializer import RequestSerializer
from tilehub.extraction.requirements import ExtractionRequirements, get_requirements
from tilehub.extraction.strategies import (
    ExtractionResult,
    ExtractionStrategy,
    InsightMergeStrategy,
    LocalPatternStrategy,
    ModelAssistedStrategy,
)
from tilehub.llm.protocol import LLMProvider

logger = get_logger(__name__)


class ExtractionEngine:
    """Runs strategies in order; the first that recovers anything wins.

    Pass ``strategies`` to control the chain directly, or ``llm`` (and
    optionally ``serializer``) to get the default three-tier chain.
    """

    def __init__(
        self,
        strategies: Sequence[ExtractionStrategy] | None = None,
        *,
        llm: LLMProvider | None = None,
        serializer: RequestSerializer | None = None,
        max_responses: int = 5,
        summary_chars: int = 2000,
        model: str | None = None,
        max_tokens: int = 2000,
    ):
        if strategies is None:
            chain: list[ExtractionStrategy] = [LocalPatternStrategy()]
            if llm is not None:
                chain.append(
                    ModelAssistedStrategy(
                        llm,
                        serializer=serializer,
                        max_responses=max_responses,
                        summary_chars=summary_chars,
                        model=model,
                        max_tokens=max_tokens,
                    )
                )
            chain.append(InsightMergeStrategy())
            strategies = chain
        self.strategies = list(strategies)

    @property
    def strategy_names(self) -> list[str]:
        return [strategy.name for strategy in self.strategies]

    async def extract(
        self, requirements: ExtractionRequirements, responses: Sequence[SourceResponse]
    ) -> ExtractionResult:
        notes: list[str] = []
        for strategy in self.strategies:
            result = await strategy.extract(requirements, responses)
            if result is not None and result.data:
                result.insights = notes + result.insights
                logger.debug(
                    "extraction_succeeded",
                    tile=requirements.tile.value,
                    method=result.method,
                    confidence=result.confidence,
                    missing=len(result.missing_data_points),
                )
                return result
            notes.append(f"{strategy.name} extraction recovered nothing")

        logger.info("extraction_empty", tile=requirements.tile.value, responses=len(responses))
        return ExtractionResult.nothing(requirements, notes)


@dataclass
class DataGapReport:
    """Which sources a tile is still missing and whether its inputs are stale."""

    has_all_data: bool
    missing_sources: list[str] = field(default_factory=list)
    stale: bool = False
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_all_data": self.has_all_data,
            "missing_sources": list(self.missing_sources),
            "stale": self.stale,
            "recommendations": list(self.recommendations),
        }


def identify_data_gaps(
    tile: TileType | str,
    responses: Sequence[SourceResponse],
    now: datetime | None = None,
) -> DataGapReport:
    """Compare available responses against a tile's requirements.

    A tile has all its data when at least one primary source answered and at
    least one response is inside the tile's freshness window.
    """
    requirements = get_requirements(tile)
    if requirements is None:
        return DataGapReport(
            has_all_data=False,
            missing_sources=["unknown"],
            recommendations=["Tile type not configured"],
        )

    now = now or utc_now()
    answered = [r for r in responses if r.status is not SourceStatus.UNAVAILABLE]
    available = {r.source for r in answered}
    has_primary = any(source in available for source in requirements.primary_sources)
    missing_sources = [] if has_primary else list(requirements.primary_sources)

    fresh = [r for r in answered if now - r.fetched_at < requirements.freshness_window]
    stale = bool(answered) and not fresh

    recommendations: list[str] = []
    if stale:
        recommendations.append("Data is stale, consider refreshing")
    if missing_sources:
        recommendations.append(f"Fetch data from: {', '.join(missing_sources[:2])}")

    return DataGapReport(
        has_all_data=has_primary and bool(fresh),
        missing_sources=missing_sources,
        stale=stale,
        recommendations=recommendations,
    )


__all__ = ["ExtractionEngine", "DataGapReport", "identify_data_gaps"]
