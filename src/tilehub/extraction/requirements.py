"""
Per-tile extraction requirements.

For every tile this module declares where to look (ordered primary and
fallback sources), what to look for (required data points), how fresh the
inputs must be, how to extract locally, and what to ask a model when local
rules come up short.

Architecture:
    ::

        TILE_REQUIREMENTS[TileType] → ExtractionRequirements
            primary_sources      ["serper", "tavily"]
            fallback_sources     ["gdelt"]
            required_data_points ["market_size", "growth_rate"]
            freshness_window     timedelta(hours=24)
            local_extractor      SourceResponse → {name: MetricValue} | None
            instruction          model prompt template
            insight_key          provider insight merged by the last tier

Tags:
    extraction, requirements, tiles, tilehub

Doc-Types:
    - API Reference
    - Data Model
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from tilehub.core.models import MetricValue, SourceResponse, TileType
from tilehub.extraction import patterns

LocalExtractor = Callable[[SourceResponse], "dict[str, MetricValue] | None"]


@dataclass(frozen=True)
class ExtractionRequirements:
    """What a tile needs and where to get it."""

    tile: TileType
    primary_sources: tuple[str, ...]
    fallback_sources: tuple[str, ...]
    required_data_points: tuple[str, ...]
    freshness_window: timedelta
    instruction: str
    local_extractor: LocalExtractor | None = None
    insight_key: str | None = None
    query_suffix: str = ""
    source_params: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def all_sources(self) -> tuple[str, ...]:
        return self.primary_sources + tuple(
            s for s in self.fallback_sources if s not in self.primary_sources
        )

    def params_for(self, source: str) -> dict[str, Any]:
        return dict(self.source_params.get(source, {}))

    def to_dict(self) -> dict[str, Any]:
        return {
            "tile": self.tile.value,
            "primary_sources": list(self.primary_sources),
            "fallback_sources": list(self.fallback_sources),
            "required_data_points": list(self.required_data_points),
            "freshness_hours": self.freshness_window.total_seconds() / 3600,
            "insight_key": self.insight_key,
        }


# ------------------------------------------------------------------ #
# Local extractors
# ------------------------------------------------------------------ #


def _or_none(metrics: dict[str, MetricValue]) -> dict[str, MetricValue] | None:
    return metrics or None


def _market_size(response: SourceResponse) -> dict[str, MetricValue] | None:
    text = response.text_corpus()
    metrics: dict[str, MetricValue] = {}
    size = patterns.extract_market_size(text)
    if size:
        metrics["market_size"] = size
    growth = patterns.extract_growth_rate(text)
    if growth:
        metrics["growth_rate"] = growth
    return _or_none(metrics)


def _competition(response: SourceResponse) -> dict[str, MetricValue] | None:
    competitors = patterns.extract_competitors(response.text_corpus())
    if not competitors:
        return None
    return {
        "competitors_list": MetricValue(value=competitors),
        "competitor_count": MetricValue(value=len(competitors), unit="count"),
    }


def _sentiment(response: SourceResponse) -> dict[str, MetricValue] | None:
    metrics = patterns.keyword_sentiment(response.text_corpus())
    if not metrics:
        return None
    engagement = patterns.document_stats(response.normalized or [], count_name="posts_analyzed")
    metrics.update(engagement)
    return metrics


def _market_trends(response: SourceResponse) -> dict[str, MetricValue] | None:
    documents = response.normalized or []
    metrics = patterns.document_stats(documents, count_name="article_count")
    if not metrics:
        return None
    growth = patterns.extract_growth_rate(response.text_corpus())
    if growth:
        metrics["growth_rate"] = growth
    metrics["recent_headlines"] = MetricValue(value=patterns.top_titles(documents))
    return metrics


def _google_trends(response: SourceResponse) -> dict[str, MetricValue] | None:
    return _or_none(patterns.trend_stats(response.normalized or []))


def _web_search(response: SourceResponse) -> dict[str, MetricValue] | None:
    documents = response.normalized or []
    if not documents:
        return None
    metrics = {
        "result_count": MetricValue(value=len(documents), unit="count"),
        "top_results": MetricValue(value=patterns.top_titles(documents)),
    }
    summary = response.insights.get("summary")
    if summary:
        metrics["summary"] = MetricValue(value=summary, explanation="Provider answer")
    return metrics


def _news_analysis(response: SourceResponse) -> dict[str, MetricValue] | None:
    documents = response.normalized or []
    if not documents:
        return None
    metrics = {
        "article_count": MetricValue(value=len(documents), unit="count"),
        "recent_headlines": MetricValue(value=patterns.top_titles(documents)),
    }
    sentiment = patterns.keyword_sentiment(response.text_corpus())
    if "sentiment_score" in sentiment:
        metrics["news_sentiment"] = sentiment["sentiment_score"]
    return metrics


def _financial(response: SourceResponse) -> dict[str, MetricValue] | None:
    return _or_none(patterns.extract_unit_economics(response.text_corpus()))


def _youtube(response: SourceResponse) -> dict[str, MetricValue] | None:
    documents = response.normalized or []
    if not documents:
        return None
    metrics = {
        "video_count": MetricValue(value=len(documents), unit="count"),
        "top_videos": MetricValue(value=patterns.top_titles(documents)),
    }
    total = response.insights.get("total_results")
    if total is not None:
        metrics["total_results"] = MetricValue(value=total, unit="count")
    return metrics


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #

_NEWS = {"type": "news"}

TILE_REQUIREMENTS: dict[TileType, ExtractionRequirements] = {
    TileType.MARKET_SIZE: ExtractionRequirements(
        tile=TileType.MARKET_SIZE,
        primary_sources=("serper", "tavily"),
        fallback_sources=("gdelt",),
        required_data_points=("market_size", "growth_rate"),
        freshness_window=timedelta(hours=24),
        instruction=(
            "Extract market data: total addressable market size (TAM/SAM/SOM) with currency, "
            "annual growth rate or CAGR, and the year the estimate refers to."
        ),
        local_extractor=_market_size,
        insight_key="summary",
        query_suffix="market size",
    ),
    TileType.COMPETITION: ExtractionRequirements(
        tile=TileType.COMPETITION,
        primary_sources=("serper", "tavily"),
        fallback_sources=("gdelt",),
        required_data_points=("competitors_list", "competitor_count", "market_leaders"),
        freshness_window=timedelta(hours=48),
        instruction=(
            "Extract competition data: a list of direct competitors, the market leaders "
            "and their strengths, and key differentiators."
        ),
        local_extractor=_competition,
        insight_key="knowledge_graph",
        query_suffix="competitors alternatives",
    ),
    TileType.SENTIMENT: ExtractionRequirements(
        tile=TileType.SENTIMENT,
        primary_sources=("reddit",),
        fallback_sources=("tavily", "serper"),
        required_data_points=("sentiment_score", "positive_mentions", "negative_mentions", "engagement"),
        freshness_window=timedelta(hours=1),
        instruction=(
            "Extract sentiment data: overall sentiment as positive/negative/neutral "
            "percentages, key opinions and concerns, and engagement metrics."
        ),
        local_extractor=_sentiment,
        insight_key="sentiment",
        query_suffix="reviews opinions",
    ),
    TileType.MARKET_TRENDS: ExtractionRequirements(
        tile=TileType.MARKET_TRENDS,
        primary_sources=("gdelt", "serper"),
        fallback_sources=("tavily",),
        required_data_points=("article_count", "growth_rate", "recent_headlines"),
        freshness_window=timedelta(hours=24),
        instruction=(
            "Extract market trend data: growth rates and projections, emerging trends, "
            "and recent developments."
        ),
        local_extractor=_market_trends,
        insight_key="summary",
        query_suffix="industry trends",
        source_params={"serper": _NEWS, "tavily": _NEWS},
    ),
    TileType.GOOGLE_TRENDS: ExtractionRequirements(
        tile=TileType.GOOGLE_TRENDS,
        primary_sources=("serpapi_trends",),
        fallback_sources=("serper",),
        required_data_points=("interest_score", "trend_direction", "interest_change"),
        freshness_window=timedelta(hours=24),
        instruction=(
            "Extract search interest data: current interest level, direction of the "
            "trend, and percentage change over the period."
        ),
        local_extractor=_google_trends,
        insight_key="averages",
    ),
    TileType.WEB_SEARCH: ExtractionRequirements(
        tile=TileType.WEB_SEARCH,
        primary_sources=("serper", "tavily"),
        fallback_sources=(),
        required_data_points=("result_count", "top_results", "summary"),
        freshness_window=timedelta(hours=6),
        instruction="Summarize what the web says about this idea and list the most relevant results.",
        local_extractor=_web_search,
        insight_key="summary",
    ),
    TileType.NEWS_ANALYSIS: ExtractionRequirements(
        tile=TileType.NEWS_ANALYSIS,
        primary_sources=("gdelt",),
        fallback_sources=("serper", "tavily"),
        required_data_points=("article_count", "recent_headlines", "news_sentiment"),
        freshness_window=timedelta(hours=6),
        instruction=(
            "Extract news coverage data: number of relevant articles, notable recent "
            "headlines, and the overall tone of coverage."
        ),
        local_extractor=_news_analysis,
        insight_key="summary",
        query_suffix="news",
        source_params={"serper": _NEWS, "tavily": _NEWS},
    ),
    TileType.FINANCIAL_ANALYSIS: ExtractionRequirements(
        tile=TileType.FINANCIAL_ANALYSIS,
        primary_sources=("serper", "tavily"),
        fallback_sources=("gdelt",),
        required_data_points=("cac", "ltv", "payback_period", "revenue_model"),
        freshness_window=timedelta(hours=72),
        instruction=(
            "Extract financial data: customer acquisition cost (CAC), lifetime value (LTV), "
            "payback period, revenue models and unit economics."
        ),
        local_extractor=_financial,
        insight_key="summary",
        query_suffix="customer acquisition cost lifetime value pricing",
    ),
    TileType.TWITTER_SENTIMENT: ExtractionRequirements(
        tile=TileType.TWITTER_SENTIMENT,
        primary_sources=("reddit",),
        fallback_sources=("tavily", "serper"),
        required_data_points=("sentiment_score", "positive_mentions", "negative_mentions", "engagement"),
        freshness_window=timedelta(hours=1),
        instruction=(
            "Extract social media sentiment: positive/negative/neutral percentages, "
            "trending discussions and engagement."
        ),
        local_extractor=_sentiment,
        insight_key="sentiment",
        query_suffix="twitter",
    ),
    TileType.YOUTUBE_ANALYSIS: ExtractionRequirements(
        tile=TileType.YOUTUBE_ANALYSIS,
        primary_sources=("youtube",),
        fallback_sources=("serper",),
        required_data_points=("video_count", "top_videos", "total_results"),
        freshness_window=timedelta(hours=24),
        instruction=(
            "Extract video coverage data: number of relevant videos, the most relevant "
            "video titles, and total result count."
        ),
        local_extractor=_youtube,
        insight_key="total_results",
        query_suffix="youtube",
    ),
}


def get_requirements(tile: TileType | str) -> ExtractionRequirements | None:
    parsed = TileType.parse(tile)
    if parsed is None:
        return None
    return TILE_REQUIREMENTS.get(parsed)


__all__ = ["ExtractionRequirements", "LocalExtractor", "TILE_REQUIREMENTS", "get_requirements"]
