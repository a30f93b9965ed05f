"""
Regex and keyword rules for local (no-model) metric extraction.

Each rule reads plain text or canonical documents and returns a
:class:`~tilehub.core.models.MetricValue` only when the evidence is
literally present. A rule that finds nothing returns ``None``; it never
guesses.

Tags:
    extraction, regex, patterns, sentiment, market-size, tilehub
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from tilehub.core.models import MetricValue, SourceDocument

_SCALES = (
    ("trillion", 1e12, "T"),
    ("billion", 1e9, "B"),
    ("million", 1e6, "M"),
)

_MARKET_SIZE_RES = {
    word: re.compile(rf"\$?\s*(\d+(?:\.\d+)?)\s*{word}\b", re.IGNORECASE) for word, _, _ in _SCALES
}
_CAGR_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%?\s*cagr\b", re.IGNORECASE)
_CAGR_OF_RE = re.compile(r"\bcagr\s*(?:of|at|:)?\s*(\d+(?:\.\d+)?)\s*%", re.IGNORECASE)
_GROWTH_RE = re.compile(
    r"\bgrow(?:th|ing|s)?\s*(?:rate\s*)?(?:of|by|at)?\s*(\d+(?:\.\d+)?)\s*%", re.IGNORECASE
)
_POSITIVE_RE = re.compile(
    r"\b(positive|good|great|excellent|love|useful|helpful|amazing|recommend)\b", re.IGNORECASE
)
_NEGATIVE_RE = re.compile(
    r"\b(negative|bad|poor|hate|terrible|useless|awful|scam|overpriced)\b", re.IGNORECASE
)
_COMPETITOR_RES = (
    re.compile(r"\bcompetitors?\s*(?:include|are|:)\s*([^.\n]+)", re.IGNORECASE),
    re.compile(r"\b(?:vs\.?|versus)\s+([^.\n]+)", re.IGNORECASE),
    re.compile(r"\balternatives?\s*(?:to\s+\S+\s*)?(?:include|are|:)\s*([^.\n]+)", re.IGNORECASE),
)
_LIST_SPLIT_RE = re.compile(r",|\band\b|\bor\b|/", re.IGNORECASE)
_CAC_RE = re.compile(
    r"\b(?:cac|customer acquisition cost)\s*(?:is|of|:|=|around|about)?\s*\$\s?(\d[\d,]*(?:\.\d+)?)",
    re.IGNORECASE,
)
_LTV_RE = re.compile(
    r"\b(?:ltv|clv|lifetime value)\s*(?:is|of|:|=|around|about)?\s*\$\s?(\d[\d,]*(?:\.\d+)?)",
    re.IGNORECASE,
)
_PAYBACK_RE = re.compile(
    r"\bpayback(?:\s+period)?\s*(?:is|of|:|around|about)?\s*(\d+(?:\.\d+)?)\s*(months?|years?)",
    re.IGNORECASE,
)
_REVENUE_MODELS = (
    "subscription",
    "freemium",
    "marketplace",
    "advertising",
    "transaction fee",
    "licensing",
    "usage-based",
)


def _number(text: str) -> float:
    return float(text.replace(",", ""))


def extract_market_size(text: str) -> MetricValue | None:
    """Largest-scale money figure mentioned (trillion over billion over million)."""
    for word, multiplier, suffix in _SCALES:
        match = _MARKET_SIZE_RES[word].search(text)
        if match:
            amount = _number(match.group(1))
            return MetricValue(
                value=amount * multiplier,
                unit="USD",
                explanation=f"Mentioned as ${match.group(1)}{suffix} in source text",
            )
    return None


def extract_growth_rate(text: str) -> MetricValue | None:
    """CAGR if stated, else a generic 'growing N%' figure."""
    for pattern, label in ((_CAGR_RE, "CAGR"), (_CAGR_OF_RE, "CAGR"), (_GROWTH_RE, "growth")):
        match = pattern.search(text)
        if match:
            return MetricValue(
                value=_number(match.group(1)),
                unit="percent",
                explanation=f"{label} of {match.group(1)}% stated in source text",
            )
    return None


def keyword_sentiment(text: str) -> dict[str, MetricValue]:
    """Positive share of sentiment keywords, with the raw counts."""
    positive = len(_POSITIVE_RE.findall(text))
    negative = len(_NEGATIVE_RE.findall(text))
    total = positive + negative
    if total == 0:
        return {}
    return {
        "sentiment_score": MetricValue(
            value=round(positive / total * 100),
            unit="percent_positive",
            explanation=f"{positive} positive vs {negative} negative keyword mentions",
        ),
        "positive_mentions": MetricValue(value=positive, unit="count"),
        "negative_mentions": MetricValue(value=negative, unit="count"),
    }


def extract_competitors(text: str) -> list[str]:
    """Names listed after 'competitors include', 'vs', 'alternatives are' and similar."""
    for pattern in _COMPETITOR_RES:
        match = pattern.search(text)
        if not match:
            continue
        names = []
        for part in _LIST_SPLIT_RE.split(match.group(1)):
            name = part.strip(" \t\"'()[]:;-")
            if 2 < len(name) < 50 and name.lower() not in {n.lower() for n in names}:
                names.append(name)
        if names:
            return names
    return []


def extract_unit_economics(text: str) -> dict[str, MetricValue]:
    """CAC, LTV, payback period and revenue model keywords."""
    metrics: dict[str, MetricValue] = {}
    cac = _CAC_RE.search(text)
    if cac:
        metrics["cac"] = MetricValue(value=_number(cac.group(1)), unit="USD")
    ltv = _LTV_RE.search(text)
    if ltv:
        metrics["ltv"] = MetricValue(value=_number(ltv.group(1)), unit="USD")
    payback = _PAYBACK_RE.search(text)
    if payback:
        unit = "months" if payback.group(2).lower().startswith("month") else "years"
        metrics["payback_period"] = MetricValue(value=_number(payback.group(1)), unit=unit)
    lowered = text.lower()
    models = [model for model in _REVENUE_MODELS if model in lowered]
    if models:
        metrics["revenue_model"] = MetricValue(
            value=models, explanation="Revenue models mentioned in source text"
        )
    return metrics


def document_stats(documents: Sequence[SourceDocument], *, count_name: str) -> dict[str, MetricValue]:
    """Document count and engagement totals (when the provider reports engagement)."""
    if not documents:
        return {}
    metrics = {count_name: MetricValue(value=len(documents), unit="count")}
    engaged = [doc.engagement for doc in documents if doc.engagement is not None]
    if engaged:
        metrics["engagement"] = MetricValue(
            value=round(sum(engaged), 2),
            unit="interactions",
            explanation=f"Summed over {len(engaged)} items",
        )
    return metrics


def top_titles(documents: Sequence[SourceDocument], limit: int = 5) -> list[str]:
    return [doc.title for doc in documents[:limit] if doc.title]


def trend_stats(documents: Sequence[SourceDocument]) -> dict[str, MetricValue]:
    """Interest score, direction and change from valued time-series documents."""
    points = [doc.value for doc in documents if doc.value is not None]
    if not points:
        return {}
    latest = points[-1]
    average = sum(points) / len(points)
    metrics = {
        "interest_score": MetricValue(value=latest, unit="index_0_100"),
        "average_interest": MetricValue(value=round(average, 2), unit="index_0_100"),
    }
    if len(points) >= 2:
        half = max(1, len(points) // 2)
        early = sum(points[:half]) / half
        late = sum(points[-half:]) / half
        if early > 0:
            change = round((late - early) / early * 100, 1)
            metrics["interest_change"] = MetricValue(
                value=change,
                unit="percent",
                explanation=f"Mean of last {half} points vs first {half}",
            )
        if late > early * 1.05:
            direction = "rising"
        elif late < early * 0.95:
            direction = "declining"
        else:
            direction = "stable"
        metrics["trend_direction"] = MetricValue(value=direction)
    return metrics


__all__ = [
    "extract_market_size",
    "extract_growth_rate",
    "keyword_sentiment",
    "extract_competitors",
    "extract_unit_economics",
    "document_stats",
    "top_titles",
    "trend_stats",
]
