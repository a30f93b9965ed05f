"""Tests for local pattern extractors."""

import pytest

from tilehub.core.models import SourceDocument
from tilehub.extraction.patterns import (
    document_stats,
    extract_competitors,
    extract_growth_rate,
    extract_market_size,
    extract_unit_economics,
    keyword_sentiment,
    top_titles,
    trend_stats,
)


class TestMarketSize:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("The market is worth $4.2 billion today", 4.2e9),
            ("valued at 850 million dollars", 850e6),
            ("a $1.1 trillion opportunity, with a $3 billion niche", 1.1e12),
        ],
    )
    def test_scales(self, text, expected):
        metric = extract_market_size(text)
        assert metric.value == pytest.approx(expected)
        assert metric.unit == "USD"

    def test_no_figure(self):
        assert extract_market_size("a large and growing market") is None


class TestGrowthRate:
    def test_cagr_suffix(self):
        assert extract_growth_rate("expanding at 14.5% CAGR through 2030").value == 14.5

    def test_cagr_of(self):
        assert extract_growth_rate("a CAGR of 9% is expected").value == 9

    def test_generic_growth(self):
        metric = extract_growth_rate("downloads are growing by 30% each quarter")
        assert metric.value == 30
        assert metric.unit == "percent"

    def test_none(self):
        assert extract_growth_rate("no numbers here") is None


class TestSentiment:
    def test_counts_and_share(self):
        metrics = keyword_sentiment("I love it, great app. But the pricing is bad. Useful overall.")
        assert metrics["positive_mentions"].value == 3
        assert metrics["negative_mentions"].value == 1
        assert metrics["sentiment_score"].value == 75

    def test_no_keywords(self):
        assert keyword_sentiment("neutral description of a product") == {}


class TestCompetitors:
    def test_list(self):
        names = extract_competitors("Competitors include Calendly, Acuity and Zocdoc.")
        assert names == ["Calendly", "Acuity", "Zocdoc"]

    def test_versus(self):
        assert extract_competitors("Notion vs Obsidian") == ["Obsidian"]

    def test_none(self):
        assert extract_competitors("nothing to see") == []


class TestUnitEconomics:
    def test_all_points(self):
        text = "CAC is $120 while LTV of $1,500 gives a payback period of 8 months on a subscription model."
        metrics = extract_unit_economics(text)
        assert metrics["cac"].value == 120
        assert metrics["ltv"].value == 1500
        assert metrics["payback_period"].value == 8
        assert metrics["payback_period"].unit == "months"
        assert metrics["revenue_model"].value == ["subscription"]


class TestDocumentHelpers:
    def test_document_stats(self):
        docs = [SourceDocument("a", engagement=10), SourceDocument("b", engagement=5.5), SourceDocument("c")]
        metrics = document_stats(docs, count_name="posts_analyzed")
        assert metrics["posts_analyzed"].value == 3
        assert metrics["engagement"].value == 15.5

    def test_document_stats_empty(self):
        assert document_stats([], count_name="x") == {}

    def test_top_titles(self):
        docs = [SourceDocument(str(i)) for i in range(8)]
        assert top_titles(docs, limit=3) == ["0", "1", "2"]


class TestTrendStats:
    def test_rising(self):
        docs = [SourceDocument(f"p{i}", value=v) for i, v in enumerate([20, 30, 50, 60])]
        metrics = trend_stats(docs)
        assert metrics["interest_score"].value == 60
        assert metrics["average_interest"].value == 40
        assert metrics["trend_direction"].value == "rising"
        assert metrics["interest_change"].value == 120.0

    def test_single_point_has_no_direction(self):
        metrics = trend_stats([SourceDocument("p", value=42)])
        assert "trend_direction" not in metrics

    def test_no_values(self):
        assert trend_stats([SourceDocument("p")]) == {}
