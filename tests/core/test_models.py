"""Tests for core data models."""

from datetime import UTC, datetime, timedelta

import pytest

from tilehub.core.models import (
    DEFAULT_TILES,
    BuildMeta,
    CacheEntry,
    Citation,
    DataQuality,
    MetricValue,
    SourceDocument,
    SourceKind,
    SourceResponse,
    SourceStatus,
    TileClass,
    TileData,
    TileType,
)


class TestTileType:
    def test_parse_known(self):
        assert TileType.parse("Market_Size ") is TileType.MARKET_SIZE

    def test_parse_unknown_is_none(self):
        assert TileType.parse("weather") is None

    def test_every_tile_has_a_class(self):
        for tile in TileType:
            assert isinstance(tile.tile_class, TileClass)

    def test_classes(self):
        assert TileType.SENTIMENT.tile_class is TileClass.FAST
        assert TileType.GOOGLE_TRENDS.tile_class is TileClass.TREND
        assert TileType.COMPETITION.tile_class is TileClass.STRUCTURAL

    def test_default_tiles_exclude_opt_in(self):
        assert TileType.FINANCIAL_ANALYSIS not in DEFAULT_TILES
        assert len(DEFAULT_TILES) == 7


class TestDataQuality:
    @pytest.mark.parametrize(
        ("confidence", "missing", "expected"),
        [
            (0.8, 0, DataQuality.HIGH),
            (0.8, 1, DataQuality.MEDIUM),
            (0.6, 0, DataQuality.MEDIUM),
            (0.3, 0, DataQuality.LOW),
            (0.0, 2, DataQuality.LOW),
        ],
    )
    def test_from_confidence(self, confidence, missing, expected):
        assert DataQuality.from_confidence(confidence, missing) is expected


class TestSourceResponse:
    def test_unavailable_carries_no_data(self):
        response = SourceResponse.unavailable("serper", SourceKind.SEARCH, "HTTP 500")
        assert response.status is SourceStatus.UNAVAILABLE
        assert response.raw is None
        assert response.normalized is None
        assert response.citations == []
        assert not response.usable

    def test_degraded_empty_is_not_usable(self):
        response = SourceResponse("reddit", SourceKind.SOCIAL, SourceStatus.DEGRADED, normalized=[])
        assert not response.usable

    def test_insights_alone_are_usable(self):
        response = SourceResponse(
            "tavily", SourceKind.SEARCH, SourceStatus.OK, normalized=[], insights={"summary": "x"}
        )
        assert response.usable

    def test_text_corpus_and_summary(self):
        response = SourceResponse(
            "serper",
            SourceKind.SEARCH,
            SourceStatus.OK,
            normalized=[SourceDocument(title="Title", snippet="Body text")],
        )
        assert response.text_corpus() == "Title. Body text"
        assert len(response.summary(20)) == 20

    def test_ids_are_unique(self):
        a = SourceResponse.unavailable("a", SourceKind.SEARCH, "x")
        b = SourceResponse.unavailable("a", SourceKind.SEARCH, "x")
        assert a.id != b.id


class TestTileData:
    def test_confidence_is_clamped(self):
        assert TileData(confidence=1.7).confidence == 1.0
        assert TileData(confidence=-0.2).confidence == 0.0

    def test_failed_tile_has_no_metrics(self):
        tile = TileData.failed("boom")
        assert tile.metrics == {}
        assert tile.confidence == 0
        assert tile.data_quality is DataQuality.LOW
        assert tile.error == "boom"

    def test_dict_round_trip(self):
        tile = TileData(
            metrics={"market_size": MetricValue(4.2e9, "USD", "stated", 0.8)},
            citations=[Citation(source="serper", url="https://a.example", title="A")],
            confidence=0.8,
            data_quality=DataQuality.HIGH,
            explanation="ok",
            missing_data_points=["growth_rate"],
            source_ids=["01ABC"],
        )
        restored = TileData.from_dict(tile.to_dict())
        assert restored.metrics["market_size"].value == 4.2e9
        assert restored.citations[0].url == "https://a.example"
        assert restored.data_quality is DataQuality.HIGH
        assert restored.missing_data_points == ["growth_rate"]


class TestCacheEntry:
    def test_expiry_must_follow_creation(self):
        now = datetime(2026, 1, 1, tzinfo=UTC)
        with pytest.raises(ValueError):
            CacheEntry("h", "sentiment", TileData(), created_at=now, expires_at=now)

    def test_is_expired(self):
        now = datetime(2026, 1, 1, tzinfo=UTC)
        entry = CacheEntry("h", "sentiment", TileData(), now, now + timedelta(minutes=15))
        assert not entry.is_expired(now + timedelta(minutes=14))
        assert entry.is_expired(now + timedelta(minutes=15))


class TestBuildMeta:
    def test_optional_lists_omitted_when_empty(self):
        data = BuildMeta(idea_hash="h").to_dict()
        assert "warnings" not in data
        assert "errors" not in data

    def test_optional_lists_present_when_set(self):
        data = BuildMeta(idea_hash="h", warnings=["w"]).to_dict()
        assert data["warnings"] == ["w"]
