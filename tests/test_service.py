"""Tests for request validation and the DataHubService entry point."""

import json

import pytest

from tilehub.core.errors import InvalidRequestError
from tilehub.core.models import DEFAULT_TILES, TileType


class TestValidate:
    @pytest.mark.parametrize("idea", [None, "", "   ", "abc", 42])
    def test_short_or_missing_idea(self, hub, idea):
        with pytest.raises(InvalidRequestError, match="at least 5 characters"):
            hub.service.validate(idea)

    def test_idea_is_trimmed(self, hub):
        assert hub.service.validate("  meal planner  ").idea == "meal planner"

    def test_default_tiles(self, hub):
        request = hub.service.validate("meal planner", [])
        assert request.tiles == list(DEFAULT_TILES)
        assert request.errors == []

    def test_invalid_tiles_removed(self, hub):
        request = hub.service.validate("meal planner", ["sentiment", "weather", "SENTIMENT", "stocks"])
        assert request.tiles == [TileType.SENTIMENT]
        assert request.errors == ["Removed invalid tiles: weather, stocks"]

    def test_tile_count_capped_before_filtering(self, hub):
        hub.service.max_tiles = 2
        request = hub.service.validate("meal planner", ["weather", "sentiment", "market_size"])
        assert request.tiles == [TileType.SENTIMENT]


class TestHandle:
    @pytest.mark.asyncio
    async def test_builds_requested_tiles(self, hub):
        batch = await hub.service.handle("meal planner for students", ["sentiment", "bogus"])
        assert list(batch.tiles) == ["sentiment"]
        assert batch.meta.errors == ["Removed invalid tiles: bogus"]

    @pytest.mark.asyncio
    async def test_all_tiles_invalid(self, hub, fake_clients):
        batch = await hub.service.handle("meal planner for students", ["bogus"])
        assert batch.tiles == {}
        assert batch.meta.errors == ["Removed invalid tiles: bogus"]
        assert all(client.call_count == 0 for client in fake_clients.values())

    @pytest.mark.asyncio
    async def test_force_refresh_passed_through(self, hub):
        await hub.service.handle("meal planner for students", ["sentiment"])
        batch = await hub.service.handle("meal planner for students", ["sentiment"], force_refresh=True)
        assert batch.meta.generated == ["sentiment"]

    @pytest.mark.asyncio
    async def test_invalid_idea_raises(self, hub):
        with pytest.raises(InvalidRequestError):
            await hub.service.handle("hey", ["sentiment"])

    @pytest.mark.asyncio
    async def test_idea_with_lone_surrogate(self, hub):
        idea = json.loads('"AI scheduling \\ud800 assistant"')
        batch = await hub.service.handle(idea, ["sentiment"])
        assert len(batch.meta.idea_hash) == 32
        assert list(batch.tiles) == ["sentiment"]
