"""
Shared pytest fixtures for tilehub tests.

This module provides:
- Deterministic clocks
- Scripted source clients and a registry built from them
- A fully wired hub over an in-memory cache with zero request spacing
"""

from __future__ import annotations

import pytest

from tilehub.core.cache import InMemoryTileStore
from tilehub.core.settings import TileHubSettings
from tilehub.execution.serializer import RequestSerializer
from tilehub.factory import TileHub, create_tilehub
from tilehub.sources.registry import SourceRegistry

from tests._support.fakes import FakeClock, FakeSourceClient

SOURCE_NAMES = ("serper", "tavily", "reddit", "gdelt", "youtube", "serpapi_trends")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> TileHubSettings:
    """Settings isolated from the environment (no keys, memory cache)."""
    return TileHubSettings(
        _env_file=None,
        cache_backend="memory",
        min_delay_seconds=0.0,
        serper_api_key=None,
        tavily_api_key=None,
        youtube_api_key=None,
        serpapi_api_key=None,
        llm_api_key=None,
        log_json=False,
    )


@pytest.fixture
def fake_clients() -> dict[str, FakeSourceClient]:
    """One scripted client per provider; each answers 'unavailable' until scripted."""
    return {name: FakeSourceClient(name) for name in SOURCE_NAMES}


@pytest.fixture
def registry(fake_clients: dict[str, FakeSourceClient]) -> SourceRegistry:
    return SourceRegistry(list(fake_clients.values()))


@pytest.fixture
def hub(settings: TileHubSettings, registry: SourceRegistry) -> TileHub:
    return create_tilehub(
        settings,
        store=InMemoryTileStore(),
        registry=registry,
        serializer=RequestSerializer(0.0, name="test"),
    )
