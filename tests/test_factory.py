"""Tests for the composition root."""

from tilehub.core.cache import InMemoryTileStore, SqlTileStore
from tilehub.core.settings import TileHubSettings
from tilehub.factory import build_llm, build_registry, build_store, create_tilehub
from tilehub.llm.mock import MockLLMProvider


def _settings(**overrides) -> TileHubSettings:
    base = dict(_env_file=None, serper_api_key=None, tavily_api_key=None, youtube_api_key=None,
                serpapi_api_key=None, llm_api_key=None)
    base.update(overrides)
    return TileHubSettings(**base)


class TestBuilders:
    def test_memory_store(self):
        assert isinstance(build_store(_settings(cache_backend="memory")), InMemoryTileStore)

    def test_sql_store(self):
        store = build_store(_settings(cache_backend="sql", database_url="sqlite://"))
        assert isinstance(store, SqlTileStore)

    def test_registry_has_every_provider(self):
        registry = build_registry(_settings(serper_api_key="k"))
        assert set(registry.names()) == {"serper", "tavily", "reddit", "gdelt", "youtube", "serpapi_trends"}
        assert registry.is_configured("serper")
        assert not registry.is_configured("tavily")
        assert registry.is_configured("reddit")

    def test_keyless_providers_can_be_disabled(self):
        registry = build_registry(_settings(reddit_enabled=False))
        assert not registry.is_configured("reddit")

    def test_no_llm_without_key(self):
        assert build_llm(_settings()) is None
        assert build_llm(_settings(llm_api_key="sk")) is not None


class TestCreateTilehub:
    def test_default_chain(self):
        hub = create_tilehub(_settings())
        assert hub.engine.strategy_names == ["local", "insights"]
        assert hub.serializer.min_delay == 1.0

    def test_llm_override(self):
        hub = create_tilehub(_settings(), llm=MockLLMProvider())
        assert hub.engine.strategy_names == ["local", "model", "insights"]

    def test_hubs_do_not_share_state(self):
        a, b = create_tilehub(_settings()), create_tilehub(_settings())
        assert a.breakers is not b.breakers
        assert a.serializer is not b.serializer
        assert a.cache is not b.cache
