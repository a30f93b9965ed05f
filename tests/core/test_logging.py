"""Tests for scoped log context."""

import pytest
import structlog

from tilehub.core.logging import LogContext


@pytest.fixture(autouse=True)
def _clean_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


class TestLogContext:
    def test_binds_and_unbinds(self):
        with LogContext(idea_hash="abc", tile="sentiment"):
            assert structlog.contextvars.get_contextvars() == {"idea_hash": "abc", "tile": "sentiment"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_nested_restores_outer_value(self):
        with LogContext(request_id="r1", tile="outer"):
            with LogContext(tile="inner"):
                assert structlog.contextvars.get_contextvars()["tile"] == "inner"
            assert structlog.contextvars.get_contextvars() == {"request_id": "r1", "tile": "outer"}

    @pytest.mark.asyncio
    async def test_async_form(self):
        async with LogContext(idea_hash="abc"):
            assert structlog.contextvars.get_contextvars()["idea_hash"] == "abc"
        assert "idea_hash" not in structlog.contextvars.get_contextvars()
