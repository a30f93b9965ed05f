"""
Fake collaborators: scripted source clients, a controllable clock, and
response builders.

Usage in test code::

    from tests._support.fakes import FakeSourceClient, ok_response

    client = FakeSourceClient("serper", responses=[ok_response("serper", "AI market $4.2 billion")])
    registry = SourceRegistry([client])
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from tilehub.core.models import (
    SourceDocument,
    SourceKind,
    SourceResponse,
    SourceStatus,
)


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    """Monotonic clock plus an async ``sleep`` that advances it."""

    def __init__(self) -> None:
        self.value = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.value

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.value += seconds


def ok_response(
    source: str,
    *texts: str,
    kind: SourceKind = SourceKind.SEARCH,
    insights: dict[str, Any] | None = None,
    values: list[float] | None = None,
) -> SourceResponse:
    """An ``ok`` response with one document per text."""
    documents = [
        SourceDocument(title=text, url=f"https://{source}.example/{i}", snippet=text)
        for i, text in enumerate(texts)
    ]
    for i, value in enumerate(values or []):
        documents.append(
            SourceDocument(title=f"2026-0{i + 1}", url=f"https://{source}.example/t", value=value)
        )
    return SourceResponse(
        source=source,
        kind=kind,
        status=SourceStatus.OK,
        normalized=documents,
        insights=dict(insights or {}),
    )


def unavailable(source: str, reason: str = "HTTP 503") -> SourceResponse:
    return SourceResponse.unavailable(source, SourceKind.SEARCH, reason)


class FakeSourceClient:
    """Scripted ``SourceClient``.

    ``responses`` are returned in order (the last one repeats); a callable
    ``handler(query, params)`` takes precedence when given.
    """

    def __init__(
        self,
        name: str,
        *,
        responses: list[SourceResponse] | None = None,
        handler: Callable[[str, dict[str, Any] | None], SourceResponse] | None = None,
        kind: SourceKind = SourceKind.SEARCH,
        configured: bool = True,
    ):
        self.name = name
        self.kind = kind
        self.configured = configured
        self._responses = list(responses or [])
        self._handler = handler
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> SourceResponse:
        self.calls.append((query, params))
        if self._handler is not None:
            return self._handler(query, params)
        if not self._responses:
            return unavailable(self.name, "no scripted response")
        if len(self._responses) == 1:
            return self._responses[0]
        return self._responses.pop(0)

    @property
    def call_count(self) -> int:
        return len(self.calls)
