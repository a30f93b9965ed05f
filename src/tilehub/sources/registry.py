"""Name → SourceClient lookup used by tile synthesis."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from tilehub.core.models import SourceKind, SourceResponse
from tilehub.sources.base import SourceClient


class SourceRegistry:
    """Registry of source clients keyed by ``client.name``.

    Fetching from a name with no registered client yields an ``unavailable``
    response rather than an error.
    """

    def __init__(self, clients: Iterable[SourceClient] = ()):
        self._clients: dict[str, SourceClient] = {}
        for client in clients:
            self.register(client)

    def register(self, client: SourceClient) -> None:
        self._clients[client.name] = client

    def get(self, name: str) -> SourceClient | None:
        return self._clients.get(name)

    def names(self) -> list[str]:
        return list(self._clients)

    def __contains__(self, name: object) -> bool:
        return name in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    def is_configured(self, name: str) -> bool:
        """True when a client is registered and has what it needs to call out."""
        client = self._clients.get(name)
        return client is not None and getattr(client, "configured", True)

    def kind_of(self, name: str) -> SourceKind:
        client = self._clients.get(name)
        return client.kind if client is not None else SourceKind.SEARCH

    async def fetch(
        self, name: str, query: str, params: dict[str, Any] | None = None
    ) -> SourceResponse:
        client = self._clients.get(name)
        if client is None:
            return SourceResponse.unavailable(
                name, SourceKind.SEARCH, f"no client registered for {name}"
            )
        return await client.fetch(query, params)


__all__ = ["SourceRegistry"]
