"""
SourceClient contract and the httpx base class every adapter builds on.

Manifesto:
    Providers fail in every way a network service can: timeouts, 429s,
    HTML error pages where JSON was promised, keys that were never set.
    None of that is exceptional from the aggregation layer's point of view,
    so a client *never raises*. ``fetch`` always returns a
    :class:`~tilehub.core.models.SourceResponse` whose ``status`` says what
    happened:

    - ``ok``          - documents or provider insights were returned
    - ``degraded``    - the provider answered but had nothing usable
    - ``unavailable`` - no key, transport failure, non-2xx, bad payload

Architecture:
    ::

        HttpSourceClient.fetch(query, params)
            │  not configured?  → unavailable("<name> not configured")
            ▼
        _send(client, query, params)     ← adapter: build + send request
            │  [asyncio.timeout(abort_timeout) when set]
            ▼
        raise_for_status() + .json()
            ▼
        parse(payload, query)            ← adapter: → (documents, insights)
            ▼
        SourceResponse(ok | degraded, normalized=documents, citations)

Tags:
    sources, httpx, adapters, never-throw, tilehub

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Protocol, runtime_checkable

import httpx

from tilehub.core.logging import get_logger
from tilehub.core.models import (
    Citation,
    SourceDocument,
    SourceKind,
    SourceResponse,
    SourceStatus,
)

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "tilehub/0.1"


@runtime_checkable
class SourceClient(Protocol):
    """Anything that can turn a query into a :class:`SourceResponse`.

    ``fetch`` must not raise; failures are expressed as ``unavailable``.
    """

    name: str
    kind: SourceKind

    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> SourceResponse: ...


class HttpSourceClient(ABC):
    """Base class implementing the never-throw envelope over httpx.

    Subclasses set ``name`` / ``kind`` and implement ``_send`` and ``parse``.

    Args:
        api_key: Provider key; required unless ``requires_key`` is False.
        enabled: Keyless providers can be switched off with this.
        timeout: Transport timeout in seconds.
        abort_timeout: Overall deadline for one fetch (``asyncio.timeout``).
        user_agent: ``User-Agent`` header value.
        client: Shared ``httpx.AsyncClient``; one is created per fetch otherwise.
    """

    name: ClassVar[str]
    kind: ClassVar[SourceKind]
    requires_key: ClassVar[bool] = True

    def __init__(
        self,
        *,
        api_key: str | None = None,
        enabled: bool = True,
        timeout: float = 15.0,
        abort_timeout: float | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.enabled = enabled
        self.timeout = timeout
        self.abort_timeout = abort_timeout
        self.user_agent = user_agent
        self._client = client

    @property
    def configured(self) -> bool:
        if not self.enabled:
            return False
        return bool(self.api_key) or not self.requires_key

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(configured={self.configured})"

    @abstractmethod
    async def _send(
        self, client: httpx.AsyncClient, query: str, params: dict[str, Any]
    ) -> httpx.Response:
        """Build and send the provider request."""

    @abstractmethod
    def parse(self, payload: Any, query: str) -> tuple[list[SourceDocument], dict[str, Any]]:
        """Map the provider payload to canonical documents and insights."""

    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> SourceResponse:
        if not self.configured:
            return SourceResponse.unavailable(self.name, self.kind, f"{self.name} not configured")

        try:
            if self.abort_timeout is not None:
                async with asyncio.timeout(self.abort_timeout):
                    payload = await self._request(query, params or {})
            else:
                payload = await self._request(query, params or {})
            documents, insights = self.parse(payload, query)
        except TimeoutError:
            return self._unavailable(f"timed out after {self.abort_timeout}s")
        except httpx.HTTPStatusError as e:
            return self._unavailable(f"HTTP {e.response.status_code}")
        except httpx.TimeoutException:
            return self._unavailable("request timed out")
        except httpx.HTTPError as e:
            return self._unavailable(f"request failed: {e.__class__.__name__}")
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            return self._unavailable(f"unparseable response: {e}")

        citations = _citations(self.name, documents)
        if documents or insights:
            status, reason = SourceStatus.OK, None
        else:
            status, reason = SourceStatus.DEGRADED, "no results"

        logger.debug(
            "source_fetched",
            source=self.name,
            status=status.value,
            documents=len(documents),
        )
        return SourceResponse(
            source=self.name,
            kind=self.kind,
            status=status,
            reason=reason,
            raw=payload,
            normalized=documents,
            citations=citations,
            insights=insights,
        )

    async def _request(self, query: str, params: dict[str, Any]) -> Any:
        if self._client is not None:
            response = await self._send(self._client, query, params)
        else:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
            ) as client:
                response = await self._send(client, query, params)
        response.raise_for_status()
        return response.json()

    def _unavailable(self, reason: str) -> SourceResponse:
        logger.warning("source_unavailable", source=self.name, reason=reason)
        return SourceResponse.unavailable(self.name, self.kind, reason)


def _citations(source: str, documents: list[SourceDocument]) -> list[Citation]:
    seen: set[str] = set()
    citations = []
    for doc in documents:
        if not doc.url or doc.url in seen:
            continue
        seen.add(doc.url)
        citations.append(Citation(source=source, url=doc.url, title=doc.title or None))
    return citations


def as_float(value: Any) -> float | None:
    """Best-effort numeric coercion for provider fields."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = ["SourceClient", "HttpSourceClient", "DEFAULT_USER_AGENT", "as_float"]
