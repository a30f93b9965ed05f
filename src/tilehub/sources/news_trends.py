"""News and trend adapters: GDELT DOC 2.0 and Google Trends via SerpAPI."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote_plus

import httpx

from tilehub.core.models import SourceDocument, SourceKind
from tilehub.sources.base import HttpSourceClient, as_float


class GdeltClient(HttpSourceClient):
    """GDELT DOC 2.0 article list; keyless.

    GDELT answers malformed queries with a plain-text message, which fails
    JSON decoding and is reported as ``unavailable``.
    """

    name = "gdelt"
    kind = SourceKind.NEWS
    requires_key = False
    url = "https://api.gdeltproject.org/api/v2/doc/doc"

    async def _send(
        self, client: httpx.AsyncClient, query: str, params: dict[str, Any]
    ) -> httpx.Response:
        return await client.get(
            self.url,
            params={
                "query": query,
                "mode": "artlist",
                "maxrecords": int(params.get("num", 50)),
                "format": "json",
                "sort": "datedesc",
                "timespan": params.get("timespan", "1month"),
            },
        )

    def parse(self, payload: Any, query: str) -> tuple[list[SourceDocument], dict[str, Any]]:
        documents = [
            SourceDocument(
                title=article.get("title") or "",
                url=article.get("url") or "",
                snippet=article.get("domain") or "",
                published_at=article.get("seendate"),
            )
            for article in payload.get("articles") or []
            if article.get("title")
        ]
        return documents, {}


class SerpApiTrendsClient(HttpSourceClient):
    """Google Trends interest over time via SerpAPI.

    Each timeline point becomes a document whose ``value`` is the interest
    score (0-100) and whose ``title`` is the point's date label.
    """

    name = "serpapi_trends"
    kind = SourceKind.TRENDS
    url = "https://serpapi.com/search.json"

    async def _send(
        self, client: httpx.AsyncClient, query: str, params: dict[str, Any]
    ) -> httpx.Response:
        return await client.get(
            self.url,
            params={
                "engine": "google_trends",
                "q": query,
                "data_type": "TIMESERIES",
                "date": params.get("date", "today 12-m"),
                "api_key": self.api_key,
            },
        )

    def parse(self, payload: Any, query: str) -> tuple[list[SourceDocument], dict[str, Any]]:
        if payload.get("error"):
            raise ValueError(payload["error"])
        interest = payload.get("interest_over_time") or {}
        explore_url = f"https://trends.google.com/trends/explore?q={quote_plus(query)}"
        documents = []
        for point in interest.get("timeline_data") or []:
            values = point.get("values") or []
            if not values:
                continue
            value = as_float(values[0].get("extracted_value"))
            if value is None:
                continue
            documents.append(
                SourceDocument(
                    title=point.get("date") or "",
                    url=explore_url,
                    snippet=f"{query} interest {value:g}",
                    published_at=point.get("timestamp"),
                    value=value,
                )
            )
        insights: dict[str, Any] = {}
        if interest.get("averages"):
            insights["averages"] = interest["averages"]
        return documents, insights


__all__ = ["GdeltClient", "SerpApiTrendsClient"]
