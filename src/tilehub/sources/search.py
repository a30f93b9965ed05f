"""Web search adapters: Serper (Google results) and Tavily."""

from __future__ import annotations

from typing import Any

import httpx

from tilehub.core.models import SourceDocument, SourceKind
from tilehub.sources.base import HttpSourceClient, as_float


class SerperClient(HttpSourceClient):
    """Google search via serper.dev.

    ``params["type"] == "news"`` queries the news vertical instead of web
    results. Answer boxes and knowledge graphs are kept as insights.
    """

    name = "serper"
    kind = SourceKind.SEARCH
    base_url = "https://google.serper.dev"

    async def _send(
        self, client: httpx.AsyncClient, query: str, params: dict[str, Any]
    ) -> httpx.Response:
        vertical = "news" if params.get("type") == "news" else "search"
        body: dict[str, Any] = {"q": query, "num": int(params.get("num", 10))}
        if params.get("time_window"):
            body["tbs"] = f"qdr:{str(params['time_window'])[0]}"
        return await client.post(
            f"{self.base_url}/{vertical}",
            json=body,
            headers={"X-API-KEY": self.api_key or ""},
        )

    def parse(self, payload: Any, query: str) -> tuple[list[SourceDocument], dict[str, Any]]:
        items = list(payload.get("organic") or []) + list(payload.get("news") or [])
        documents = [
            SourceDocument(
                title=item.get("title") or "",
                url=item.get("link") or "",
                snippet=item.get("snippet") or "",
                published_at=item.get("date"),
            )
            for item in items
            if item.get("title") or item.get("snippet")
        ]

        insights: dict[str, Any] = {}
        answer_box = payload.get("answerBox")
        if answer_box:
            insights["answer_box"] = answer_box
            summary = answer_box.get("answer") or answer_box.get("snippet")
            if summary:
                insights["summary"] = summary
        knowledge_graph = payload.get("knowledgeGraph")
        if knowledge_graph:
            insights["knowledge_graph"] = knowledge_graph
        related = [r.get("query") for r in payload.get("relatedSearches") or [] if r.get("query")]
        if related:
            insights["related_searches"] = related
        return documents, insights


class TavilyClient(HttpSourceClient):
    """Tavily search API; the provider's own answer becomes ``insights["summary"]``."""

    name = "tavily"
    kind = SourceKind.SEARCH
    url = "https://api.tavily.com/search"

    async def _send(
        self, client: httpx.AsyncClient, query: str, params: dict[str, Any]
    ) -> httpx.Response:
        body: dict[str, Any] = {
            "api_key": self.api_key,
            "query": query,
            "search_depth": params.get("search_depth", "basic"),
            "max_results": int(params.get("num", 10)),
            "include_answer": True,
        }
        if params.get("type") == "news":
            body["topic"] = "news"
        return await client.post(self.url, json=body)

    def parse(self, payload: Any, query: str) -> tuple[list[SourceDocument], dict[str, Any]]:
        documents = [
            SourceDocument(
                title=item.get("title") or "",
                url=item.get("url") or "",
                snippet=item.get("content") or "",
                published_at=item.get("published_date"),
                engagement=as_float(item.get("score")),
            )
            for item in payload.get("results") or []
        ]
        insights: dict[str, Any] = {}
        if payload.get("answer"):
            insights["summary"] = payload["answer"]
        return documents, insights


__all__ = ["SerperClient", "TavilyClient"]
