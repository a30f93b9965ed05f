"""Social and video adapters: Reddit public search and YouTube Data API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import httpx

from tilehub.core.models import SourceDocument, SourceKind
from tilehub.sources.base import HttpSourceClient, as_float


class RedditClient(HttpSourceClient):
    """Public Reddit search (``/search.json``); no key needed.

    Engagement is upvotes plus comment count.
    """

    name = "reddit"
    kind = SourceKind.SOCIAL
    requires_key = False
    url = "https://www.reddit.com/search.json"

    async def _send(
        self, client: httpx.AsyncClient, query: str, params: dict[str, Any]
    ) -> httpx.Response:
        return await client.get(
            self.url,
            params={
                "q": query,
                "limit": int(params.get("num", 25)),
                "sort": "relevance",
                "t": params.get("time_window", "month"),
            },
        )

    def parse(self, payload: Any, query: str) -> tuple[list[SourceDocument], dict[str, Any]]:
        documents = []
        for child in (payload.get("data") or {}).get("children") or []:
            post = child.get("data") or {}
            if not post.get("title"):
                continue
            created = as_float(post.get("created_utc"))
            score = as_float(post.get("score")) or 0.0
            comments = as_float(post.get("num_comments")) or 0.0
            documents.append(
                SourceDocument(
                    title=post["title"],
                    url=f"https://www.reddit.com{post['permalink']}" if post.get("permalink") else "",
                    snippet=(post.get("selftext") or "")[:1000],
                    published_at=(
                        datetime.fromtimestamp(created, UTC).isoformat() if created else None
                    ),
                    engagement=score + comments,
                )
            )
        return documents, {}


class YouTubeClient(HttpSourceClient):
    """YouTube Data API v3 video search."""

    name = "youtube"
    kind = SourceKind.VIDEO
    url = "https://www.googleapis.com/youtube/v3/search"

    async def _send(
        self, client: httpx.AsyncClient, query: str, params: dict[str, Any]
    ) -> httpx.Response:
        return await client.get(
            self.url,
            params={
                "part": "snippet",
                "q": query,
                "type": "video",
                "order": "relevance",
                "maxResults": int(params.get("num", 25)),
                "key": self.api_key,
            },
        )

    def parse(self, payload: Any, query: str) -> tuple[list[SourceDocument], dict[str, Any]]:
        documents = []
        for item in payload.get("items") or []:
            snippet = item.get("snippet") or {}
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id or not snippet.get("title"):
                continue
            documents.append(
                SourceDocument(
                    title=snippet["title"],
                    url=f"https://www.youtube.com/watch?v={video_id}",
                    snippet=snippet.get("description") or "",
                    published_at=snippet.get("publishedAt"),
                )
            )
        insights: dict[str, Any] = {}
        total = (payload.get("pageInfo") or {}).get("totalResults")
        if total is not None:
            insights["total_results"] = total
        return documents, insights


__all__ = ["RedditClient", "YouTubeClient"]
