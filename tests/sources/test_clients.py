"""
Tests for the provider adapters.

Every adapter is exercised through ``httpx.MockTransport`` so no test
touches the network. The contract under test: ``fetch`` never raises and
an unreachable provider is an explicit ``unavailable`` response.
"""

import asyncio
import json

import httpx
import pytest

from tilehub.core.models import SourceKind, SourceStatus
from tilehub.sources.news_trends import GdeltClient, SerpApiTrendsClient
from tilehub.sources.registry import SourceRegistry
from tilehub.sources.search import SerperClient, TavilyClient
from tilehub.sources.social import RedditClient, YouTubeClient


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _json(payload, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=payload)

    return handler


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable_without_a_call(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        client = SerperClient(api_key=None, client=_client(handler))
        response = await client.fetch("ai tutor")
        assert response.status is SourceStatus.UNAVAILABLE
        assert response.reason == "serper not configured"
        assert calls == []

    @pytest.mark.asyncio
    async def test_disabled_keyless_client(self):
        client = RedditClient(enabled=False)
        response = await client.fetch("ai tutor")
        assert response.status is SourceStatus.UNAVAILABLE
        assert not client.configured

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = SerperClient(api_key="k", client=_client(_json({"message": "quota"}, status=429)))
        response = await client.fetch("ai tutor")
        assert response.status is SourceStatus.UNAVAILABLE
        assert response.reason == "HTTP 429"
        assert response.normalized is None
        assert response.raw is None

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        response = await TavilyClient(api_key="k", client=_client(handler)).fetch("ai tutor")
        assert response.status is SourceStatus.UNAVAILABLE
        assert "ConnectError" in response.reason

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="Your query was too short")

        response = await GdeltClient(client=_client(handler)).fetch("ai")
        assert response.status is SourceStatus.UNAVAILABLE
        assert response.reason.startswith("unparseable response")

    @pytest.mark.asyncio
    async def test_abort_timeout(self):
        async def handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json={})

        client = SerperClient(api_key="k", abort_timeout=0.01, client=_client(handler))
        response = await client.fetch("ai tutor")
        assert response.status is SourceStatus.UNAVAILABLE
        assert "timed out" in response.reason

    @pytest.mark.asyncio
    async def test_empty_answer_is_degraded(self):
        response = await SerperClient(api_key="k", client=_client(_json({"organic": []}))).fetch("x y z")
        assert response.status is SourceStatus.DEGRADED
        assert response.normalized == []
        assert response.reason == "no results"


class TestSerper:
    @pytest.mark.asyncio
    async def test_request_and_parse(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers["X-API-KEY"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "organic": [
                        {"title": "AI tutors market", "link": "https://a.example", "snippet": "$4.2 billion"},
                        {"title": "Dup", "link": "https://a.example", "snippet": "same link"},
                    ],
                    "answerBox": {"answer": "About $4.2 billion"},
                    "relatedSearches": [{"query": "ai tutor apps"}],
                },
            )

        client = SerperClient(api_key="secret", client=_client(handler))
        response = await client.fetch("ai tutor", {"type": "news", "time_window": "week"})

        assert seen["url"].endswith("/news")
        assert seen["key"] == "secret"
        assert seen["body"]["tbs"] == "qdr:w"
        assert response.status is SourceStatus.OK
        assert len(response.normalized) == 2
        assert len(response.citations) == 1
        assert response.insights["summary"] == "About $4.2 billion"
        assert response.insights["related_searches"] == ["ai tutor apps"]


class TestTavily:
    @pytest.mark.asyncio
    async def test_answer_becomes_summary(self):
        payload = {
            "answer": "Tutoring apps are growing 18% a year.",
            "results": [{"title": "Report", "url": "https://r.example", "content": "text", "score": 0.9}],
        }
        response = await TavilyClient(api_key="k", client=_client(_json(payload))).fetch("ai tutor")
        assert response.insights["summary"].startswith("Tutoring apps")
        assert response.normalized[0].engagement == 0.9


class TestReddit:
    @pytest.mark.asyncio
    async def test_engagement_is_score_plus_comments(self):
        payload = {
            "data": {
                "children": [
                    {"data": {"title": "Love this", "permalink": "/r/x/1", "score": 10, "num_comments": 5,
                              "created_utc": 1767225600}},
                    {"data": {"title": ""}},
                ]
            }
        }
        response = await RedditClient(client=_client(_json(payload))).fetch("ai tutor")
        assert response.kind is SourceKind.SOCIAL
        assert len(response.normalized) == 1
        doc = response.normalized[0]
        assert doc.engagement == 15
        assert doc.url == "https://www.reddit.com/r/x/1"
        assert doc.published_at.startswith("2026-01-01")


class TestYouTube:
    @pytest.mark.asyncio
    async def test_videos_and_total(self):
        payload = {
            "pageInfo": {"totalResults": 1200},
            "items": [
                {"id": {"videoId": "abc"}, "snippet": {"title": "Review", "description": "d"}},
                {"id": {}, "snippet": {"title": "Channel"}},
            ],
        }
        response = await YouTubeClient(api_key="k", client=_client(_json(payload))).fetch("ai tutor")
        assert [d.url for d in response.normalized] == ["https://www.youtube.com/watch?v=abc"]
        assert response.insights["total_results"] == 1200


class TestGdelt:
    @pytest.mark.asyncio
    async def test_articles(self):
        payload = {"articles": [{"title": "Startup raises", "url": "https://n.example", "domain": "n.example"}]}
        response = await GdeltClient(client=_client(_json(payload))).fetch("ai tutor")
        assert response.kind is SourceKind.NEWS
        assert response.normalized[0].title == "Startup raises"


class TestSerpApiTrends:
    @pytest.mark.asyncio
    async def test_timeline_points_become_valued_documents(self):
        payload = {
            "interest_over_time": {
                "timeline_data": [
                    {"date": "Jan 2026", "values": [{"extracted_value": 40}]},
                    {"date": "Feb 2026", "values": [{"extracted_value": 55}]},
                    {"date": "Mar 2026", "values": []},
                ],
                "averages": [{"query": "ai tutor", "value": 47}],
            }
        }
        response = await SerpApiTrendsClient(api_key="k", client=_client(_json(payload))).fetch("ai tutor")
        assert [d.value for d in response.normalized] == [40.0, 55.0]
        assert response.insights["averages"][0]["value"] == 47
        assert len(response.citations) == 1

    @pytest.mark.asyncio
    async def test_provider_error_field(self):
        payload = {"error": "Invalid API key"}
        response = await SerpApiTrendsClient(api_key="k", client=_client(_json(payload))).fetch("x")
        assert response.status is SourceStatus.UNAVAILABLE
        assert "Invalid API key" in response.reason


class TestSourceRegistry:
    @pytest.mark.asyncio
    async def test_unknown_source(self):
        response = await SourceRegistry().fetch("twitter", "ai tutor")
        assert response.status is SourceStatus.UNAVAILABLE
        assert response.reason == "no client registered for twitter"

    def test_lookup_and_configuration(self):
        registry = SourceRegistry([SerperClient(api_key=None), RedditClient()])
        assert "serper" in registry
        assert len(registry) == 2
        assert registry.names() == ["serper", "reddit"]
        assert not registry.is_configured("serper")
        assert registry.is_configured("reddit")
        assert not registry.is_configured("youtube")
        assert registry.kind_of("reddit") is SourceKind.SOCIAL
