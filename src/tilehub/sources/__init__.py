"""Provider adapters. Every client returns a ``SourceResponse`` and never raises."""

from tilehub.sources.base import HttpSourceClient, SourceClient
from tilehub.sources.news_trends import GdeltClient, SerpApiTrendsClient
from tilehub.sources.registry import SourceRegistry
from tilehub.sources.search import SerperClient, TavilyClient
from tilehub.sources.social import RedditClient, YouTubeClient

__all__ = [
    "SourceClient",
    "HttpSourceClient",
    "SourceRegistry",
    "SerperClient",
    "TavilyClient",
    "RedditClient",
    "YouTubeClient",
    "GdeltClient",
    "SerpApiTrendsClient",
]
