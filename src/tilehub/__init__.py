"""
tilehub: resilient aggregation of market signals into cacheable tiles.

An idea is fingerprinted, each requested tile is served from the cache or
rebuilt by querying unreliable providers (behind circuit breakers and a
single rate-limited queue), and metrics are extracted with a tiered
pattern → model → insight strategy chain.

Example:
    >>> from tilehub import create_tilehub
    >>> hub = create_tilehub()
    >>> batch = await hub.service.handle("AI meal planner for students", ["sentiment"])
"""

__version__ = "0.1.0"

from tilehub.core.errors import InvalidRequestError, TileHubError
from tilehub.core.fingerprint import fingerprint
from tilehub.core.models import TileBatch, TileData, TileType
from tilehub.core.settings import TileHubSettings
from tilehub.factory import TileHub, create_tilehub
from tilehub.service import DataHubService

__all__ = [
    "__version__",
    "create_tilehub",
    "TileHub",
    "TileHubSettings",
    "DataHubService",
    "TileBatch",
    "TileData",
    "TileType",
    "TileHubError",
    "InvalidRequestError",
    "fingerprint",
]
