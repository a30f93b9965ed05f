"""
Core primitives: models, errors, fingerprinting, settings, logging, cache.

Nothing in ``tilehub.core`` performs network I/O; providers and the
orchestration layer build on top of it.

Tags:
    tilehub, core, primitives
"""

from tilehub.core.cache import (
    InMemoryTileStore,
    RedisTileStore,
    SqlTileStore,
    TileCache,
    TileStore,
    tile_ttl,
)
from tilehub.core.errors import (
    CacheError,
    CircuitOpenError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    ExtractionError,
    InvalidRequestError,
    SourceUnavailableError,
    TileHubError,
    TileSynthesisError,
)
from tilehub.core.fingerprint import fingerprint, normalize_idea
from tilehub.core.logging import LogContext, configure_logging, get_logger
from tilehub.core.models import (
    DEFAULT_TILES,
    BuildMeta,
    CacheEntry,
    Citation,
    DataQuality,
    MetricValue,
    SourceDocument,
    SourceKind,
    SourceResponse,
    SourceStatus,
    TileBatch,
    TileClass,
    TileData,
    TileType,
)
from tilehub.core.settings import TileHubSettings

__all__ = [
    # cache
    "TileCache",
    "TileStore",
    "InMemoryTileStore",
    "SqlTileStore",
    "RedisTileStore",
    "tile_ttl",
    # errors
    "ErrorCategory",
    "ErrorContext",
    "TileHubError",
    "SourceUnavailableError",
    "ExtractionError",
    "CacheError",
    "TileSynthesisError",
    "CircuitOpenError",
    "InvalidRequestError",
    "ConfigError",
    # fingerprint
    "fingerprint",
    "normalize_idea",
    # logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # models
    "TileClass",
    "TileType",
    "DEFAULT_TILES",
    "SourceStatus",
    "SourceKind",
    "DataQuality",
    "Citation",
    "SourceDocument",
    "SourceResponse",
    "MetricValue",
    "TileData",
    "CacheEntry",
    "BuildMeta",
    "TileBatch",
    # settings
    "TileHubSettings",
]
