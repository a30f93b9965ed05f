"""
Tile cache with pluggable storage backends.

Generated tiles are cached per ``(idea_hash, tile_type)`` with a TTL that
follows how fast the tile's signal moves. A read never raises and never
returns an expired entry; a write never raises and reports success as a
bool. Store failures surface as structured warnings, not exceptions.

Manifesto:
    Provider calls are slow, rate limited and billed. The cache is what lets
    the orchestrator answer repeat requests without touching a provider, so
    it must be boring:

    - **Protocol-based:** ``TileStore`` defines the storage contract
    - **Tier-aware:** in-memory for dev, SQL for a single host, Redis for many
    - **TTL per tile class:** fast signals expire in minutes, structural in hours
    - **Negative caching:** zero-confidence tiles are kept briefly so failing
      providers are not re-hammered on every request
    - **Stale reads on demand:** ``peek()`` returns expired entries for
      fallbacks that prefer old data to no data

Architecture:
    ::

        TileCache (TTL policy, never raises)
            │
            ▼
        TileStore (Protocol)
        ├── InMemoryTileStore - bounded LRU, single process
        ├── SqlTileStore      - SQLAlchemy ``tile_cache`` table
        └── RedisTileStore    - ``tilehub:{idea_hash}:{tile}`` keys

        API: get(idea_hash, tile) → TileData | None
             peek(idea_hash, tile) → CacheEntry | None
             set(idea_hash, tile, data) → bool
             invalidate(idea_hash, tile=None) → int

Examples:
    >>> from tilehub.core.cache import InMemoryTileStore, TileCache
    >>> from tilehub.core.models import TileData
    >>> cache = TileCache(InMemoryTileStore())
    >>> cache.set("abc", "sentiment", TileData.empty("nothing yet"))
    True
    >>> cache.get("abc", "sentiment").explanation
    'nothing yet'

Guardrails:
    ❌ DON'T: Use InMemoryTileStore in multi-process deployments (no sharing)
    ✅ DO: Use SqlTileStore or RedisTileStore when several workers serve the API

Tags:
    cache, ttl, sqlalchemy, redis, in-memory, tilehub

Doc-Types:
    - API Reference
    - Infrastructure Guide
"""

from __future__ import annotations

import copy
import json
from collections import OrderedDict
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from tilehub.core.errors import CacheError, ErrorContext, describe_error
from tilehub.core.logging import get_logger
from tilehub.core.models import CacheEntry, TileClass, TileData, TileType
from tilehub.core.orm import TileCacheRow, init_schema, tilehub_session_factory
from tilehub.core.timestamps import from_iso8601, utc_now

logger = get_logger(__name__)


TILE_CLASS_TTLS: dict[TileClass, timedelta] = {
    TileClass.FAST: timedelta(minutes=15),
    TileClass.TREND: timedelta(hours=2),
    TileClass.STRUCTURAL: timedelta(hours=6),
}

# Unknown tile ids (should not reach the cache) get the structural TTL.
DEFAULT_TTL = timedelta(hours=6)


def tile_ttl(tile: TileType | str) -> timedelta:
    """TTL for a tile id based on its class."""
    parsed = TileType.parse(tile)
    if parsed is None:
        return DEFAULT_TTL
    return TILE_CLASS_TTLS[parsed.tile_class]


def _tile_key(tile: TileType | str) -> str:
    return tile.value if isinstance(tile, TileType) else str(tile)


class TileStore(Protocol):
    """Storage contract behind :class:`TileCache`.

    Stores may raise on I/O failure; ``TileCache`` turns that into warnings.
    ``read`` returns entries regardless of expiry.
    """

    def read(self, idea_hash: str, tile_type: str) -> CacheEntry | None: ...

    def upsert(self, entry: CacheEntry) -> None: ...

    def delete(self, idea_hash: str, tile_type: str | None = None) -> int: ...


# ------------------------------------------------------------------ #
# In-memory store
# ------------------------------------------------------------------ #


class InMemoryTileStore:
    """Bounded in-memory store with LRU eviction.

    Entries are copied in and out, so callers never share a tile with the store.

    Example:
        store = InMemoryTileStore(max_size=500)
        cache = TileCache(store)
    """

    def __init__(self, *, max_size: int = 10_000):
        self._entries: OrderedDict[tuple[str, str], CacheEntry] = OrderedDict()
        self._max_size = max_size

    def read(self, idea_hash: str, tile_type: str) -> CacheEntry | None:
        key = (idea_hash, tile_type)
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
        return copy.deepcopy(entry)

    def upsert(self, entry: CacheEntry) -> None:
        key = (entry.idea_hash, entry.tile_type)
        if key not in self._entries and len(self._entries) >= self._max_size:
            self._entries.popitem(last=False)
        self._entries[key] = copy.deepcopy(entry)
        self._entries.move_to_end(key)

    def delete(self, idea_hash: str, tile_type: str | None = None) -> int:
        keys = [
            key
            for key in self._entries
            if key[0] == idea_hash and (tile_type is None or key[1] == tile_type)
        ]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def size(self) -> int:
        return len(self._entries)


# ------------------------------------------------------------------ #
# SQL store
# ------------------------------------------------------------------ #


class SqlTileStore:
    """SQLAlchemy-backed store over the ``tile_cache`` table.

    The table is created on construction when ``create_schema`` is true.
    """

    def __init__(self, engine: Engine, *, create_schema: bool = True):
        self._engine = engine
        self._session_factory = tilehub_session_factory(engine)
        if create_schema:
            init_schema(engine)

    def read(self, idea_hash: str, tile_type: str) -> CacheEntry | None:
        with _sql_errors("read", idea_hash, tile_type), self._session_factory() as session:
            row = session.scalars(
                select(TileCacheRow).where(
                    TileCacheRow.idea_hash == idea_hash,
                    TileCacheRow.tile_type == tile_type,
                )
            ).first()
            if row is None:
                return None
            return CacheEntry(
                idea_hash=row.idea_hash,
                tile_type=row.tile_type,
                data=TileData.from_dict(row.data),
                created_at=from_iso8601(row.created_at),
                expires_at=from_iso8601(row.expires_at),
            )

    def upsert(self, entry: CacheEntry) -> None:
        with (
            _sql_errors("upsert", entry.idea_hash, entry.tile_type),
            self._session_factory() as session,
            session.begin(),
        ):
            row = session.scalars(
                select(TileCacheRow).where(
                    TileCacheRow.idea_hash == entry.idea_hash,
                    TileCacheRow.tile_type == entry.tile_type,
                )
            ).first()
            if row is None:
                row = TileCacheRow(idea_hash=entry.idea_hash, tile_type=entry.tile_type)
                session.add(row)
            row.data = entry.data.to_dict()
            row.created_at = entry.created_at
            row.expires_at = entry.expires_at

    def delete(self, idea_hash: str, tile_type: str | None = None) -> int:
        stmt = delete(TileCacheRow).where(TileCacheRow.idea_hash == idea_hash)
        if tile_type is not None:
            stmt = stmt.where(TileCacheRow.tile_type == tile_type)
        with (
            _sql_errors("delete", idea_hash, tile_type),
            self._session_factory() as session,
            session.begin(),
        ):
            result = session.execute(stmt)
            return result.rowcount or 0


@contextmanager
def _sql_errors(operation: str, idea_hash: str, tile_type: str | None) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise CacheError(
            f"tile_cache {operation} failed: {e.__class__.__name__}",
            cause=e,
            context=ErrorContext(idea_hash=idea_hash, tile=tile_type),
        ) from e


# ------------------------------------------------------------------ #
# Redis store (optional)
# ------------------------------------------------------------------ #


class RedisTileStore:
    """Redis-backed store.

    Requires ``redis`` package (install via ``pip install tilehub[redis]``).
    Keys are ``tilehub:{idea_hash}:{tile}``; the server-side expiry is the
    logical expiry plus ``stale_retention`` so ``peek()`` can still see
    recently expired entries.

    Raises:
        ImportError: If ``redis`` package is not installed and no client is given.
    """

    KEY_PREFIX = "tilehub"

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        client: Any = None,
        stale_retention: timedelta = timedelta(hours=24),
    ):
        if client is None:
            try:
                import redis
            except ImportError as exc:
                msg = (
                    "Redis backend requires 'redis' package. "
                    "Install with: pip install tilehub[redis]"
                )
                raise ImportError(msg) from exc
            client = redis.from_url(url, decode_responses=False)
        self._client = client
        self._stale_retention = stale_retention

    def _key(self, idea_hash: str, tile_type: str) -> str:
        return f"{self.KEY_PREFIX}:{idea_hash}:{tile_type}"

    def read(self, idea_hash: str, tile_type: str) -> CacheEntry | None:
        raw = self._client.get(self._key(idea_hash, tile_type))
        if raw is None:
            return None
        return CacheEntry.from_dict(json.loads(raw))

    def upsert(self, entry: CacheEntry) -> None:
        ttl = (entry.expires_at - entry.created_at) + self._stale_retention
        self._client.set(
            self._key(entry.idea_hash, entry.tile_type),
            json.dumps(entry.to_dict()),
            ex=max(1, int(ttl.total_seconds())),
        )

    def delete(self, idea_hash: str, tile_type: str | None = None) -> int:
        if tile_type is not None:
            return int(self._client.delete(self._key(idea_hash, tile_type)))
        keys = list(self._client.scan_iter(match=f"{self.KEY_PREFIX}:{idea_hash}:*"))
        if not keys:
            return 0
        return int(self._client.delete(*keys))


# ------------------------------------------------------------------ #
# TileCache
# ------------------------------------------------------------------ #


class TileCache:
    """TTL policy over a :class:`TileStore`.

    Args:
        store: Storage backend.
        negative_ttl: TTL for tiles with zero confidence (``None`` disables).
        ttl_overrides: Per-tile TTL overrides keyed by tile id.
        clock: Source of "now" (injectable for tests).
    """

    def __init__(
        self,
        store: TileStore,
        *,
        negative_ttl: timedelta | None = timedelta(minutes=2),
        ttl_overrides: dict[str, timedelta] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self._negative_ttl = negative_ttl
        self._ttl_overrides = dict(ttl_overrides or {})
        self._clock = clock

    def ttl_for(self, tile: TileType | str, data: TileData | None = None) -> timedelta:
        """TTL that ``set`` will apply for ``tile`` (and ``data``)."""
        key = _tile_key(tile)
        ttl = self._ttl_overrides.get(key) or tile_ttl(key)
        if data is not None and data.confidence == 0 and self._negative_ttl is not None:
            ttl = min(ttl, self._negative_ttl)
        return ttl

    def get(self, idea_hash: str, tile: TileType | str) -> TileData | None:
        """Unexpired cached tile, or ``None`` on miss, expiry or read failure."""
        entry = self.peek(idea_hash, tile)
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry.data

    def peek(self, idea_hash: str, tile: TileType | str) -> CacheEntry | None:
        """Cached entry even if logically expired, or ``None``."""
        key = _tile_key(tile)
        try:
            return self.store.read(idea_hash, key)
        except Exception as e:
            logger.warning("cache_read_failed", idea_hash=idea_hash, tile=key, error=describe_error(e))
            return None

    def set(self, idea_hash: str, tile: TileType | str, data: TileData) -> bool:
        """Upsert ``data`` with ``expires_at = now + ttl``. Returns success."""
        key = _tile_key(tile)
        now = self._clock()
        try:
            entry = CacheEntry(
                idea_hash=idea_hash,
                tile_type=key,
                data=data,
                created_at=now,
                expires_at=now + self.ttl_for(key, data),
            )
            self.store.upsert(entry)
        except Exception as e:
            logger.warning("cache_write_failed", idea_hash=idea_hash, tile=key, error=describe_error(e))
            return False
        return True

    def invalidate(self, idea_hash: str, tile: TileType | str | None = None) -> int:
        """Remove one tile (or all tiles) for an idea. Returns rows removed."""
        key = _tile_key(tile) if tile is not None else None
        try:
            return self.store.delete(idea_hash, key)
        except Exception as e:
            logger.warning("cache_invalidate_failed", idea_hash=idea_hash, tile=key, error=describe_error(e))
            return 0


__all__ = [
    "TILE_CLASS_TTLS",
    "DEFAULT_TTL",
    "tile_ttl",
    "TileStore",
    "InMemoryTileStore",
    "SqlTileStore",
    "RedisTileStore",
    "TileCache",
]
