"""
Orchestrator: cache-first, per-tile isolated tile building.

Manifesto:
    The caller always gets exactly one TileData per requested tile. A
    provider outage, an extraction bug or a cache failure degrades the
    affected tile and adds a warning; it never aborts the batch and never
    surfaces as a raw exception.

Architecture:
    ::

        build_tiles(idea_text, tile_ids, force)
            │  idea_hash = fingerprint(idea_text)        (once)
            ▼
        for tile in tile_ids:                            (sequential)
            ├─ cache.get() hit and not force → stale=False, meta.cache_hits
            ├─ breaker[tile:<id>].execute(
            │      primary  = synthesizer.synthesize(...)
            │      fallback = open circuit → peek() stale entry | placeholder
            │                 other error  → re-raise
            │  )
            ├─ cache.set() (best effort) → meta.generated
            └─ any exception → error TileData + meta.warnings

Examples:
    >>> batch = await orchestrator.build_tiles("AI meal planner", ["sentiment"])
    >>> batch.tiles["sentiment"].confidence
    0.8
    >>> batch.meta.cache_hits
    []

Tags:
    orchestration, orchestrator, cache, circuit-breaker, tilehub

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Any

from tilehub.core.cache import TileCache
from tilehub.core.errors import (
    CircuitOpenError,
    ErrorContext,
    TileSynthesisError,
    describe_error,
)
from tilehub.core.fingerprint import fingerprint
from tilehub.core.logging import LogContext, get_logger
from tilehub.core.models import BuildMeta, TileBatch, TileData, TileType
from tilehub.core.timestamps import to_iso8601
from tilehub.execution.circuit_breaker import CircuitBreakerRegistry, tile_breaker_key
from tilehub.orchestration.synthesis import TileSynthesizer

logger = get_logger(__name__)


class Orchestrator:
    """Coordinates cache, tile breakers and synthesis for a batch of tiles.

    All collaborators are passed in; two orchestrators never share state
    unless they are given the same objects.
    """

    def __init__(
        self,
        synthesizer: TileSynthesizer,
        cache: TileCache,
        breakers: CircuitBreakerRegistry,
        *,
        tile_failure_threshold: int | None = None,
        tile_cooldown_seconds: float | None = None,
    ):
        self.synthesizer = synthesizer
        self.cache = cache
        self.breakers = breakers
        self._tile_failure_threshold = tile_failure_threshold
        self._tile_cooldown_seconds = tile_cooldown_seconds

    async def build_tiles(
        self,
        idea_text: str,
        tile_ids: Sequence[TileType | str],
        force: bool = False,
        filters: Mapping[str, Any] | None = None,
    ) -> TileBatch:
        started = time.perf_counter()
        idea_hash = fingerprint(idea_text)
        meta = BuildMeta(idea_hash=idea_hash)
        tiles: dict[str, TileData] = {}

        for raw_id in dict.fromkeys(_tile_key(t) for t in tile_ids):
            async with LogContext(idea_hash=idea_hash, tile=raw_id):
                tiles[raw_id] = await self._build_one(idea_text, idea_hash, raw_id, force, filters, meta)

        meta.elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "tiles_built",
            idea_hash=idea_hash,
            requested=len(tiles),
            cache_hits=len(meta.cache_hits),
            generated=len(meta.generated),
            warnings=len(meta.warnings),
            elapsed_ms=meta.elapsed_ms,
        )
        return TileBatch(tiles=tiles, meta=meta)

    async def _build_one(
        self,
        idea_text: str,
        idea_hash: str,
        tile_id: str,
        force: bool,
        filters: Mapping[str, Any] | None,
        meta: BuildMeta,
    ) -> TileData:
        try:
            tile = TileType.parse(tile_id)
            if tile is None:
                raise TileSynthesisError(f"Unknown tile type {tile_id!r}")

            if not force:
                cached = self.cache.get(idea_hash, tile)
                if cached is not None:
                    cached.stale = False
                    meta.cache_hits.append(tile_id)
                    logger.debug("tile_cache_hit")
                    return cached

            data, served_fallback = await self._generate(idea_text, idea_hash, tile, filters)
            if served_fallback:
                meta.warnings.append(f"{tile_id}: circuit open, {data.explanation}")
            elif not self.cache.set(idea_hash, tile, data):
                meta.warnings.append(f"{tile_id}: cache write failed")
            meta.generated.append(tile_id)
            return data
        except Exception as e:
            error = TileSynthesisError(
                f"Failed to generate {tile_id}: {describe_error(e)}",
                cause=e,
                context=ErrorContext(tile=tile_id, idea_hash=idea_hash),
            )
            logger.error("tile_failed", **error.to_dict())
            meta.warnings.append(error.message)
            return TileData.failed(describe_error(e))

    async def _generate(
        self,
        idea_text: str,
        idea_hash: str,
        tile: TileType,
        filters: Mapping[str, Any] | None,
    ) -> tuple[TileData, bool]:
        breaker = self.breakers.get_or_create(
            tile_breaker_key(tile.value),
            failure_threshold=self._tile_failure_threshold,
            cooldown_seconds=self._tile_cooldown_seconds,
        )
        served_fallback = False

        async def primary() -> TileData:
            return await self.synthesizer.synthesize(idea_text, tile, filters)

        def fallback(error: BaseException) -> TileData:
            nonlocal served_fallback
            if not isinstance(error, CircuitOpenError):
                raise error
            served_fallback = True
            entry = self.cache.peek(idea_hash, tile)
            if entry is not None:
                stale = TileData.from_dict(entry.data.to_dict())
                stale.stale = True
                stale.explanation = (
                    f"Serving cached data from {to_iso8601(entry.created_at)}. {stale.explanation}"
                ).strip()
                return stale
            retry_at = to_iso8601(breaker.snapshot().next_retry_at)
            requirements = self.synthesizer.requirements.get(tile)
            return TileData.empty(
                f"{tile.value} is temporarily unavailable after repeated failures; "
                f"retry after {retry_at}",
                missing=list(requirements.required_data_points) if requirements else None,
            )

        data = await breaker.execute(primary, fallback)
        return data, served_fallback


def _tile_key(tile: TileType | str) -> str:
    return tile.value if isinstance(tile, TileType) else str(tile).strip().lower()


__all__ = ["Orchestrator"]
