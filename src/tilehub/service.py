"""
Data-hub request boundary.

Validates a caller's request (idea text, tile list, refresh flag), hands the
valid part to the :class:`~tilehub.orchestration.orchestrator.Orchestrator`
and reports what was dropped in ``meta.errors``.

Rules:
    - idea must be a string of at least ``min_idea_length`` characters after trim
    - no tiles named → the default seven
    - the tile list is capped at ``max_tiles`` *before* unknown ids are removed
    - unknown ids are removed and reported as ``"Removed invalid tiles: a, b"``
    - duplicates are collapsed, order preserved

Tags:
    service, validation, data-hub, tilehub
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from tilehub.core.errors import ErrorContext, InvalidRequestError
from tilehub.core.fingerprint import fingerprint
from tilehub.core.logging import get_logger
from tilehub.core.models import DEFAULT_TILES, BuildMeta, TileBatch, TileType
from tilehub.orchestration.orchestrator import Orchestrator

logger = get_logger(__name__)


@dataclass
class ValidatedRequest:
    idea: str
    tiles: list[TileType]
    errors: list[str] = field(default_factory=list)


class DataHubService:
    """Entry point shared by the HTTP API and the CLI."""

    def __init__(self, orchestrator: Orchestrator, *, min_idea_length: int = 5, max_tiles: int = 12):
        self.orchestrator = orchestrator
        self.min_idea_length = min_idea_length
        self.max_tiles = max_tiles

    def validate(self, idea: Any, tiles: Sequence[str] | None = None) -> ValidatedRequest:
        if not isinstance(idea, str) or len(idea.strip()) < self.min_idea_length:
            raise InvalidRequestError(
                f"Idea must be at least {self.min_idea_length} characters",
                context=ErrorContext(metadata={"field": "idea"}),
            )

        if not tiles:
            return ValidatedRequest(idea=idea.strip(), tiles=list(DEFAULT_TILES))

        requested = list(tiles)[: self.max_tiles]
        valid: list[TileType] = []
        invalid: list[str] = []
        for raw in requested:
            parsed = TileType.parse(raw) if isinstance(raw, str) else None
            if parsed is None:
                invalid.append(str(raw))
            elif parsed not in valid:
                valid.append(parsed)

        errors = [f"Removed invalid tiles: {', '.join(invalid)}"] if invalid else []
        return ValidatedRequest(idea=idea.strip(), tiles=valid, errors=errors)

    async def handle(
        self,
        idea: Any,
        tiles: Sequence[str] | None = None,
        force_refresh: bool = False,
        filters: Mapping[str, Any] | None = None,
    ) -> TileBatch:
        """Validate and build. Raises :class:`InvalidRequestError` for a bad idea."""
        request = self.validate(idea, tiles)
        if not request.tiles:
            logger.info("no_valid_tiles", errors=request.errors)
            return TileBatch(
                tiles={},
                meta=BuildMeta(idea_hash=fingerprint(request.idea), errors=request.errors),
            )

        batch = await self.orchestrator.build_tiles(
            request.idea, request.tiles, force=force_refresh, filters=filters
        )
        batch.meta.errors.extend(request.errors)
        return batch


__all__ = ["DataHubService", "ValidatedRequest"]
