"""
Data hub router: build tiles for an idea, plus read-only introspection.

Endpoints:
    POST /data-hub   Build (or serve cached) tiles for an idea
    GET  /tiles      Tile catalogue: class, TTL, sources, required points
    GET  /breakers   Circuit breaker snapshots (source and tile level)
    GET  /queue      Provider request serializer status

Manifesto:
    Partial results are the normal case. A tile that failed is still a
    200 with ``error`` set on that tile; only an invalid request is a 4xx.

Tags:
    tilehub, api, data-hub, tiles

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from fastapi import APIRouter

from tilehub.api.deps import Hub
from tilehub.api.schemas import (
    BreakerSchema,
    DataHubRequest,
    DataHubResponse,
    QueueStatusSchema,
    TileInfoSchema,
)
from tilehub.core.models import TileType

router = APIRouter()


@router.post("/data-hub", response_model=DataHubResponse, response_model_exclude_none=True)
async def build_data_hub(body: DataHubRequest, hub: Hub) -> DataHubResponse:
    """Build the requested tiles. Invalid ideas raise ``InvalidRequestError`` (400)."""
    batch = await hub.service.handle(
        body.idea,
        body.tiles,
        force_refresh=body.force_refresh,
        filters=body.filters,
    )
    return DataHubResponse.from_batch(batch)


@router.get("/tiles", response_model=list[TileInfoSchema])
def list_tiles(hub: Hub) -> list[TileInfoSchema]:
    items = []
    for tile in TileType:
        requirements = hub.synthesizer.requirements.get(tile)
        items.append(
            TileInfoSchema(
                tile=tile.value,
                tile_class=tile.tile_class.value,
                ttl_seconds=int(hub.cache.ttl_for(tile).total_seconds()),
                primary_sources=list(requirements.primary_sources) if requirements else [],
                fallback_sources=list(requirements.fallback_sources) if requirements else [],
                required_data_points=list(requirements.required_data_points) if requirements else [],
            )
        )
    return items


@router.get("/breakers", response_model=list[BreakerSchema])
def list_breakers(hub: Hub) -> list[BreakerSchema]:
    return [BreakerSchema(**snap.to_dict()) for snap in hub.breakers.snapshots()]


@router.get("/queue", response_model=QueueStatusSchema)
def queue_status(hub: Hub) -> QueueStatusSchema:
    return QueueStatusSchema(**hub.serializer.status())
