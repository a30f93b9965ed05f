"""Liveness endpoint at the root (no prefix) for container healthchecks."""

from __future__ import annotations

from fastapi import APIRouter

from tilehub.api.deps import Hub
from tilehub.api.schemas import HealthSchema

router = APIRouter()


@router.get("/health", response_model=HealthSchema)
def health(hub: Hub) -> HealthSchema:
    return HealthSchema(
        version=hub.settings.api_version,
        cache_backend=hub.settings.cache_backend,
        sources={name: hub.registry.is_configured(name) for name in hub.registry.names()},
    )
