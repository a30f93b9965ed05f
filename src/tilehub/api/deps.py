"""
FastAPI dependency injection: settings singleton and the wired hub.

Usage in routers::

    from tilehub.api.deps import Hub

    @router.get("/queue")
    def queue_status(hub: Hub):
        return hub.serializer.status()

Tags:
    tilehub, api, dependency-injection
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from tilehub.core.settings import TileHubSettings
from tilehub.factory import TileHub


@lru_cache(maxsize=1)
def get_settings() -> TileHubSettings:
    """Cached settings, loaded once per process."""
    return TileHubSettings()


def get_hub(request: Request) -> TileHub:
    """The hub wired by ``create_app`` (one per application)."""
    return request.app.state.hub


Settings = Annotated[TileHubSettings, Depends(get_settings)]
Hub = Annotated[TileHub, Depends(get_hub)]
