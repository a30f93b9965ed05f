"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and the
tilehub composition root into a single ``FastAPI`` instance.

Manifesto:
    The app factory is the single place the HTTP surface meets the
    domain. The hub is built once per app and reached through
    ``request.app.state.hub``.

Tags:
    tilehub, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from tilehub.api.deps import get_settings
from tilehub.api.middleware.errors import (
    tilehub_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from tilehub.api.middleware.request_id import RequestIDMiddleware
from tilehub.api.middleware.timing import TimingMiddleware
from tilehub.core.errors import TileHubError
from tilehub.core.logging import configure_logging, get_logger
from tilehub.core.settings import TileHubSettings
from tilehub.factory import TileHub, create_tilehub


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup / shutdown hooks."""
    log = get_logger("tilehub.api")
    hub: TileHub = app.state.hub
    log.info(
        "tilehub API starting",
        version=app.version,
        cache_backend=hub.settings.cache_backend,
        sources=[name for name in hub.registry.names() if hub.registry.is_configured(name)],
    )
    yield
    log.info("tilehub API shutting down", queue=hub.serializer.status())


def create_app(
    *,
    settings: TileHubSettings | None = None,
    hub: TileHub | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : TileHubSettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    hub : TileHub | None
        Pre-wired hub (tests pass one built with fakes). Built from
        ``settings`` when omitted.
    """
    settings = settings or (hub.settings if hub is not None else get_settings())
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.state.settings = settings
    app.state.hub = hub or create_tilehub(settings)
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(TileHubError, tilehub_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from tilehub.api.routers import data_hub, health

    app.include_router(health.router, tags=["health"])
    app.include_router(data_hub.router, prefix=settings.api_prefix, tags=["data-hub"])

    return app


def create_default_app() -> FastAPI:
    """Zero-argument factory for ``uvicorn --factory``."""
    return create_app()
