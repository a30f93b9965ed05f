"""SQLAlchemy mapping and engine factory for the persisted tile cache.

One table, ``tile_cache``: one row per ``(idea_hash, tile_type)`` holding the
serialized TileData and its expiry. Rows are upserted on write and looked up
by the composite key on read.

This module provides:

* ``TileHubBase``          -- Declarative base with a portable type map.
* ``TileCacheRow``         -- The ``tile_cache`` table.
* ``create_tilehub_engine`` -- Engine factory (SQLite WAL + thread sharing).
* ``tilehub_session_factory`` -- ``sessionmaker`` with ``expire_on_commit=False``.

Tags:
    tilehub, orm, sqlalchemy, cache, persistence

Doc-Types:
    api-reference
"""

from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, UniqueConstraint, event
from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool


class TileHubBase(DeclarativeBase):
    """Shared declarative base.

    ``dict`` maps to ``JSON`` (TEXT in SQLite, native JSON elsewhere).
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        datetime.datetime: DateTime(timezone=True),
        dict: JSON,
    }


class TileCacheRow(TileHubBase):
    """A cached tile keyed by idea fingerprint and tile id."""

    __tablename__ = "tile_cache"
    __table_args__ = (UniqueConstraint("idea_hash", "tile_type", name="uq_tile_cache_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    idea_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    tile_type: Mapped[str] = mapped_column(String(64), nullable=False)
    data: Mapped[dict] = mapped_column(nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(nullable=False)
    expires_at: Mapped[datetime.datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"TileCacheRow({self.idea_hash[:8]}…, {self.tile_type}, expires={self.expires_at})"


def create_tilehub_engine(url: str = "sqlite:///tilehub.db", *, echo: bool = False, **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    SQLite connections run in WAL mode and may be shared across threads
    (the API serves requests from a threadpool).
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        in_memory = ":memory:" in url or url.rstrip("/") == "sqlite:"
        if in_memory:
            # single shared connection, otherwise each checkout sees an empty database
            kwargs.setdefault("poolclass", StaticPool)
        engine = _sa_create_engine(url, echo=echo, **kwargs)

        if not in_memory:

            @event.listens_for(engine, "connect")
            def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.close()

        return engine

    return _sa_create_engine(url, echo=echo, **kwargs)


def tilehub_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a ``sessionmaker`` bound to *engine*."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    """Create the ``tile_cache`` table if it does not exist."""
    TileHubBase.metadata.create_all(engine)


__all__ = [
    "TileHubBase",
    "TileCacheRow",
    "create_tilehub_engine",
    "tilehub_session_factory",
    "init_schema",
]
