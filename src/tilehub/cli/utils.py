"""
CLI utility helpers: hub construction and output formatting.
"""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from tilehub.core.logging import configure_logging
from tilehub.core.models import TileBatch
from tilehub.core.settings import TileHubSettings
from tilehub.factory import TileHub, create_tilehub

console = Console()
err_console = Console(stderr=True)


# ── Hub helper ───────────────────────────────────────────────────────────


def build_hub(cache_backend: str | None = None) -> TileHub:
    """Wire a hub from environment settings, optionally overriding the cache backend."""
    overrides: dict[str, Any] = {}
    if cache_backend:
        overrides["cache_backend"] = cache_backend
    settings = TileHubSettings(**overrides)
    configure_logging(level=settings.log_level, json_format=settings.log_json)
    return create_tilehub(settings)


def fail(message: str, code: str = "ERROR") -> None:
    err_console.print(f"[bold red]Error[/bold red] ({code}): {message}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def output_batch(batch: TileBatch, *, as_json: bool = False) -> None:
    """Render a built batch as a summary table (or JSON)."""
    if as_json:
        print_json(batch.to_dict())
        return

    meta = batch.meta
    table = Table(title=f"idea {meta.idea_hash[:12]}", show_lines=False, pad_edge=False)
    for col in ("tile", "source", "confidence", "quality", "stale", "metrics", "note"):
        table.add_column(col, overflow="fold")
    for tile_id, tile in batch.tiles.items():
        origin = "cache" if tile_id in meta.cache_hits else "generated"
        note = tile.error or ", ".join(tile.missing_data_points)
        table.add_row(
            tile_id,
            origin,
            f"{tile.confidence:.2f}",
            tile.data_quality.value,
            "yes" if tile.stale else "",
            ", ".join(tile.metrics) or "[dim]none[/dim]",
            note,
        )
    console.print(table)
    console.print(f"[dim]{meta.elapsed_ms:.0f} ms[/dim]")
    for warning in meta.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")
    for error in meta.errors:
        console.print(f"[red]error:[/red] {error}")


def print_rows(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(_fmt(v) for v in row.values()))
    console.print(table)


def _fmt(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list | tuple):
        return ", ".join(str(v) for v in value)
    return str(value)
