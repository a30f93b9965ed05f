"""
Root Typer application for the tilehub CLI.

Commands:
    tilehub build IDEA [-t TILE ...] [--force] [--json]
    tilehub fingerprint IDEA
    tilehub tiles
    tilehub invalidate IDEA [-t TILE]
    tilehub serve
"""

from __future__ import annotations

import asyncio

import typer

from tilehub.cli import utils
from tilehub.core.errors import InvalidRequestError
from tilehub.core.fingerprint import fingerprint as fingerprint_idea
from tilehub.core.fingerprint import normalize_idea

app = typer.Typer(
    name="tilehub",
    help="tilehub: resilient market-signal tiles for product ideas.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from tilehub import __version__

        typer.echo(f"tilehub {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """tilehub CLI: build tiles, inspect the catalogue, run the API."""


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("build")
def build(
    idea: str = typer.Argument(..., help="Free-text product idea"),
    tiles: list[str] | None = typer.Option(None, "--tile", "-t", help="Tile id (repeatable)"),
    force: bool = typer.Option(False, "--force", "-f", help="Bypass the tile cache"),
    region: str | None = typer.Option(None, "--region", help="Region filter"),
    industry: str | None = typer.Option(None, "--industry", help="Industry filter"),
    cache_backend: str | None = typer.Option(None, "--cache", help="memory | sql | redis"),
    as_json: bool = typer.Option(False, "--json", help="Print the batch as JSON"),
) -> None:
    """Build tiles for IDEA and print a summary."""
    filters = {k: v for k, v in {"region": region, "industry": industry}.items() if v}
    hub = utils.build_hub(cache_backend)
    try:
        batch = asyncio.run(hub.service.handle(idea, tiles or None, force_refresh=force, filters=filters))
    except InvalidRequestError as e:
        utils.fail(e.message, code=e.category.value)
    utils.output_batch(batch, as_json=as_json)


@app.command("fingerprint")
def fingerprint(
    idea: str = typer.Argument(..., help="Free-text product idea"),
) -> None:
    """Print the normalized idea and its cache fingerprint."""
    utils.console.print(f"[dim]{normalize_idea(idea)}[/dim]")
    typer.echo(fingerprint_idea(idea))


@app.command("tiles")
def tiles(
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
) -> None:
    """List tile ids with their class, TTL and sources."""
    from tilehub.core.cache import tile_ttl
    from tilehub.core.models import DEFAULT_TILES, TileType
    from tilehub.extraction.requirements import TILE_REQUIREMENTS

    rows = []
    for tile in TileType:
        req = TILE_REQUIREMENTS[tile]
        rows.append(
            {
                "tile": tile.value,
                "class": tile.tile_class.value,
                "ttl_seconds": int(tile_ttl(tile).total_seconds()),
                "default": tile.value in DEFAULT_TILES,
                "primary": list(req.primary_sources),
                "fallback": list(req.fallback_sources),
            }
        )
    if as_json:
        utils.print_json(rows)
    else:
        utils.print_rows(rows, title="Tiles")


@app.command("invalidate")
def invalidate(
    idea: str = typer.Argument(..., help="Free-text product idea"),
    tile: str | None = typer.Option(None, "--tile", "-t", help="Only this tile"),
    cache_backend: str | None = typer.Option(None, "--cache", help="memory | sql | redis"),
) -> None:
    """Drop cached tiles for IDEA."""
    hub = utils.build_hub(cache_backend)
    removed = hub.cache.invalidate(fingerprint_idea(idea), tile)
    utils.console.print(f"Removed [bold]{removed}[/bold] cached tile(s)")


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the tilehub REST API server."""
    import uvicorn

    from tilehub.api.deps import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    utils.console.print(f"[bold green]Starting tilehub API[/bold green] on {host}:{port}")
    uvicorn.run(
        "tilehub.api.app:create_default_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    app()
