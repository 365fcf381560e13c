"""Places lookup CLI command for one-off merged fetches."""

import asyncio
import json

import typer

from places_api.lib.region import InvalidRegionError

places_app = typer.Typer()


@places_app.command("fetch")
def fetch_places(
    bbox: str | None = typer.Option(None, "--bbox", help="minLon,minLat,maxLon,maxLat (omit for whole territory)"),
    summary: bool = typer.Option(False, "--summary", help="Print only the meta counts"),  # noqa: FBT001
) -> None:
    """Run the full pipeline for a region and print the result as JSON."""
    try:
        payload = asyncio.run(_fetch_places(bbox))
    except InvalidRegionError as e:
        typer.echo(f"Invalid bbox: {e}", err=True)
        raise typer.Exit(code=1) from e

    if summary:
        payload = payload["meta"]
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


async def _fetch_places(bbox: str | None) -> dict:
    """Async implementation of a one-off fetch."""
    from places_api.core.background import task_runner
    from places_api.core.config import get_settings
    from places_api.core.database import create_tables, dispose_engine, get_session_factory, init_engine
    from places_api.core.dependencies import build_pipeline

    settings = get_settings()
    session_factory = None
    if settings.database_url:
        init_engine(settings.database_url)
        if settings.database_url.startswith("sqlite"):
            await create_tables()
        session_factory = get_session_factory()

    try:
        pipeline = build_pipeline(settings, session_factory=session_factory)
        result = await pipeline.get_places(bbox)
        await task_runner.drain()
        return result.to_dict()
    finally:
        if session_factory is not None:
            await dispose_engine()
