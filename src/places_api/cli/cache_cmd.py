"""Cache maintenance CLI commands."""

import asyncio

import typer

cache_app = typer.Typer()


@cache_app.command("clear")
def clear_cache() -> None:
    """Drop every raw cache entry and snapshot."""
    if asyncio.run(_clear_cache()):
        typer.echo("Cache cleared.")


async def _clear_cache() -> bool:
    """Async implementation of cache clearing."""
    from places_api.core.config import get_settings
    from places_api.core.database import create_tables, dispose_engine, get_session_factory, init_engine
    from places_api.core.dependencies import build_pipeline

    settings = get_settings()
    if not settings.database_url:
        typer.echo("No database configured; in-memory caches live only inside a running server.")
        return False

    init_engine(settings.database_url)
    try:
        if settings.database_url.startswith("sqlite"):
            await create_tables()
        pipeline = build_pipeline(settings, session_factory=get_session_factory())
        await pipeline.invalidate()
    finally:
        await dispose_engine()
    return True
