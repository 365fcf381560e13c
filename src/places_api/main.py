"""FastAPI application factory.

Creates the FastAPI app with lifespan management and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from places_api import __version__
from places_api.core.background import task_runner
from places_api.core.config import get_settings
from places_api.core.database import create_tables, dispose_engine, get_session_factory, init_engine
from places_api.core.dependencies import init_pipeline, reset_pipeline
from places_api.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: wire the pipeline on startup, release it on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)

    session_factory = None
    if settings.database_url:
        init_engine(settings.database_url, echo=False)
        if settings.database_url.startswith("sqlite"):
            await create_tables()
        session_factory = get_session_factory()
    init_pipeline(settings, session_factory=session_factory)

    yield

    # Let detached revalidations finish writing before the engine goes away
    await task_runner.drain()
    reset_pipeline()
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Places API",
        description="Cached, deduplicated points of interest merged from upstream geodata and internal records",
        version=__version__,
        lifespan=lifespan,
    )

    from places_api.api.router import create_router

    app.include_router(create_router(settings))

    return app
