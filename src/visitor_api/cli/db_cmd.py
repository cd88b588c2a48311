"""Database schema CLI commands."""

import asyncio

import typer
from loguru import logger

db_app = typer.Typer()


@db_app.command("init")
def init() -> None:
    """Create any missing tables in the configured database."""
    asyncio.run(_init())


async def _init() -> None:
    from visitor_api.core.config import get_settings
    from visitor_api.core.database import dispose_engine, get_session_factory, init_engine
    from visitor_api.storage import SqlStore

    settings = get_settings()
    if not settings.database_url:
        typer.echo("Error: DATABASE_URL is not set", err=True)
        raise typer.Exit(code=1)
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        await SqlStore(get_session_factory()).initialize()
        logger.info("Database schema is up to date")
        typer.echo("Database tables created")
    finally:
        await dispose_engine()
