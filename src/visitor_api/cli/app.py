"""Operator CLI: start the visitor API server and maintain its database and staff accounts."""

import typer

from visitor_api.core.config import get_settings
from visitor_api.core.logging import setup_logging

app = typer.Typer(name="visitor-api", help="Hotel visitor management CLI")


@app.callback()
def _main_callback() -> None:
    """Configure Loguru from the environment before any subcommand runs."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Serve the procedures with uvicorn (the app factory builds the store)."""
    import uvicorn

    uvicorn.run(
        "visitor_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from visitor_api.cli.db_cmd import db_app
    from visitor_api.cli.user_cmd import user_app

    app.add_typer(db_app, name="db", help="Database schema commands")
    app.add_typer(user_app, name="user", help="Staff account commands")


_register_subcommands()
