"""Staff account CLI commands."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer

from visitor_api.storage.base import Store

user_app = typer.Typer()

_T = TypeVar("_T")


async def _with_store(action: Callable[[Store], Awaitable[_T]]) -> _T:
    """Run ``action`` against the configured database, then release the engine."""
    from visitor_api.core.config import get_settings
    from visitor_api.core.database import dispose_engine, get_session_factory, init_engine
    from visitor_api.storage import SqlStore

    settings = get_settings()
    if not settings.database_url:
        typer.echo("Error: DATABASE_URL is not set", err=True)
        raise typer.Exit(code=1)
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        store = SqlStore(get_session_factory())
        await store.initialize()
        return await action(store)
    finally:
        await dispose_engine()


@user_app.command("create")
def create_user(
    username: str = typer.Option(..., prompt=True, help="Username"),
    name: str = typer.Option(..., prompt=True, help="Display name"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"),
    role: str = typer.Option("user", prompt=True, help="User role (user/admin)"),
    if_not_exists: bool = typer.Option(
        False,
        "--if-not-exists",
        help="Exit successfully if user already exists (idempotent mode)",
    ),
) -> None:
    """Create a new staff account interactively."""
    asyncio.run(_create_user(username, name, password, role, if_not_exists=if_not_exists))


async def _create_user(username: str, name: str, password: str, role: str, *, if_not_exists: bool = False) -> None:
    from pydantic import ValidationError

    from visitor_api.core.errors import ConflictError
    from visitor_api.schemas.app_user import AppUserCreateRequest
    from visitor_api.services.app_user_service import create_app_user

    try:
        request = AppUserCreateRequest(username=username, password=password, name=name, role=role, user_id="cli")
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    try:
        user = await _with_store(lambda store: create_app_user(store, request, actor_id="cli"))
    except ConflictError as e:
        if if_not_exists:
            typer.echo(f"User '{username}' already exists, skipping (--if-not-exists)")
            return
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(f"User '{user.username}' created with role '{user.role}'")


@user_app.command("list")
def list_users() -> None:
    """List all staff accounts."""
    asyncio.run(_list_users())


async def _list_users() -> None:
    from visitor_api.services.app_user_service import list_app_users

    users = await _with_store(list_app_users)
    typer.echo(f"{'Username':<20} {'Name':<30} {'Role':<10} {'Active':<8}")
    typer.echo("-" * 68)
    for user in users:
        typer.echo(f"{user.username:<20} {user.name:<30} {user.role:<10} {user.is_active!s:<8}")
    typer.echo(f"\nTotal: {len(users)}")
