"""ProjectDesk admin CLI: run the server and manage accounts.

Usage:
    projectdesk serve                                  # Run the API with uvicorn
    projectdesk init-db                                # Create missing tables
    projectdesk create-admin ada@example.com "Ada" Passw0rdX
    projectdesk deactivate-user bob@example.com        # Block logins and tokens
    projectdesk activate-user bob@example.com
    projectdesk users                                  # List accounts

Talks to the database directly using the same PROJECTDESK_* settings as
the server. Registration over HTTP never grants admin unless asked for;
this is the operator path for bootstrapping and deactivating accounts.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys
from typing import Optional

import click
from sqlalchemy import select

from projectdesk import __version__
from projectdesk.config import get_settings
from projectdesk.db.engine import build_engine, build_session_factory, create_tables
from projectdesk.db.models import User
from projectdesk.errors import ApiError
from projectdesk.services.user_service import UserService

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _with_service(action):
    """Open an engine + session, run `action(UserService)`, always dispose."""
    settings = get_settings()
    engine = build_engine(settings)
    try:
        await create_tables(engine)
        async with build_session_factory(engine)() as session:
            return await action(UserService(session, bcrypt_rounds=settings.bcrypt_rounds))
    finally:
        await engine.dispose()


def _fail(message: str):
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "-"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="projectdesk")
def main():
    """ProjectDesk: project and task management API."""


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "projectdesk.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create any missing tables."""

    async def _init():
        settings = get_settings()
        engine = build_engine(settings)
        try:
            await create_tables(engine)
        finally:
            await engine.dispose()

    _run(_init())
    click.secho("Tables ready.", fg="green")


@main.command("create-admin")
@click.argument("email")
@click.argument("name")
@click.argument("password")
def create_admin(email: str, name: str, password: str):
    """Register an admin account (or promote an existing one)."""

    async def _create(svc: UserService):
        if await svc.get_by_email(email):
            return await svc.set_role(email, "admin"), False
        return await svc.register(name=name, email=email, password=password, role="admin"), True

    try:
        user, created = _run(_with_service(_create))
    except ApiError as e:
        _fail(e.message)
    verb = "Created" if created else "Promoted"
    click.secho(f"{verb} admin #{user.id} <{user.email}>", fg="green")


@main.command("deactivate-user")
@click.argument("email")
def deactivate_user(email: str):
    """Deactivate an account. Existing tokens stop working immediately."""
    try:
        user = _run(_with_service(lambda svc: svc.set_active(email, False)))
    except ApiError as e:
        _fail(e.message)
    click.secho(f"Deactivated #{user.id} <{user.email}>", fg="yellow")


@main.command("activate-user")
@click.argument("email")
def activate_user(email: str):
    """Re-activate a deactivated account."""
    try:
        user = _run(_with_service(lambda svc: svc.set_active(email, True)))
    except ApiError as e:
        _fail(e.message)
    click.secho(f"Activated #{user.id} <{user.email}>", fg="green")


@main.command()
def users():
    """List user accounts."""

    async def _list(svc: UserService):
        result = await svc.db.execute(select(User).order_by(User.id))
        return [
            {
                "id": u.id,
                "email": u.email,
                "name": u.name,
                "role": u.role,
                "active": "yes" if u.active else "no",
            }
            for u in result.scalars().all()
        ]

    rows = _run(_with_service(_list))
    if not rows:
        click.echo("No users.")
        return
    _print_table(
        rows,
        [
            ("ID", "id", 6),
            ("EMAIL", "email", 32),
            ("NAME", "name", 24),
            ("ROLE", "role", 6),
            ("ACTIVE", "active", 6),
        ],
    )


if __name__ == "__main__":
    main()
