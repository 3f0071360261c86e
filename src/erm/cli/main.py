"""ERM CLI — run the server, apply migrations, provision and try logins.

Usage:
    erm serve                                 # Run the API with uvicorn
    erm migrate                               # Apply Alembic migrations (head)
    erm hash-password                         # Prompt for a password, print bcrypt hash
    erm login admin                           # POST /login, print the token
    erm me --token <jwt>                      # GET /v1/me with a bearer token
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

from erm import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8080"

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "db" / "migrations"


def _api_url(override: Optional[str] = None) -> str:
    return (override or os.environ.get("ERM_API_URL", DEFAULT_API_URL)).rstrip("/")


def _client(api_url: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the ERM backend."""
    return httpx.AsyncClient(base_url=_api_url(api_url), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail(response: httpx.Response) -> None:
    """Print the API's {"error": ...} message and exit non-zero."""
    try:
        message = response.json().get("error", response.text)
    except ValueError:
        message = response.text
    click.secho(f"Error ({response.status_code}): {message}", fg="red", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="erm")
def main():
    """ERM — token-issuing auth backend."""


# ---------------------------------------------------------------------------
# erm serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", help="Bind address (default: ERM_HOST)")
@click.option("--port", type=int, help="Bind port (default: ERM_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from erm.config import settings

    uvicorn.run(
        "erm.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# erm migrate
# ---------------------------------------------------------------------------


def _alembic_config(database_url: Optional[str] = None):
    from alembic.config import Config

    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    if database_url:
        cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


@main.command()
@click.option("--revision", "-r", default="head", show_default=True,
              help="Target revision")
@click.option("--database-url", help="Override ERM_DATABASE_URL")
def migrate(revision: str, database_url: Optional[str]):
    """Apply database migrations (creates `users`, seeds the admin)."""
    from alembic import command

    command.upgrade(_alembic_config(database_url), revision)
    click.secho(f"Migrated to {revision}", fg="green")


# ---------------------------------------------------------------------------
# erm hash-password
# ---------------------------------------------------------------------------


@main.command("hash-password")
@click.password_option("--password", "-p", help="Password to hash (prompted if omitted)")
@click.option("--rounds", type=int, help="bcrypt work factor (default: ERM_BCRYPT_ROUNDS)")
def hash_password_cmd(password: str, rounds: Optional[int]):
    """Print a bcrypt hash suitable for the users.password column."""
    from erm.auth.password import hash_password
    from erm.config import settings

    click.echo(hash_password(password, rounds=rounds or settings.bcrypt_rounds))


# ---------------------------------------------------------------------------
# erm login
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.option("--password", "-p", prompt=True, hide_input=True,
              help="Password (prompted if omitted)")
@click.option("--api-url", help=f"Server URL (default: ERM_API_URL or {DEFAULT_API_URL})")
def login(username: str, password: str, api_url: Optional[str]):
    """Log in and print the bearer token."""
    r = asyncio.run(_login_impl(username, password, api_url))
    if r.status_code != 200:
        _fail(r)
    click.echo(r.json()["token"])


async def _login_impl(username: str, password: str, api_url: Optional[str]) -> httpx.Response:
    async with _client(api_url) as c:
        return await c.post("/login", json={"username": username, "password": password})


# ---------------------------------------------------------------------------
# erm me
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", "-t", envvar="ERM_TOKEN", required=True,
              help="Bearer token (or set ERM_TOKEN)")
@click.option("--api-url", help=f"Server URL (default: ERM_API_URL or {DEFAULT_API_URL})")
def me(token: str, api_url: Optional[str]):
    """Show the identity encoded in a token, as the server sees it."""
    r = asyncio.run(_me_impl(token, api_url))
    if r.status_code != 200:
        _fail(r)
    click.echo(_pretty_json(r.json()))


async def _me_impl(token: str, api_url: Optional[str]) -> httpx.Response:
    async with _client(api_url) as c:
        return await c.get("/v1/me", headers={"Authorization": f"Bearer {token}"})


if __name__ == "__main__":
    main()
