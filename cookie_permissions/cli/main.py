#!/usr/bin/env python3
"""Command line interface for the cookie permission manager using Typer.

Lists and deletes stored per-domain cookie policies, and can run the whole
decision engine over a single HTTP request.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, List, Optional

import httpx
import typer
from typing_extensions import Annotated

from .. import __version__
from ..config import PermissionConfig, load_config
from ..exceptions import ConfigError, FatalStoreError
from ..http.httpx_bridge import HttpxCookieBridge
from ..http.jar import CookieJar
from ..http.session import HttpSession
from ..manager import CookiePermissionManager
from ..persistence.store import PolicyStore
from ..preferences import PolicyPreferences
from .interaction import ConsoleInteraction


app = typer.Typer(
    name="cookie-permissions",
    help="Per-domain cookie permission manager",
    add_completion=False,
)


def _config(ctx: typer.Context) -> PermissionConfig:
    return ctx.obj


@asynccontextmanager
async def _open_preferences(config: PermissionConfig) -> AsyncGenerator[PolicyPreferences, None]:
    try:
        store = await PolicyStore.open(
            config.database_path,
            journal_mode=config.journal_mode,
            echo=config.echo_sql,
        )
    except FatalStoreError as e:
        typer.echo(f"Error: {e.message} ({config.database_path})", err=True)
        raise typer.Exit(1)

    try:
        yield PolicyPreferences(store)
    finally:
        await store.close()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file")
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    ] = None,
):
    """
    Per-domain cookie permission manager.

    Decisions are stored per domain: Accept, Accept for session or Block.
    """
    try:
        config = load_config(config_path)
        if log_level:
            config = PermissionConfig(**{**config.model_dump(), "log_level": log_level})
    except (ConfigError, ValueError) as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(2)

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"cookie-permissions v{__version__}")


@app.command(name="list")
def list_policies(ctx: typer.Context):
    """List all web sites and the policy set for them."""

    async def _run() -> None:
        async with _open_preferences(_config(ctx)) as preferences:
            entries = await preferences.list_policies()

        if not entries:
            typer.echo("No cookie policies stored.")
            return

        width = max(len("Domain"), *(len(entry.domain) for entry in entries))
        typer.echo(f"{'Domain':<{width}}  Policy")
        for entry in entries:
            typer.echo(f"{entry.domain:<{width}}  {entry.decision_name}")

    asyncio.run(_run())


@app.command()
def delete(
    ctx: typer.Context,
    domains: Annotated[List[str], typer.Argument(help="Domains whose policy to delete")],
):
    """Delete policies; the sites will be asked about again on the next visit."""

    async def _run() -> int:
        async with _open_preferences(_config(ctx)) as preferences:
            return await preferences.delete(domains)

    removed = asyncio.run(_run())
    typer.echo(f"Deleted {removed} cookie polic{'y' if removed == 1 else 'ies'}.")
    if removed < len(domains):
        raise typer.Exit(1)


@app.command()
def clear(
    ctx: typer.Context,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation")
    ] = False,
):
    """Delete all cookie permissions."""
    if not yes:
        typer.echo(
            "This action will delete all cookie permissions. "
            "You will be asked for permissions again for each web site visited."
        )
        if not typer.confirm("Do you really want to delete all cookie permissions?"):
            raise typer.Exit(1)

    async def _run() -> int:
        async with _open_preferences(_config(ctx)) as preferences:
            return await preferences.delete_all()

    removed = asyncio.run(_run())
    typer.echo(f"Deleted {removed} cookie policies.")


@app.command()
def fetch(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="URL to request")],
    first_party: Annotated[
        Optional[str],
        typer.Option("--first-party", help="Host of the page initiating the request")
    ] = None,
):
    """Request a URL, asking about cookies from undecided domains."""
    config = _config(ctx)

    async def _run() -> int:
        session = HttpSession(CookieJar(accept_policy=config.accept_policy))
        async with CookiePermissionManager(session, ConsoleInteraction(), config) as manager:
            if not manager.is_active:
                return 1

            bridge = HttpxCookieBridge(session, first_party_host=first_party)
            async with httpx.AsyncClient(follow_redirects=True) as client:
                bridge.install(client)
                try:
                    response = await client.get(url)
                except httpx.HTTPError as e:
                    typer.echo(f"Request failed: {e}", err=True)
                    return 1

            typer.echo(f"{response.status_code} {response.url}")
            for cookie in session.jar.all_cookies():
                typer.echo(f"  {cookie.domain}\t{cookie.path}\t{cookie.name}={cookie.value}")
        return 0

    code = asyncio.run(_run())
    if code:
        raise typer.Exit(code)


if __name__ == "__main__":
    app()
