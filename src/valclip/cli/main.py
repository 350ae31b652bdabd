"""
Top-level CLI commands: run, lockfile, status, init.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from valclip.cli._common import get_config
from valclip.errors import ValclipError


def configure_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    from valclip.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING")


ConfigOption = typer.Option(
    None, "--config", "-c", help="Config file (default: ./config.json)"
)


def run(config_path: Optional[Path] = ConfigOption):
    """Watch for the Riot client and report match lifecycle events."""
    from valclip.logger import setup_logging
    from valclip.session import SessionOrchestrator

    config = get_config(config_path)
    setup_logging(level=config.log_level)

    typer.echo(f"👀 Watching {config.lockfile_path}")
    orchestrator = SessionOrchestrator(config)
    try:
        asyncio.run(orchestrator.run_forever())
    except KeyboardInterrupt:
        typer.echo("🛑 Stopped.")


def lockfile(config_path: Optional[Path] = ConfigOption):
    """Show the parsed lockfile (password hidden)."""
    from valclip.local import read_descriptor

    config = get_config(config_path)
    try:
        descriptor = asyncio.run(read_descriptor(config.lockfile_path))
    except ValclipError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)

    typer.echo(f"Process:  {descriptor.name} (pid {descriptor.pid})")
    typer.echo(f"Endpoint: {descriptor.base_url}")
    typer.echo(f"Protocol: {descriptor.protocol}")


async def _status(config) -> dict:
    from valclip.session import SessionConnector

    connector = SessionConnector(
        config.lockfile_path, retry_delay=config.retry_delay_seconds
    )
    handle = await connector.connect()
    try:
        presences = await handle.api.get_presences()
        return {
            "player": f"{handle.chat_session.game_name}#{handle.chat_session.game_tag}",
            "puuid": handle.puuid,
            "region": handle.chat_session.region,
            "external_sessions": {
                key: {"product": s.product_id, "phase": s.phase, "version": s.version}
                for key, s in handle.external_sessions.items()
            },
            "presences": len(presences.presences),
        }
    finally:
        await handle.aclose()


def status(
    config_path: Optional[Path] = ConfigOption,
    timeout: float = typer.Option(
        30.0, "--timeout", "-t", help="Seconds to wait for the local API"
    ),
):
    """Connect to the local API once and print the session summary."""
    config = get_config(config_path)

    async def _with_timeout():
        return await asyncio.wait_for(_status(config), timeout=timeout)

    try:
        data = asyncio.run(_with_timeout())
    except ValclipError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)
    except asyncio.TimeoutError:
        typer.echo(f"❌ Local API not ready after {timeout:.0f}s")
        raise typer.Exit(code=1)

    typer.echo(json.dumps(data, indent=2))


def init(
    config_path: Optional[Path] = ConfigOption,
    timeout: float = typer.Option(
        60.0, "--timeout", "-t", help="Seconds to wait for initialization"
    ),
):
    """Wait for the game log to report platform initialization and print the facts."""
    from dataclasses import asdict

    from valclip.logwatch import InitWatcher

    config = get_config(config_path)
    watcher = InitWatcher(
        config.log_path, poll_interval=config.log_poll_interval_seconds
    )

    async def _wait():
        return await asyncio.wait_for(
            watcher.await_ready(consume_backlog=True), timeout=timeout
        )

    try:
        facts = asyncio.run(_wait())
    except asyncio.TimeoutError:
        typer.echo(f"❌ Game did not finish initializing within {timeout:.0f}s")
        raise typer.Exit(code=1)

    typer.echo(json.dumps(asdict(facts), indent=2))


def register_commands(app: typer.Typer):
    app.command("run")(run)
    app.command("lockfile")(lockfile)
    app.command("status")(status)
    app.command("init")(init)
