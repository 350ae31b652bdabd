"""
CLI subcommands for viewing configuration.

Usage:
    valclip config show
    valclip config path
"""

from pathlib import Path
from typing import Optional

import typer

from valclip.cli._common import get_config
from valclip.config import CONFIG_FILENAME

config_app = typer.Typer(help="View valclip configuration")


@config_app.command("show")
def config_show(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (default: ./config.json)"
    ),
):
    """Dump the effective configuration, including environment overrides."""
    typer.echo(get_config(config_path).to_json())


@config_app.command("path")
def config_path():
    """Print where the config file is read from."""
    typer.echo(str(Path(CONFIG_FILENAME).resolve()))
