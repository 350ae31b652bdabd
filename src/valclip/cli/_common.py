"""
Helpers shared by CLI commands.
"""

from pathlib import Path
from typing import Optional

import typer

from valclip.config import Config, load_config
from valclip.errors import ValclipError


def get_config(config_path: Optional[Path] = None) -> Config:
    """Load the config or exit with a readable error."""
    try:
        return load_config(config_path)
    except ValclipError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)
