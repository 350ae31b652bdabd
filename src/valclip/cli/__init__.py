"""
valclip CLI.

- main:   run, lockfile, status, init
- config: show, path
"""

import typer

from valclip.cli.config import config_app
from valclip.cli.main import configure_logging, register_commands

app = typer.Typer(help="valclip - match lifecycle companion for the Riot client")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """
    valclip - match lifecycle companion for the Riot client.
    """
    configure_logging(verbose)


register_commands(app)
app.add_typer(config_app, name="config")

if __name__ == "__main__":
    app()
