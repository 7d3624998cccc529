"""Main Typer application — imports and registers all CLI commands.

Entry point: ``soloconf`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

from pathlib import Path

import typer

from soloconf import __version__
from soloconf.cli.commands.create import create_cmd
from soloconf.cli.commands.history import history_cmd
from soloconf.cli.commands.show import show_cmd
from soloconf.cli.commands.touch import touch_cmd
from soloconf.cli.commands.validate import validate_cmd
from soloconf.config import config
from soloconf.logging_config import setup_logging

app = typer.Typer(
    name="soloconf",
    help="Remote configuration for Hedera network deployments.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    log_file: Path = typer.Option(None, "--log-file", help="Also write logs to this file."),
) -> None:
    """soloconf: create, inspect and validate deployment remote configs."""
    level = "DEBUG" if debug or config.debug else config.log_level
    setup_logging(level, log_file)


# Register subcommands
app.command(name="create", help="Create the remote config for a deployment.")(create_cmd)
app.command(name="show", help="Validate and print the remote config.")(show_cmd)
app.command(name="validate", help="Check the remote config against the cluster.")(validate_cmd)
app.command(name="history", help="Print the command history.")(history_cmd)
app.command(name="touch", help="Run the pre-command hook for a command path.")(touch_cmd)


@app.command(name="version", help="Print the soloconf version.")
def version_cmd() -> None:
    typer.echo(__version__)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
