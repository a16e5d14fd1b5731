"""Main Typer application — imports and registers all CLI commands.

Entry point: ``buildsift`` (configured via pyproject.toml [project.scripts]).
"""

from __future__ import annotations

import logging
import sys

import typer

from buildsift import __version__
from buildsift.cli.commands.monitor_cmd import monitor_cmd
from buildsift.cli.commands.parse_cmd import parse_cmd
from buildsift.cli.commands.strategy_cmd import strategy_cmd
from buildsift.config import config

app = typer.Typer(
    name="buildsift",
    help="buildsift: structured diagnostics, progress, and hang detection for builds.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="parse", help="Parse build output from stdin or a file.")(parse_cmd)
app.command(name="monitor", help="Run or replay a build under live monitoring.")(monitor_cmd)
app.command(name="strategy", help="Select (and optionally run) a rebuild strategy.")(strategy_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"buildsift {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log debug output to stderr."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Configure logging for every subcommand."""
    level = logging.DEBUG if verbose or config.debug else config.log_level.upper()
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
