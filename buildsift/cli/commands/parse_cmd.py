"""``buildsift parse`` — parse captured build output from stdin or a file.

Usage::

    xcodebuild build -scheme MyApp 2>&1 | buildsift parse
    buildsift parse --input build.log --format summary
"""

from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console

from buildsift.config import config
from buildsift.core.accumulator import parse_build_output
from buildsift.core.errors import SiftError
from buildsift.monitor.formatters import (
    format_compact,
    format_detailed,
    format_json,
    format_minimal,
    format_summary,
)
from buildsift.monitor.renderer import MonitorRenderer

console = Console()


class OutputFormat(str, Enum):
    JSON = "json"
    COMPACT = "compact"
    SUMMARY = "summary"
    DETAILED = "detailed"
    RICH = "rich"


def _read_input(input_file: Path | None) -> str:
    if input_file is not None:
        return input_file.read_text(encoding="utf-8", errors="replace")
    if sys.stdin.isatty():
        console.print("[bold red]buildsift parse: no input detected.[/bold red] Pipe build output.")
        console.print("[dim]Usage: xcodebuild build -scheme MyApp 2>&1 | buildsift parse[/dim]")
        raise typer.Exit(code=1)
    return sys.stdin.read()


def parse_cmd(
    output_format: OutputFormat = typer.Option(
        OutputFormat.JSON,
        "--format",
        "-f",
        help="Output format.",
        case_sensitive=False,
    ),
    compact: bool = typer.Option(
        False,
        "--compact",
        help="Compact JSON (status, counts, duration only).",
    ),
    minimal: bool = typer.Option(
        False,
        "--minimal",
        help="Single status line.",
    ),
    severity: str = typer.Option(
        None,
        "--severity",
        "-s",
        help="Minimum diagnostic severity to include (info, warning, error).",
    ),
    input_file: Path = typer.Option(
        None,
        "--input",
        "-i",
        exists=True,
        dir_okay=False,
        help="Read build output from a file instead of stdin.",
    ),
) -> None:
    """Parse build output into structured diagnostics and a status."""
    text = _read_input(input_file)

    try:
        result = parse_build_output(text, min_severity=severity or config.min_severity)
    except SiftError as exc:
        typer.echo(exc.to_structured().model_dump_json())
        raise typer.Exit(code=1)

    if output_format == OutputFormat.JSON:
        if minimal:
            typer.echo(format_minimal(result))
        elif compact:
            typer.echo(format_compact(result))
        else:
            typer.echo(format_json(result))
    elif output_format == OutputFormat.COMPACT:
        typer.echo(format_compact(result))
    elif output_format == OutputFormat.SUMMARY:
        typer.echo(format_summary(result))
    elif output_format == OutputFormat.DETAILED:
        typer.echo(format_detailed(result))
    else:
        MonitorRenderer(console=console).print_result(result)
