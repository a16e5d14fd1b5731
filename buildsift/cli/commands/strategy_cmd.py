"""``buildsift strategy`` — choose (and optionally run) a rebuild strategy.

The build-state facts are supplied by the caller; measuring derived
data or detecting stale caches on disk is outside buildsift.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from buildsift.bridge.xcodebuild import XcodebuildRunner
from buildsift.config import config
from buildsift.core.resources import PsutilMetricsProvider
from buildsift.core.strategy import execute_strategy, select_strategy
from buildsift.models.rebuild import (
    DEFAULT_DERIVED_DATA_PATH,
    BuildStateAnalysis,
    RebuildOptions,
    RebuildStrategy,
)

console = Console()


def _print_strategy(strategy: RebuildStrategy) -> None:
    console.print(f"[bold cyan]{strategy.name}[/bold cyan]")
    console.print(f"[dim]{strategy.rationale}[/dim]")
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Step")
    table.add_column("Arguments")
    table.add_column("Critical", justify="center")
    table.add_column("Timeout", justify="right")
    for i, command in enumerate(strategy.commands, start=1):
        argv = command.arguments
        if command.executable:
            argv = [command.executable, *argv]
        table.add_row(
            str(i),
            command.description,
            " ".join(argv),
            "[red]yes[/red]" if command.is_critical else "[dim]no[/dim]",
            f"{command.timeout:.0f}s" if command.timeout else "-",
        )
    console.print(table)


def strategy_cmd(
    derived_data_size: int = typer.Option(
        0, "--derived-data-size", help="Size of derived data in bytes."
    ),
    stale_cache: bool = typer.Option(False, "--stale-cache", help="The build cache is stale."),
    dependency_conflicts: bool = typer.Option(
        False, "--dependency-conflicts", help="Package dependencies conflict."
    ),
    build_artifacts: bool = typer.Option(
        False, "--artifacts", help="Previous build artifacts exist."
    ),
    memory_pressure: float = typer.Option(
        None,
        "--memory-pressure",
        min=0.0,
        max=1.0,
        help="Memory pressure in [0, 1].  Measured with psutil when omitted.",
    ),
    parallel: bool = typer.Option(True, "--parallel/--no-parallel", help="Allow parallel builds."),
    preserve_dependencies: bool = typer.Option(
        True,
        "--preserve-dependencies/--reset-dependencies",
        help="Keep resolved packages when cleaning.",
    ),
    aggressive: bool = typer.Option(
        False, "--aggressive", help="Clean on any stale cache regardless of size."
    ),
    timeout: float = typer.Option(300.0, "--timeout", help="Per-build-command timeout in seconds."),
    derived_data_path: str = typer.Option(
        DEFAULT_DERIVED_DATA_PATH,
        "--derived-data-path",
        help="Derived data directory whose module cache is reset when cleaning.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the strategy as JSON."),
    execute: bool = typer.Option(False, "--execute", help="Run the strategy with xcodebuild."),
    project_args: list[str] = typer.Argument(
        None,
        help="Extra xcodebuild arguments, e.g. -- -scheme App -workspace App.xcworkspace",
    ),
) -> None:
    """Select a rebuild strategy from the current build state."""
    if memory_pressure is None:
        memory_pressure = PsutilMetricsProvider().memory_pressure()

    analysis = BuildStateAnalysis(
        derived_data_size=derived_data_size,
        has_build_artifacts=build_artifacts,
        has_stale_cache=stale_cache,
        has_dependency_conflicts=dependency_conflicts,
        memory_pressure=memory_pressure,
    )
    options = RebuildOptions(
        parallel=parallel,
        preserve_dependencies=preserve_dependencies,
        aggressive=aggressive,
        timeout=timeout,
        derived_data_path=derived_data_path,
    )
    strategy = select_strategy(
        analysis,
        options,
        large_size_threshold=config.large_derived_data_bytes,
        memory_pressure_threshold=config.memory_pressure_threshold,
    )

    if as_json:
        typer.echo(strategy.model_dump_json(indent=2))
    else:
        _print_strategy(strategy)

    if not execute:
        return

    result = execute_strategy(strategy, XcodebuildRunner(project_args or []))
    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        style = "green" if result.success else "bold red"
        console.print(
            f"[{style}]{result.strategy_name}: "
            f"{result.successful_commands}/{result.total_commands} succeeded "
            f"in {result.total_duration:.1f}s[/{style}]"
        )
        for failed in result.failed_commands:
            console.print(f"  [red]failed:[/red] {failed}")
        for skipped in result.skipped_commands:
            console.print(f"  [dim]skipped:[/dim] {skipped}")
    if not result.success:
        raise typer.Exit(code=1)
