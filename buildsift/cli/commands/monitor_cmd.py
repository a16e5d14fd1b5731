"""``buildsift monitor -- COMMAND...`` — run a build under live monitoring.

Streams the build's merged output through a ``MonitorSession``, shows a
live progress line (with a warning panel when the build stalls), and
cancels the build on a confirmed hang or on the overall timeout.
``--replay FILE`` re-analyses a captured log instead of running a command.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from buildsift.bridge.driver import BuildDriver, ReplayBuildDriver, SubprocessBuildDriver
from buildsift.config import SiftConfig, config
from buildsift.core.errors import SiftError
from buildsift.core.resources import PsutilMetricsProvider
from buildsift.core.session import MonitorSession
from buildsift.models.build import BuildStatus
from buildsift.models.hang import HangAnalysis
from buildsift.models.progress import ProgressState
from buildsift.monitor.renderer import MonitorRenderer

console = Console()


def _settings(**overrides: Any) -> SiftConfig:
    return SiftConfig(**{k: v for k, v in overrides.items() if v is not None})


def monitor_cmd(
    command: list[str] = typer.Argument(
        None,
        help="Build command to run, e.g. -- xcodebuild build -scheme App",
    ),
    replay: Path = typer.Option(
        None,
        "--replay",
        "-r",
        exists=True,
        dir_okay=False,
        help="Replay a captured build log instead of running a command.",
    ),
    targets: int = typer.Option(
        0,
        "--targets",
        "-t",
        min=0,
        help="Expected number of build targets (improves progress accuracy).",
    ),
    interval: float = typer.Option(
        None,
        "--interval",
        help="Seconds between progress refreshes and hang checks.",
    ),
    suspect_after: float = typer.Option(
        None,
        "--suspect-after",
        help="Seconds without progress before a stall is suspected.",
    ),
    hang_after: float = typer.Option(
        None,
        "--hang-after",
        help="Seconds without progress before the build is declared hung.",
    ),
    cancel_on_hang: bool = typer.Option(
        config.cancel_on_hang,
        "--cancel-on-hang/--no-cancel-on-hang",
        help="Terminate the build when it is declared hung.",
    ),
    timeout: float = typer.Option(
        None,
        "--timeout",
        help="Overall build timeout in seconds (0 disables).",
    ),
    resources: bool = typer.Option(
        False,
        "--resources",
        help="Sample CPU and memory of the build process tree.",
    ),
    live: bool = typer.Option(
        True,
        "--live/--no-live",
        help="Show a continuously updated progress display.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the final session report as JSON.",
    ),
) -> None:
    """Run (or replay) a build and monitor progress, hangs, and resources."""
    if replay is None and not command:
        console.print("[bold red]Nothing to monitor.[/bold red] Pass a command or --replay FILE.")
        console.print("[dim]Usage: buildsift monitor -- xcodebuild build -scheme App[/dim]")
        raise typer.Exit(code=1)

    try:
        settings = _settings(
            update_interval_seconds=interval,
            hang_suspect_seconds=suspect_after,
            hang_threshold_seconds=hang_after,
            cancel_on_hang=cancel_on_hang,
            build_timeout_seconds=timeout,
        )
    except ValueError as exc:
        console.print(f"[bold red]Invalid settings:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2)

    driver: BuildDriver
    provider = None
    if replay is not None:
        driver = ReplayBuildDriver.from_file(replay)
    else:
        subprocess_driver = SubprocessBuildDriver(list(command))
        driver = subprocess_driver
        if resources:
            try:
                subprocess_driver.start()
            except SiftError as exc:
                typer.echo(exc.to_structured().model_dump_json())
                raise typer.Exit(code=1)
            provider = PsutilMetricsProvider(subprocess_driver.pid)
    if resources and provider is None:
        provider = PsutilMetricsProvider()

    renderer = MonitorRenderer(console=console, show_resources=resources)
    view = renderer.live() if live else None

    def on_tick(progress: ProgressState, analysis: HangAnalysis) -> None:
        if view is not None:
            view.update(renderer.render_live_view(progress, analysis))

    session = MonitorSession(
        targets,
        settings=settings,
        metrics_provider=provider,
        on_tick=on_tick,
    )

    try:
        if view is not None:
            with view:
                report = session.run(driver)
        else:
            report = session.run(driver)
    except KeyboardInterrupt:
        session.cancel()
        report = session.finish(driver.wait())
    except SiftError as exc:
        typer.echo(exc.to_structured().model_dump_json())
        raise typer.Exit(code=1)

    if report.hang is not None and report.hang.is_hanging:
        renderer.console.print(renderer.render_hang(report.hang))

    if as_json:
        typer.echo(report.model_dump_json(indent=2))
    else:
        renderer.print_session_summary(report)
        if report.result.diagnostics:
            renderer.print_result(report.result)

    if report.result.status != BuildStatus.SUCCESS:
        raise typer.Exit(code=1)
