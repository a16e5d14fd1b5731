"""Rich terminal renderer for live build progress and session results.

Color scheme
------------
- green     : success, healthy progress
- red       : failed build, hang verdict
- yellow    : suspected stall, warnings
- cyan      : targets and phases
- dim       : secondary details
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from buildsift.models.build import BuildStatus
from buildsift.models.diagnostics import DiagnosticSeverity
from buildsift.models.hang import HangState
from buildsift.monitor.formatters import format_bytes, format_duration

if TYPE_CHECKING:
    from buildsift.models.build import BuildResult
    from buildsift.models.hang import HangAnalysis
    from buildsift.models.progress import ProgressState
    from buildsift.models.session import SessionReport


PROGRESS_BAR_WIDTH = 20

# ---------------------------------------------------------------------------
# State -> Rich style mapping
# ---------------------------------------------------------------------------

_STATUS_STYLES: dict[BuildStatus, str] = {
    BuildStatus.SUCCESS: "bold green",
    BuildStatus.FAILED: "bold red",
    BuildStatus.UNKNOWN: "dim",
}

_HANG_STYLES: dict[HangState, str] = {
    HangState.IDLE: "dim",
    HangState.ACTIVE: "green",
    HangState.SUSPECT: "bold yellow",
    HangState.HANGING: "bold red",
}

_SEVERITY_STYLES: dict[DiagnosticSeverity, str] = {
    DiagnosticSeverity.INFO: "cyan",
    DiagnosticSeverity.WARNING: "yellow",
    DiagnosticSeverity.ERROR: "red",
    DiagnosticSeverity.CRITICAL: "bold red",
}


def progress_bar(fraction: float, width: int = PROGRESS_BAR_WIDTH) -> str:
    """Block-character bar for a progress fraction in [0, 1]."""
    clamped = min(max(fraction, 0.0), 1.0)
    filled = int(clamped * width)
    return "█" * filled + "░" * (width - filled)


class MonitorRenderer:
    """Renders progress snapshots and results as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    show_eta:
        Include the ETA in progress lines when available.
    show_resources:
        Include CPU/memory in progress lines when available.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        show_eta: bool = True,
        show_resources: bool = False,
    ) -> None:
        self.console = console or Console()
        self.show_eta = show_eta
        self.show_resources = show_resources

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def render_progress_line(self, progress: ProgressState) -> Text:
        """One-line progress display: bar, percent, target, phase, counts, ETA."""
        bar = escape(f"[{progress_bar(progress.progress_percentage)}]")
        parts = [f"{bar} {progress.percent:.1f}%"]
        if progress.current_target:
            parts.append(f"[cyan]{escape(progress.current_target)}[/cyan]")
        parts.append(escape(progress.current_phase))
        line = " - ".join(parts)
        line += f" ({progress.completed_target_count}/{progress.total_targets})"

        if self.show_eta and progress.estimated_time_remaining is not None:
            line += f" - ETA: {format_duration(progress.estimated_time_remaining)}"

        usage = progress.resource_usage
        if self.show_resources and usage is not None:
            line += (
                f" - CPU: {usage.cpu_usage:.0f}% "
                f"MEM: {format_bytes(usage.memory_usage)}"
            )
        return Text.from_markup(line)

    def render_hang(self, analysis: HangAnalysis) -> Panel:
        """Warning panel for a suspected or confirmed hang."""
        style = _HANG_STYLES.get(analysis.state, "")
        title = "Build appears hung" if analysis.is_hanging else "Build may be stalled"
        body = [
            f"[bold]No progress for:[/bold] {format_duration(analysis.time_elapsed)}",
            f"[bold]Phase:[/bold] {escape(analysis.suspected_phase or '-')}",
            f"[bold]File:[/bold] {escape(analysis.suspected_file or '-')}",
        ]
        if analysis.recommendations:
            body.append("")
            body.append("[bold]Suggestions:[/bold]")
            body.extend(f"  • {escape(tip)}" for tip in analysis.recommendations)
        return Panel(
            Text.from_markup("\n".join(body)),
            title=f"[{style}]{title}[/{style}]",
            border_style="red" if analysis.is_hanging else "yellow",
        )

    def render_live_view(
        self, progress: ProgressState, analysis: HangAnalysis | None = None
    ) -> Group:
        """Progress line plus, when stalled, the hang panel."""
        items: list[Text | Panel] = [self.render_progress_line(progress)]
        if analysis is not None and analysis.state in (HangState.SUSPECT, HangState.HANGING):
            items.append(self.render_hang(analysis))
        return Group(*items)

    def live(self, refresh_hz: float = 4.0) -> Live:
        """A ``Live`` context; feed it ``render_live_view`` output."""
        return Live(console=self.console, refresh_per_second=refresh_hz, transient=False)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def render_diagnostics(self, result: BuildResult) -> Table:
        """Table of every included diagnostic."""
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Line", style="dim", justify="right", width=6)
        table.add_column("Severity", justify="center", width=10)
        table.add_column("Location", min_width=20)
        table.add_column("Message", min_width=30)
        for diagnostic in result.diagnostics:
            style = _SEVERITY_STYLES.get(diagnostic.severity, "")
            table.add_row(
                str(diagnostic.line_number),
                f"[{style}]{diagnostic.severity.value.upper()}[/{style}]",
                Text(diagnostic.location),
                Text(diagnostic.message),
            )
        return table

    def render_result(self, result: BuildResult) -> Panel:
        """Panel with the status line and, if any, the diagnostics table."""
        style = _STATUS_STYLES.get(result.status, "")
        summary = "  |  ".join(
            [
                f"[bold]Status:[/bold] [{style}]{result.status.value.upper()}[/{style}]",
                f"[bold]Errors:[/bold] {result.metrics.error_count}",
                f"[bold]Warnings:[/bold] {result.metrics.warning_count}",
                f"[bold]Files:[/bold] {len(result.metrics.compiled_files)}",
                f"[bold]Duration:[/bold] {result.timing.total_duration:.2f}s",
            ]
        )
        content: list[Text | Table] = [Text.from_markup(summary)]
        if result.diagnostics:
            content.extend([Text(""), self.render_diagnostics(result)])
        return Panel(
            Group(*content),
            title="[bold]Build Analysis[/bold]",
            border_style="blue",
            padding=(1, 2),
        )

    def render_session_summary(self, report: SessionReport) -> Panel:
        """Final monitoring summary for a completed session."""
        progress = report.progress
        duration = report.result.timing.total_duration
        lines = [
            f"[bold]Termination:[/bold] {report.termination.value}",
            f"[bold]Exit code:[/bold] {report.exit_code if report.exit_code is not None else '-'}",
            f"[bold]Total time:[/bold] {format_duration(duration)}",
            f"[bold]Completed targets:[/bold] "
            f"{progress.completed_target_count}/{progress.total_targets}",
            f"[bold]Processed files:[/bold] {progress.completed_files}",
        ]
        if report.resources is not None:
            lines.append(
                f"[bold]Peak memory:[/bold] {format_bytes(report.resources.peak_memory_usage)}"
            )
            lines.append(f"[bold]Peak CPU:[/bold] {report.resources.peak_cpu_usage:.1f}%")
        success_rate = (
            progress.completed_target_count / progress.total_targets * 100
            if progress.total_targets > 0
            else 0.0
        )
        lines.append(f"[bold]Success rate:[/bold] {success_rate:.1f}%")

        status_style = _STATUS_STYLES.get(report.result.status, "")
        return Panel(
            Text.from_markup("\n".join(lines)),
            title=f"[{status_style}]Build {report.result.status.value.upper()}[/{status_style}]",
            border_style="green" if report.result.status == BuildStatus.SUCCESS else "red",
        )

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_result(self, result: BuildResult) -> None:
        self.console.print(self.render_result(result))

    def print_session_summary(self, report: SessionReport) -> None:
        self.console.print(self.render_session_summary(report))
