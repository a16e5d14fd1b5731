"""Plain-text and JSON renderings of a ``BuildResult``.

Granularities
-------------
full
    ``format_json`` — every field.
compact
    ``format_compact`` — status, counts, file count, duration.
minimal
    ``format_minimal`` — a single status line.
summary
    ``format_summary`` — status block plus the first diagnostics.
detailed
    ``format_detailed`` — every diagnostic with location and message.
"""

from __future__ import annotations

from buildsift.models.build import BuildResult, BuildStatus
from buildsift.models.diagnostics import DiagnosticSeverity

SUMMARY_DIAGNOSTIC_LIMIT = 10

SEVERITY_ICONS: dict[DiagnosticSeverity, str] = {
    DiagnosticSeverity.INFO: "ℹ️",
    DiagnosticSeverity.WARNING: "⚠️",
    DiagnosticSeverity.ERROR: "❌",
    DiagnosticSeverity.CRITICAL: "🚨",
}


def format_duration(seconds: float) -> str:
    """Abbreviated duration, e.g. ``1h 2m 3s``, ``45s``."""
    total = max(0, int(round(seconds)))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    parts: list[str] = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_bytes(num_bytes: int) -> str:
    """Memory-style byte count with binary units, e.g. ``2.1 GB``."""
    value = float(max(0, num_bytes))
    for unit in ("bytes", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            if unit == "bytes":
                return f"{int(value)} bytes"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def format_json(result: BuildResult, *, indent: int | None = None) -> str:
    return result.model_dump_json(indent=indent)


def format_compact(result: BuildResult) -> str:
    return result.to_compact().model_dump_json()


def format_minimal(result: BuildResult) -> str:
    icon = "✅" if result.status == BuildStatus.SUCCESS else "❌"
    return (
        f"{icon} {result.status.value.upper()} | "
        f"ERRORS: {result.metrics.error_count} | "
        f"WARNINGS: {result.metrics.warning_count} | "
        f"FILES: {len(result.metrics.compiled_files)} | "
        f"{result.timing.total_duration:.1f}s"
    )


def format_summary(result: BuildResult, *, limit: int = SUMMARY_DIAGNOSTIC_LIMIT) -> str:
    lines = [
        f"BUILD {result.status.value.upper()}",
        f"ERRORS {result.metrics.error_count}",
        f"WARNINGS {result.metrics.warning_count}",
        f"FILES COMPILED {len(result.metrics.compiled_files)}",
        f"DURATION {result.timing.total_duration:.1f}s",
    ]
    if result.diagnostics:
        lines.append("DIAGNOSTICS")
        for diagnostic in result.diagnostics[:limit]:
            icon = SEVERITY_ICONS[diagnostic.severity]
            lines.append(f"{icon} {diagnostic.location}: {diagnostic.message}")
        if len(result.diagnostics) > limit:
            lines.append(f"... and {len(result.diagnostics) - limit} more")
    return "\n".join(lines)


def format_detailed(result: BuildResult) -> str:
    lines = [
        "BUILD ANALYSIS",
        "==============",
        f"Status: {result.status.value}",
        f"Duration: {result.timing.total_duration:.2f}s",
        f"Errors: {result.metrics.error_count}",
        f"Warnings: {result.metrics.warning_count}",
        f"Files Compiled: {len(result.metrics.compiled_files)}",
    ]
    if result.diagnostics:
        lines.append("")
        lines.append(f"DIAGNOSTICS ({len(result.diagnostics)})")
        lines.append("------------")
        for diagnostic in result.diagnostics:
            icon = SEVERITY_ICONS[diagnostic.severity]
            lines.append(
                f"{icon} [{diagnostic.severity.value.upper()}] {diagnostic.location} "
                f"(line {diagnostic.line_number})"
            )
            lines.append(f"   {diagnostic.message}")
            lines.append("")
    return "\n".join(lines).rstrip("\n")
