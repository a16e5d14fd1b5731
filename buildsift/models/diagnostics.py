"""Diagnostic models — one extracted error/warning record per build output line."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class DiagnosticSeverity(str, Enum):
    """Severity of a compiler/build diagnostic."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class DiagnosticCategory(str, Enum):
    """Coarse category of a diagnostic.

    Extraction always produces ``BUILD``; the other members exist so
    downstream consumers can re-categorize without a schema change.
    """

    BUILD = "build"
    COMPILATION = "compilation"
    LINKING = "linking"
    DEPENDENCY = "dependency"


# Ordering used for minimum-severity filtering.  CRITICAL has no rank
# and is never filtered out.
SEVERITY_ORDER: list[DiagnosticSeverity] = [
    DiagnosticSeverity.INFO,
    DiagnosticSeverity.WARNING,
    DiagnosticSeverity.ERROR,
]


class Diagnostic(BaseModel):
    """A single structured diagnostic.  Immutable once created."""

    model_config = ConfigDict(frozen=True)

    severity: DiagnosticSeverity
    category: DiagnosticCategory = DiagnosticCategory.BUILD
    message: str
    location: str  # e.g. "/path/File.swift:10:3"
    line_number: int  # 1-based position within the scanned stream


def parse_severity(value: str | DiagnosticSeverity | None) -> DiagnosticSeverity:
    """Coerce a user-supplied threshold; unknown values fall back to INFO."""
    if isinstance(value, DiagnosticSeverity):
        return value
    try:
        return DiagnosticSeverity((value or "").strip().lower())
    except ValueError:
        return DiagnosticSeverity.INFO


def should_include(
    diagnostic: Diagnostic, min_severity: str | DiagnosticSeverity | None
) -> bool:
    """Return True if *diagnostic* meets the minimum-severity threshold.

    Ordering is info < warning < error.  Severities outside that ordering
    are always included.
    """
    threshold = parse_severity(min_severity)
    if threshold not in SEVERITY_ORDER or diagnostic.severity not in SEVERITY_ORDER:
        return True
    return SEVERITY_ORDER.index(diagnostic.severity) >= SEVERITY_ORDER.index(threshold)
