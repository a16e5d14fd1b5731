"""buildsift data models — all Pydantic v2, all frozen (immutable)."""

from buildsift.models.build import (
    BuildMetrics,
    BuildResult,
    BuildStatus,
    BuildTiming,
    CompactBuildResult,
)
from buildsift.models.diagnostics import (
    SEVERITY_ORDER,
    Diagnostic,
    DiagnosticCategory,
    DiagnosticSeverity,
    parse_severity,
    should_include,
)
from buildsift.models.errors import StructuredError
from buildsift.models.hang import VALID_TRANSITIONS, HangAnalysis, HangState
from buildsift.models.progress import ProgressState, ResourceUsage
from buildsift.models.rebuild import (
    BuildStateAnalysis,
    RebuildCommand,
    RebuildOptions,
    RebuildResult,
    RebuildStrategy,
)
from buildsift.models.session import SessionReport, TerminationReason

__all__ = [
    # diagnostics
    "DiagnosticSeverity",
    "DiagnosticCategory",
    "Diagnostic",
    "SEVERITY_ORDER",
    "parse_severity",
    "should_include",
    # build
    "BuildStatus",
    "BuildMetrics",
    "BuildTiming",
    "BuildResult",
    "CompactBuildResult",
    # progress
    "ProgressState",
    "ResourceUsage",
    # hang
    "HangState",
    "HangAnalysis",
    "VALID_TRANSITIONS",
    # rebuild
    "BuildStateAnalysis",
    "RebuildOptions",
    "RebuildCommand",
    "RebuildStrategy",
    "RebuildResult",
    # session
    "TerminationReason",
    "SessionReport",
    # errors
    "StructuredError",
]
