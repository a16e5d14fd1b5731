"""Build result models — status, metrics, timing, and the aggregate result."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from buildsift.models.diagnostics import Diagnostic, DiagnosticSeverity


class BuildStatus(str, Enum):
    """Overall outcome of a scanned build."""

    SUCCESS = "success"
    FAILED = "failed"
    UNKNOWN = "unknown"


class BuildMetrics(BaseModel):
    """Counters accumulated while scanning a build stream.

    ``compiled_files`` preserves discovery order and keeps duplicates.
    """

    model_config = ConfigDict(frozen=True)

    error_count: int = 0
    warning_count: int = 0
    compiled_files: list[str] = []


class BuildTiming(BaseModel):
    """Wall-clock timing of a build.  ``total_duration`` is in seconds."""

    model_config = ConfigDict(frozen=True)

    start_time: datetime | None = None
    end_time: datetime | None = None
    total_duration: float = 0.0


class BuildResult(BaseModel):
    """Aggregate result of one scanned build stream."""

    model_config = ConfigDict(frozen=True)

    status: BuildStatus = BuildStatus.UNKNOWN
    diagnostics: list[Diagnostic] = []
    metrics: BuildMetrics = BuildMetrics()
    timing: BuildTiming = BuildTiming()

    @property
    def errors(self) -> list[Diagnostic]:
        """Included diagnostics with error severity."""
        return [d for d in self.diagnostics if d.severity == DiagnosticSeverity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        """Included diagnostics with warning severity."""
        return [d for d in self.diagnostics if d.severity == DiagnosticSeverity.WARNING]

    def to_compact(self) -> CompactBuildResult:
        """Project this result onto its compact form."""
        return CompactBuildResult(
            status=self.status,
            errors=self.metrics.error_count,
            warnings=self.metrics.warning_count,
            files=len(self.metrics.compiled_files),
            duration=self.timing.total_duration,
        )


class CompactBuildResult(BaseModel):
    """Compact view of a ``BuildResult`` for token-efficient output."""

    model_config = ConfigDict(frozen=True)

    status: BuildStatus
    errors: int
    warnings: int
    files: int
    duration: float
