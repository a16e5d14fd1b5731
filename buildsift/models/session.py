"""Monitoring session models — how a session ended and what it produced."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from buildsift.models.build import BuildResult
from buildsift.models.hang import HangAnalysis
from buildsift.models.progress import ProgressState, ResourceUsage


class TerminationReason(str, Enum):
    """Why a monitored build stopped."""

    COMPLETED = "completed"  # driver exited on its own
    TIMEOUT = "timeout"  # overall build timeout elapsed
    HANG = "hang"  # hang detector verdict
    CANCELLED = "cancelled"  # explicit caller request


class SessionReport(BaseModel):
    """Final, frozen report of one monitoring session."""

    model_config = ConfigDict(frozen=True)

    result: BuildResult
    progress: ProgressState
    hang: HangAnalysis | None = None
    resources: ResourceUsage | None = None
    exit_code: int | None = None
    termination: TerminationReason = TerminationReason.COMPLETED

    @property
    def timed_out(self) -> bool:
        return self.termination == TerminationReason.TIMEOUT

    @property
    def terminated(self) -> bool:
        """True if the build was stopped rather than exiting on its own."""
        return self.termination != TerminationReason.COMPLETED
