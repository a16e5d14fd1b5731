"""Progress and resource snapshot models.

Both models are frozen: the line-consumption path publishes a fresh
instance after every line and periodic readers only ever see whole
snapshots.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class ResourceUsage(BaseModel):
    """Point-in-time CPU and memory reading with running peaks."""

    model_config = ConfigDict(frozen=True)

    cpu_usage: float = 0.0  # percent, 0-100 per core aggregate
    memory_usage: int = 0  # bytes
    peak_cpu_usage: float = 0.0
    peak_memory_usage: int = 0
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class ProgressState(BaseModel):
    """Snapshot of build progress for one monitoring session.

    ``last_progress_at`` and ``started_at`` are monotonic-clock readings
    from the estimator's clock; they are only meaningful relative to
    that same clock.
    """

    model_config = ConfigDict(frozen=True)

    current_target: str | None = None
    completed_targets: frozenset[str] = frozenset()
    total_targets: int = 0
    progress_percentage: float = 0.0  # fraction in [0, 1]
    current_phase: str = "Starting"
    current_file: str | None = None
    completed_files: int = 0
    total_files: int = 0
    estimated_time_remaining: float | None = None  # seconds
    resource_usage: ResourceUsage | None = None
    lines_processed: int = 0
    started_at: float = 0.0
    first_line_at: float | None = None
    last_progress_at: float = 0.0
    finalized: bool = False

    @property
    def completed_target_count(self) -> int:
        """Number of distinct targets seen to completion."""
        return len(self.completed_targets)

    @property
    def percent(self) -> float:
        """Progress as a 0-100 percentage for display."""
        return self.progress_percentage * 100.0
