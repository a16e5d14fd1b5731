"""Rebuild strategy models — build-state input, strategies, and execution results."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DERIVED_DATA_PATH = "~/Library/Developer/Xcode/DerivedData"


class BuildStateAnalysis(BaseModel):
    """Snapshot of a project's build health, collected before any build runs."""

    model_config = ConfigDict(frozen=True)

    derived_data_size: int = 0  # bytes
    has_build_artifacts: bool = False
    has_stale_cache: bool = False
    has_dependency_conflicts: bool = False
    memory_pressure: float = Field(default=0.0, ge=0.0, le=1.0)


class RebuildOptions(BaseModel):
    """Caller preferences that tune strategy selection."""

    model_config = ConfigDict(frozen=True)

    parallel: bool = True
    preserve_dependencies: bool = True
    aggressive: bool = False
    timeout: float | None = 300.0  # seconds, per build command
    derived_data_path: str = DEFAULT_DERIVED_DATA_PATH


class RebuildCommand(BaseModel):
    """One step of a rebuild strategy — an ``xcodebuild`` argument list."""

    model_config = ConfigDict(frozen=True)

    description: str
    arguments: list[str]
    is_critical: bool = True
    timeout: float | None = None  # seconds
    # Program to run instead of the runner's build tool
    executable: str | None = None


class RebuildStrategy(BaseModel):
    """A named, ordered sequence of recovery commands."""

    model_config = ConfigDict(frozen=True)

    name: str
    rationale: str
    commands: list[RebuildCommand]


class RebuildResult(BaseModel):
    """Outcome of executing a ``RebuildStrategy``."""

    model_config = ConfigDict(frozen=True)

    strategy_name: str
    total_commands: int
    successful_commands: int
    failed_commands: list[str] = []
    skipped_commands: list[str] = []
    total_duration: float = 0.0
    success: bool = False
