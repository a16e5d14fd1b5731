"""Rebuild strategy selection and execution.

``select_strategy`` is a pure function of a ``BuildStateAnalysis`` and
``RebuildOptions``.  Rules are evaluated in priority order and the first
match wins:

1. Stale cache and large derived data   -> "Clean with Cache Reset"
2. Memory pressure above threshold      -> "Memory-Optimized Rebuild"
3. Dependency conflicts                 -> "Dependency Resolution Rebuild"
4. Otherwise                            -> "Fast Incremental Rebuild"

``execute_strategy`` runs the chosen commands strictly in order through
a ``CommandRunner``.  A failing non-critical command is recorded and
execution continues; a failing critical command aborts the rest.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, runtime_checkable

from buildsift.models.rebuild import (
    BuildStateAnalysis,
    RebuildCommand,
    RebuildOptions,
    RebuildResult,
    RebuildStrategy,
)

logger = logging.getLogger(__name__)

LARGE_DERIVED_DATA_BYTES = 1_000_000_000
HIGH_MEMORY_PRESSURE = 0.8

CLEAN_WITH_CACHE_RESET = "Clean with Cache Reset"
MEMORY_OPTIMIZED_REBUILD = "Memory-Optimized Rebuild"
DEPENDENCY_RESOLUTION_REBUILD = "Dependency Resolution Rebuild"
FAST_INCREMENTAL_REBUILD = "Fast Incremental Rebuild"

# Clang and Swift module cache, shared by every project under derived data
MODULE_CACHE_DIR = "ModuleCache.noindex"

_CLEAN_TIMEOUT = 120.0
_RESOLVE_TIMEOUT = 300.0
_SETUP_TIMEOUT = 60.0


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def select_strategy(
    analysis: BuildStateAnalysis,
    options: RebuildOptions | None = None,
    *,
    large_size_threshold: int = LARGE_DERIVED_DATA_BYTES,
    memory_pressure_threshold: float = HIGH_MEMORY_PRESSURE,
) -> RebuildStrategy:
    """Map a build-state snapshot to a recovery strategy.  No side effects."""
    opts = options or RebuildOptions()

    large_cache = analysis.derived_data_size > large_size_threshold
    if analysis.has_stale_cache and (large_cache or opts.aggressive):
        return _clean_with_cache_reset(analysis, opts)
    if analysis.memory_pressure > memory_pressure_threshold:
        return _memory_optimized(analysis, opts)
    if analysis.has_dependency_conflicts:
        return _dependency_resolution(opts)
    return _fast_incremental(opts)


def _clean_with_cache_reset(
    analysis: BuildStateAnalysis, opts: RebuildOptions
) -> RebuildStrategy:
    commands = [
        RebuildCommand(
            description="Clean build products",
            arguments=["clean"],
            is_critical=True,
            timeout=_CLEAN_TIMEOUT,
        ),
        RebuildCommand(
            description="Reset module cache",
            arguments=["-rf", str(Path(opts.derived_data_path).expanduser() / MODULE_CACHE_DIR)],
            executable="rm",
            is_critical=False,
            timeout=_CLEAN_TIMEOUT,
        ),
    ]
    if not opts.preserve_dependencies:
        commands.append(
            RebuildCommand(
                description="Re-resolve package dependencies",
                arguments=["-resolvePackageDependencies"],
                is_critical=False,
                timeout=_RESOLVE_TIMEOUT,
            )
        )
    commands.append(
        RebuildCommand(
            description="Full rebuild",
            arguments=["build"],
            is_critical=True,
            timeout=opts.timeout,
        )
    )
    size_gb = analysis.derived_data_size / 1_000_000_000
    return RebuildStrategy(
        name=CLEAN_WITH_CACHE_RESET,
        rationale=(
            f"Build cache is stale and derived data is {size_gb:.1f} GB; "
            "cleaning and resetting the module cache avoids reusing corrupted "
            "intermediates."
        ),
        commands=commands,
    )


def _memory_optimized(
    analysis: BuildStateAnalysis, opts: RebuildOptions
) -> RebuildStrategy:
    return RebuildStrategy(
        name=MEMORY_OPTIMIZED_REBUILD,
        rationale=(
            f"Memory pressure is {analysis.memory_pressure:.0%}; building "
            "sequentially keeps peak memory low."
        ),
        commands=[
            RebuildCommand(
                description="Clean build products",
                arguments=["clean"],
                is_critical=False,
                timeout=_CLEAN_TIMEOUT,
            ),
            RebuildCommand(
                description="Sequential build",
                arguments=["build", "-jobs", "1", "COMPILER_INDEX_STORE_ENABLE=NO"],
                is_critical=True,
                timeout=opts.timeout,
            ),
        ],
    )


def _dependency_resolution(opts: RebuildOptions) -> RebuildStrategy:
    return RebuildStrategy(
        name=DEPENDENCY_RESOLUTION_REBUILD,
        rationale="Dependency conflicts detected; resolve packages before rebuilding.",
        commands=[
            RebuildCommand(
                description="Resolve package dependencies",
                arguments=["-resolvePackageDependencies"],
                is_critical=True,
                timeout=_RESOLVE_TIMEOUT,
            ),
            RebuildCommand(
                description="Clean build products",
                arguments=["clean"],
                is_critical=True,
                timeout=_CLEAN_TIMEOUT,
            ),
            RebuildCommand(
                description="Full build",
                arguments=["build"],
                is_critical=True,
                timeout=opts.timeout,
            ),
        ],
    )


def _fast_incremental(opts: RebuildOptions) -> RebuildStrategy:
    commands: list[RebuildCommand] = []
    build_args = ["build"]
    if opts.parallel:
        commands.append(
            RebuildCommand(
                description="Configure parallel target builds",
                arguments=["-showBuildSettings", "-parallelizeTargets"],
                is_critical=False,
                timeout=_SETUP_TIMEOUT,
            )
        )
        build_args.append("-parallelizeTargets")
    commands.append(
        RebuildCommand(
            description="Incremental build",
            arguments=build_args,
            is_critical=True,
            timeout=opts.timeout,
        )
    )
    return RebuildStrategy(
        name=FAST_INCREMENTAL_REBUILD,
        rationale="Build state looks healthy; reuse existing intermediates.",
        commands=commands,
    )


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


@runtime_checkable
class CommandRunner(Protocol):
    """Runs one rebuild command.  Returns True on success."""

    def run(self, command: RebuildCommand) -> bool:
        ...


def execute_strategy(
    strategy: RebuildStrategy,
    runner: CommandRunner,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> RebuildResult:
    """Execute *strategy* strictly in order.

    A runner that raises ``OSError`` is treated as a failed command.
    Overall success means no critical command failed.
    """
    started = clock()
    successful = 0
    failed: list[str] = []
    skipped: list[str] = []
    critical_failed = False

    for index, command in enumerate(strategy.commands):
        logger.info("Running %s: %s", command.description, " ".join(command.arguments))
        try:
            ok = runner.run(command)
        except OSError as exc:
            logger.error("Command %r could not run: %s", command.description, exc)
            ok = False

        if ok:
            successful += 1
            continue

        failed.append(command.description)
        if command.is_critical:
            critical_failed = True
            skipped = [c.description for c in strategy.commands[index + 1:]]
            logger.error(
                "Critical command %r failed; skipping %d remaining command(s)",
                command.description,
                len(skipped),
            )
            break
        logger.warning("Non-critical command %r failed; continuing", command.description)

    return RebuildResult(
        strategy_name=strategy.name,
        total_commands=len(strategy.commands),
        successful_commands=successful,
        failed_commands=failed,
        skipped_commands=skipped,
        total_duration=clock() - started,
        success=not critical_failed,
    )
