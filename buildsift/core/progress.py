"""Monotonic build progress and ETA estimation.

The estimator is the single writer of ``ProgressState``.  After every
consumed line it builds a new frozen snapshot and publishes it by
swapping one reference; periodic readers (hang detection, rendering)
only ever read that reference and never see a half-updated state.

Progress model
--------------
- target ratio = completed targets / declared total targets
- file ratio   = completed files / largest file total seen
- weighted     = 0.7 * target ratio + 0.3 * file ratio
- progress     = clamp(max(previous, weighted, percent signals), 0, 1)

Progress never decreases within one session, but any change in the
reported percentage (a new batch restarting at 10%, say) still counts
as activity for hang detection.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from buildsift.core.classifier import LineClassifier, LineTags
from buildsift.models.progress import ProgressState

logger = logging.getLogger(__name__)

TARGET_WEIGHT = 0.7
FILE_WEIGHT = 0.3
DEFAULT_ETA_MIN_PROGRESS = 0.1


def estimate_eta(
    progress: float, elapsed: float, min_progress: float = DEFAULT_ETA_MIN_PROGRESS
) -> float | None:
    """Estimate remaining seconds from progress fraction and elapsed time.

    Withheld (``None``) at or below *min_progress* and at completion.
    """
    if not (min_progress < progress < 1.0):
        return None
    remaining = elapsed / progress - elapsed
    return max(0.0, remaining)


class ProgressEstimator:
    """Consumes classified lines and maintains a monotonic ``ProgressState``.

    Parameters
    ----------
    total_targets:
        Declared number of build targets, supplied by the caller.
    eta_min_progress:
        Progress fraction below which the ETA is withheld.
    classifier:
        Line classifier used when ``consume`` is not handed tags.
    clock:
        Monotonic seconds source; injectable for deterministic tests.
    """

    def __init__(
        self,
        total_targets: int = 0,
        *,
        eta_min_progress: float = DEFAULT_ETA_MIN_PROGRESS,
        classifier: LineClassifier | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._classifier = classifier or LineClassifier()
        self._clock = clock
        self._eta_min_progress = eta_min_progress
        self._total_targets = max(0, total_targets)

        self._current_target: str | None = None
        self._completed_targets: set[str] = set()
        self._current_phase = "Starting"
        self._current_file: str | None = None
        self._completed_files = 0
        self._total_files = 0
        self._current_progress = 0.0
        self._last_percent: float | None = None
        self._lines_processed = 0
        self._first_line_at: float | None = None
        self._finalized = False

        self._started_at = clock()
        self._last_progress_at = self._started_at
        self._snapshot = self._build_snapshot(self._started_at)

    # ------------------------------------------------------------------
    # Reader side
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> ProgressState:
        """The most recently published snapshot, as published."""
        return self._snapshot

    def get_current_progress(self) -> ProgressState:
        """Latest snapshot with the ETA refreshed against the clock now.

        Safe to call from any thread; it never touches writer state.
        """
        snapshot = self._snapshot
        eta = self.calculate_eta(snapshot)
        if eta == snapshot.estimated_time_remaining:
            return snapshot
        return snapshot.model_copy(update={"estimated_time_remaining": eta})

    def calculate_eta(self, snapshot: ProgressState | None = None) -> float | None:
        """ETA in seconds for *snapshot* (default: the latest one)."""
        state = snapshot or self._snapshot
        elapsed = self._clock() - state.started_at
        return estimate_eta(state.progress_percentage, elapsed, self._eta_min_progress)

    # ------------------------------------------------------------------
    # Writer side
    # ------------------------------------------------------------------

    def consume(self, line: str, tags: LineTags | None = None) -> ProgressState:
        """Fold one line into progress and publish a new snapshot."""
        if tags is None:
            tags = self._classifier.classify(line)
        if self._finalized:
            return self._snapshot

        now = self._clock()
        if self._first_line_at is None:
            self._first_line_at = now
        self._lines_processed += 1
        progressed = False

        if tags.target is not None:
            progressed |= self._handle_target_change(tags.target)
        if tags.phase is not None and tags.phase != self._current_phase:
            self._current_phase = tags.phase
            progressed = True
        if tags.file_progress is not None:
            progressed |= self._handle_file_progress(
                tags.file_progress.current, tags.file_progress.total
            )
            if tags.file_progress.filename:
                self._current_file = tags.file_progress.filename
        if tags.compiled_file is not None:
            self._current_file = tags.compiled_file
        if tags.percent is not None:
            if tags.percent != self._last_percent:
                self._last_percent = tags.percent
                progressed = True
            if tags.percent > self._current_progress:
                self._current_progress = min(tags.percent, 1.0)

        if self._recalculate():
            progressed = True

        if progressed:
            self._last_progress_at = now
        self._snapshot = self._build_snapshot(now)
        return self._snapshot

    def finalize(self) -> ProgressState:
        """Mark the session finished; later lines no longer change state."""
        if not self._finalized:
            self._finalized = True
            self._snapshot = self._snapshot.model_copy(update={"finalized": True})
        return self._snapshot

    def _handle_target_change(self, target: str) -> bool:
        if target == self._current_target:
            return False
        if self._current_target is not None:
            self._completed_targets.add(self._current_target)
            logger.debug(
                "Completed target %s (%d/%d)",
                self._current_target,
                len(self._completed_targets),
                self._total_targets,
            )
        self._current_target = target
        self._current_phase = "Building"
        return True

    def _handle_file_progress(self, current: int, total: int) -> bool:
        changed = current != self._completed_files or total > self._total_files
        self._completed_files = current
        self._total_files = max(self._total_files, total)
        return changed

    def _recalculate(self) -> bool:
        """Recompute the weighted estimate; return True if progress rose."""
        target_ratio = (
            len(self._completed_targets) / self._total_targets
            if self._total_targets > 0
            else 0.0
        )
        file_ratio = (
            self._completed_files / self._total_files if self._total_files > 0 else 0.0
        )
        weighted = TARGET_WEIGHT * target_ratio + FILE_WEIGHT * file_ratio
        updated = min(max(self._current_progress, weighted, 0.0), 1.0)
        rose = updated > self._current_progress
        self._current_progress = updated
        return rose

    def _build_snapshot(self, now: float) -> ProgressState:
        return ProgressState(
            current_target=self._current_target,
            completed_targets=frozenset(self._completed_targets),
            total_targets=self._total_targets,
            progress_percentage=self._current_progress,
            current_phase=self._current_phase,
            current_file=self._current_file,
            completed_files=self._completed_files,
            total_files=self._total_files,
            estimated_time_remaining=estimate_eta(
                self._current_progress, now - self._started_at, self._eta_min_progress
            ),
            lines_processed=self._lines_processed,
            started_at=self._started_at,
            first_line_at=self._first_line_at,
            last_progress_at=self._last_progress_at,
            finalized=self._finalized,
        )
