"""Elapsed-time hang detection over published progress snapshots.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- IDLE -> ACTIVE on the first observed line
- ACTIVE -> SUSPECT -> HANGING strictly in order as the no-progress
  interval crosses the two thresholds
- Any forward-progress signal returns the detector to ACTIVE

The detector only reads ``ProgressState`` snapshots; it never mutates
them and never cancels the build itself.  Given the same timeline of
snapshots and clock readings it always produces the same verdicts.
"""

from __future__ import annotations

import logging

from buildsift.models.hang import VALID_TRANSITIONS, HangAnalysis, HangState
from buildsift.models.progress import ProgressState

logger = logging.getLogger(__name__)

DEFAULT_SUSPECT_SECONDS = 60.0
DEFAULT_HANG_SECONDS = 300.0

GENERIC_RECOMMENDATIONS: list[str] = [
    "Check Activity Monitor for a stuck compiler or tool process.",
    "Re-run the build with -verbose to see the last command executed.",
    "Clean the build folder and retry.",
]

# Phase label -> advice, keyed by the labels the classifier produces.
PHASE_RECOMMENDATIONS: dict[str, list[str]] = {
    "Starting": [
        "Package resolution may be blocked; check network access to package sources.",
        "Run xcodebuild -resolvePackageDependencies separately to surface resolution errors.",
    ],
    "Compiling Swift": [
        "Type-checking may be stuck on a complex expression; add explicit type annotations.",
        "Enable -Xfrontend -warn-long-expression-type-checking=200 to find slow expressions.",
        "Try building with -jobs 1 to isolate the offending file.",
    ],
    "Compiling C": [
        "Check for recursive or very large header includes in the current file.",
        "Verify module maps and header search paths are not cyclic.",
    ],
    "Linking": [
        "The linker may be short on memory; close other applications and retry.",
        "Check for duplicate or very large static libraries in the link step.",
    ],
    "Running Scripts": [
        "A build phase script may be waiting for input or a network resource.",
        "Add 'set -x' to the script to trace where it stops.",
    ],
    "Copying Resources": [
        "Check for very large or locked resource files.",
        "Verify the destination volume has free space.",
    ],
    "Code Signing": [
        "The keychain may be locked or prompting for access; unlock it and retry.",
        "Verify the signing identity and provisioning profile are valid.",
    ],
    "Processing": [
        "Asset or Info.plist processing may be stuck; inspect the current input file.",
    ],
    "Building": [
        "The build system may be waiting on a dependency; check target dependencies for cycles.",
    ],
}


class InvalidHangTransitionError(RuntimeError):
    """Raised when a requested hang-state transition is not valid."""


class HangDetector:
    """Tick-driven hang state machine.

    Parameters
    ----------
    suspect_after:
        Seconds without forward progress before entering SUSPECT.
    hang_after:
        Seconds without forward progress before entering HANGING.
        Must be greater than *suspect_after*.
    recommendations:
        Phase label -> advice mapping.  Defaults to ``PHASE_RECOMMENDATIONS``.
    """

    def __init__(
        self,
        suspect_after: float = DEFAULT_SUSPECT_SECONDS,
        hang_after: float = DEFAULT_HANG_SECONDS,
        *,
        recommendations: dict[str, list[str]] | None = None,
    ) -> None:
        if suspect_after <= 0:
            raise ValueError(f"suspect_after must be positive, got {suspect_after}")
        if hang_after <= suspect_after:
            raise ValueError(
                f"hang_after ({hang_after}) must be greater than "
                f"suspect_after ({suspect_after})"
            )
        self._suspect_after = suspect_after
        self._hang_after = hang_after
        self._recommendations = (
            recommendations if recommendations is not None else PHASE_RECOMMENDATIONS
        )
        self._state = HangState.IDLE
        self._history: list[HangState] = [HangState.IDLE]
        self._last_progress_at: float | None = None

    # ------------------------------------------------------------------
    # State management
    # ------------------------------------------------------------------

    @property
    def state(self) -> HangState:
        return self._state

    @property
    def history(self) -> list[HangState]:
        """Every state entered, in order, starting with IDLE."""
        return list(self._history)

    def _transition(self, target: HangState) -> None:
        allowed = VALID_TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise InvalidHangTransitionError(
                f"Cannot transition from {self._state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        if target == HangState.HANGING:
            logger.warning("Build appears hung (no progress for >= %gs)", self._hang_after)
        elif target == HangState.SUSPECT:
            logger.info("No build progress for >= %gs; suspecting a stall", self._suspect_after)
        else:
            logger.debug("Hang detector %s -> %s", self._state.value, target.value)
        self._state = target
        self._history.append(target)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def evaluate(self, snapshot: ProgressState, now: float) -> HangAnalysis:
        """Advance the state machine for one tick and return the verdict.

        Parameters
        ----------
        snapshot:
            The most recently published progress snapshot.
        now:
            Current reading of the same monotonic clock the snapshot's
            timestamps come from.
        """
        if snapshot.lines_processed == 0 or snapshot.first_line_at is None:
            return self._analysis(snapshot, 0.0)

        if self._state == HangState.IDLE:
            self._transition(HangState.ACTIVE)

        baseline = max(snapshot.last_progress_at, snapshot.first_line_at)
        if self._last_progress_at is None:
            self._last_progress_at = baseline
        elif baseline > self._last_progress_at:
            self._last_progress_at = baseline
            if self._state != HangState.ACTIVE:
                self._transition(HangState.ACTIVE)

        elapsed = max(0.0, now - self._last_progress_at)

        if self._state == HangState.ACTIVE and elapsed >= self._suspect_after:
            self._transition(HangState.SUSPECT)
        if self._state == HangState.SUSPECT and elapsed >= self._hang_after:
            self._transition(HangState.HANGING)

        return self._analysis(snapshot, elapsed)

    def recommendations_for(self, phase: str | None) -> list[str]:
        """Phase-specific advice followed by generic advice."""
        specific = self._recommendations.get(phase or "", [])
        return [*specific, *GENERIC_RECOMMENDATIONS]

    def _analysis(self, snapshot: ProgressState, elapsed: float) -> HangAnalysis:
        is_hanging = self._state == HangState.HANGING
        return HangAnalysis(
            state=self._state,
            is_hanging=is_hanging,
            suspected_phase=snapshot.current_phase,
            suspected_file=snapshot.current_file,
            time_elapsed=elapsed,
            recommendations=(
                self.recommendations_for(snapshot.current_phase)
                if self._state in (HangState.SUSPECT, HangState.HANGING)
                else []
            ),
        )
