"""Hang detection state machine models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class HangState(str, Enum):
    """Explicit states of the hang detector."""

    IDLE = "idle"
    ACTIVE = "active"
    SUSPECT = "suspect"
    HANGING = "hanging"


# Valid state transitions, enforced by HangDetector.
# Any state may fall back to ACTIVE on a forward-progress signal.
VALID_TRANSITIONS: dict[HangState, set[HangState]] = {
    HangState.IDLE: {HangState.ACTIVE},
    HangState.ACTIVE: {HangState.SUSPECT},
    HangState.SUSPECT: {HangState.ACTIVE, HangState.HANGING},
    HangState.HANGING: {HangState.ACTIVE},
}


class HangAnalysis(BaseModel):
    """Verdict produced on every hang-detector tick."""

    model_config = ConfigDict(frozen=True)

    state: HangState = HangState.IDLE
    is_hanging: bool = False
    suspected_phase: str | None = None
    suspected_file: str | None = None
    time_elapsed: float = 0.0  # seconds since last forward progress
    recommendations: list[str] = []
