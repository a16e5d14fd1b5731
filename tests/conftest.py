"""Shared test fixtures for buildsift."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from buildsift.config import SiftConfig
from buildsift.core.classifier import LineClassifier


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class SteppingWallClock:
    """Wall clock that moves forward a fixed step on every reading."""

    def __init__(self, step_seconds: float = 1.0) -> None:
        self._current = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        self._step = timedelta(seconds=step_seconds)

    def __call__(self) -> datetime:
        value = self._current
        self._current += self._step
        return value


SAMPLE_FAILED_BUILD = """\
Command line invocation:
    /usr/bin/xcodebuild build -scheme MyApp
=== BUILD TARGET Core OF PROJECT MyApp WITH CONFIGURATION Debug ===
Compiling AppDelegate.swift (1/3)
/Users/dev/MyApp/AppDelegate.swift:12:5: warning: variable 'x' was never used
Compiling ViewController.swift (2/3)
/Users/dev/MyApp/ViewController.swift:40:9: error: cannot find 'foo' in scope
Compiling Model.swift (3/3)
/Users/dev/MyApp/Model.swift:7:1: error: expected declaration
** BUILD FAILED **
"""

SAMPLE_SUCCESSFUL_BUILD = """\
xcodebuild build -scheme MyApp
=== BUILD TARGET Core OF PROJECT MyApp WITH CONFIGURATION Debug ===
Compiling Core.swift (1/2)
Compiling Utils.swift (2/2)
=== BUILD TARGET App OF PROJECT MyApp WITH CONFIGURATION Debug ===
Ld /Build/Products/Debug/MyApp.app/MyApp normal
CodeSign /Build/Products/Debug/MyApp.app
** BUILD SUCCEEDED **
"""


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced monotonic clock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def wall_clock() -> Callable[[], datetime]:
    """Provide a wall clock that advances one second per reading."""
    return SteppingWallClock(1.0)


@pytest.fixture
def classifier() -> LineClassifier:
    """Provide a LineClassifier with the default phase rules."""
    return LineClassifier()


@pytest.fixture
def failed_build_log() -> str:
    """Captured output of a build with one warning and two errors."""
    return SAMPLE_FAILED_BUILD


@pytest.fixture
def successful_build_log() -> str:
    """Captured output of a clean two-target build."""
    return SAMPLE_SUCCESSFUL_BUILD


@pytest.fixture
def settings() -> SiftConfig:
    """Session settings with short, test-friendly thresholds."""
    return SiftConfig(
        update_interval_seconds=0.01,
        hang_suspect_seconds=5.0,
        hang_threshold_seconds=10.0,
        cancel_on_hang=True,
        build_timeout_seconds=0,
        monitor_resources=False,
        min_severity="info",
    )
