"""MonitorSession — one build, one writer, periodic readers.

Concurrency model
-----------------
- **Writer**: the thread calling ``run()`` (or ``feed_line()``) consumes
  lines strictly in order.  Each line is classified once and folded
  into the ``BuildAccumulator`` and ``ProgressEstimator``; the estimator
  then publishes a new frozen ``ProgressState`` by swapping a reference.
- **Readers**: a ``PeriodicTask`` thread calls ``tick()`` at a fixed
  interval.  It samples resources, runs the ``HangDetector`` against
  the latest published snapshot, and may request cancellation.  It
  never writes progress or build state.
- **Cancellation**: a hang verdict, the overall timeout, or an explicit
  ``cancel()`` call.  Only the first request takes effect; afterwards
  the writer stops folding lines into the result.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone

from buildsift.bridge.driver import BuildDriver
from buildsift.config import SiftConfig
from buildsift.core.accumulator import BuildAccumulator
from buildsift.core.classifier import LineClassifier
from buildsift.core.errors import NoInputError
from buildsift.core.hang_detector import HangDetector
from buildsift.core.progress import ProgressEstimator
from buildsift.core.resources import ResourceSampler, SystemMetricsProvider
from buildsift.models.build import BuildResult
from buildsift.models.hang import HangAnalysis
from buildsift.models.progress import ProgressState
from buildsift.models.session import SessionReport, TerminationReason

logger = logging.getLogger(__name__)

TickCallback = Callable[[ProgressState, HangAnalysis], None]


class PeriodicTask:
    """Calls *func* every *interval* seconds on a daemon thread.

    Exceptions raised by *func* are logged and the schedule continues.
    """

    def __init__(self, interval: float, func: Callable[[], object], *, name: str) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._interval = interval
        self._func = func
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._func()
            except Exception:
                logger.exception("Periodic task %s failed", self._thread.name)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MonitorSession:
    """Monitors a single build invocation.

    Parameters
    ----------
    total_targets:
        Declared number of targets for progress weighting.
    settings:
        Thresholds and intervals.  Defaults to a fresh ``SiftConfig``.
    metrics_provider:
        Enables resource sampling when given (or when
        ``settings.monitor_resources`` is set, using psutil).
    on_tick:
        Called from the periodic thread with the latest progress and
        hang verdict, e.g. to refresh a live display.
    clock:
        Monotonic seconds source shared by progress and hang detection.
    now:
        Wall-clock source for build timing.
    """

    def __init__(
        self,
        total_targets: int = 0,
        *,
        settings: SiftConfig | None = None,
        metrics_provider: SystemMetricsProvider | None = None,
        on_tick: TickCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._settings = settings or SiftConfig()
        self._clock = clock
        self._on_tick = on_tick

        classifier = LineClassifier()
        self._classifier = classifier
        self._accumulator = BuildAccumulator(
            min_severity=self._settings.min_severity,
            classifier=classifier,
            now=now,
        )
        self._estimator = ProgressEstimator(
            total_targets,
            eta_min_progress=self._settings.eta_min_progress,
            classifier=classifier,
            clock=clock,
        )
        self._hang_detector = HangDetector(
            self._settings.hang_suspect_seconds,
            self._settings.hang_threshold_seconds,
        )
        self._sampler: ResourceSampler | None = None
        if metrics_provider is not None or self._settings.monitor_resources:
            self._sampler = ResourceSampler(metrics_provider)

        self._latest_hang: HangAnalysis | None = None
        self._termination: TerminationReason | None = None
        self._cancel_lock = threading.Lock()
        self._driver: BuildDriver | None = None
        self._report: SessionReport | None = None

    # ------------------------------------------------------------------
    # Reader side
    # ------------------------------------------------------------------

    @property
    def hang_detector(self) -> HangDetector:
        return self._hang_detector

    @property
    def cancelled(self) -> bool:
        return self._termination is not None

    @property
    def termination(self) -> TerminationReason | None:
        return self._termination

    @property
    def latest_hang(self) -> HangAnalysis | None:
        return self._latest_hang

    def get_current_progress(self) -> ProgressState:
        """Latest progress snapshot with the newest resource reading attached."""
        progress = self._estimator.get_current_progress()
        usage = self._sampler.current_usage() if self._sampler is not None else None
        if usage is None:
            return progress
        return progress.model_copy(update={"resource_usage": usage})

    def current_result(self) -> BuildResult:
        """Running build result (status may still be ``unknown``)."""
        return self._accumulator.snapshot()

    # ------------------------------------------------------------------
    # Writer side
    # ------------------------------------------------------------------

    def feed_line(self, line: str) -> ProgressState:
        """Consume one complete line.  Must only be called from one thread."""
        if self.cancelled or self._report is not None:
            return self._estimator.snapshot
        tags = self._classifier.classify(line)
        self._accumulator.consume(line, tags)
        return self._estimator.consume(line, tags)

    # ------------------------------------------------------------------
    # Periodic side
    # ------------------------------------------------------------------

    def tick(self) -> HangAnalysis:
        """One periodic evaluation: resources, hang state, timeout."""
        now = self._clock()
        snapshot = self._estimator.snapshot
        if self._sampler is not None:
            self._sampler.sample()

        analysis = self._hang_detector.evaluate(snapshot, now)
        self._latest_hang = analysis

        if analysis.is_hanging and self._settings.cancel_on_hang:
            self.cancel(TerminationReason.HANG)

        timeout = self._settings.build_timeout_seconds
        if timeout > 0 and now - snapshot.started_at >= timeout:
            self.cancel(TerminationReason.TIMEOUT)

        if self._on_tick is not None:
            self._on_tick(self.get_current_progress(), analysis)
        return analysis

    def cancel(self, reason: TerminationReason = TerminationReason.CANCELLED) -> bool:
        """Request cancellation.  Returns False if already requested."""
        with self._cancel_lock:
            if self._termination is not None:
                return False
            self._termination = reason
            driver = self._driver
        logger.warning("Cancelling build: %s", reason.value)
        if driver is not None:
            driver.cancel()
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self, driver: BuildDriver) -> SessionReport:
        """Drive a build to completion and return its report."""
        with self._cancel_lock:
            self._driver = driver
            already_cancelled = self._termination is not None
        if already_cancelled:
            driver.cancel()

        ticker = PeriodicTask(
            self._settings.update_interval_seconds,
            self.tick,
            name="buildsift-monitor",
        )
        ticker.start()
        try:
            for line in driver.lines():
                if self.cancelled:
                    break
                self.feed_line(line)
            exit_code = driver.wait()
        finally:
            ticker.stop()
        return self.finish(exit_code)

    def finish(self, exit_code: int | None = None) -> SessionReport:
        """Finalize result and progress.  Idempotent.

        Raises
        ------
        NoInputError
            If the build ended on its own without producing any output.
        """
        if self._report is not None:
            return self._report

        if self._accumulator.line_number == 0 and self._termination is None:
            raise NoInputError(
                "No input received",
                technical_detail=f"The build produced no output (exit code {exit_code}).",
            )

        if self._termination is not None:
            self._accumulator.mark_failed(f"build {self._termination.value}")
        elif exit_code not in (None, 0):
            self._accumulator.mark_failed(f"exit code {exit_code}")

        result = self._accumulator.finalize()
        progress = self._estimator.finalize()
        usage = self._sampler.current_usage() if self._sampler is not None else None
        if usage is not None:
            progress = progress.model_copy(update={"resource_usage": usage})

        self._report = SessionReport(
            result=result,
            progress=progress,
            hang=self._latest_hang,
            resources=usage,
            exit_code=exit_code,
            termination=self._termination or TerminationReason.COMPLETED,
        )
        logger.info(
            "Build %s (%s): %d error(s), %d warning(s)",
            result.status.value,
            self._report.termination.value,
            result.metrics.error_count,
            result.metrics.warning_count,
        )
        return self._report
