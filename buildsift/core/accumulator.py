"""Streaming accumulation of a ``BuildResult`` from build output lines.

Single pass, left to right.  The accumulator owns the running status,
diagnostics, metrics, and timing; it never revisits an earlier line.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from buildsift.core.classifier import LineClassifier, LineTags
from buildsift.core.errors import NoInputError
from buildsift.core.extractor import extract_diagnostic
from buildsift.models.build import BuildMetrics, BuildResult, BuildStatus, BuildTiming
from buildsift.models.diagnostics import (
    Diagnostic,
    DiagnosticSeverity,
    parse_severity,
    should_include,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BuildAccumulator:
    """Accumulates a ``BuildResult`` one line at a time.

    Parameters
    ----------
    min_severity:
        Diagnostics below this severity are counted but not kept.
        Unrecognized values mean "info" (keep everything).
    classifier:
        Line classifier to use when ``consume`` is not handed tags.
    now:
        Wall-clock source for timing; injectable for tests.
    """

    def __init__(
        self,
        *,
        min_severity: str | DiagnosticSeverity = "info",
        classifier: LineClassifier | None = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._min_severity = parse_severity(min_severity)
        self._classifier = classifier or LineClassifier()
        self._now = now

        self._status = BuildStatus.UNKNOWN
        self._diagnostics: list[Diagnostic] = []
        self._error_count = 0
        self._warning_count = 0
        self._compiled_files: list[str] = []
        self._start_time: datetime | None = None
        self._end_time: datetime | None = None
        self._total_duration = 0.0
        self._line_number = 0
        self._finalized = False

    @property
    def line_number(self) -> int:
        """Number of lines consumed so far."""
        return self._line_number

    @property
    def finalized(self) -> bool:
        return self._finalized

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    def consume(self, line: str, tags: LineTags | None = None) -> LineTags:
        """Fold one line into the running result and return its tags.

        Callers that already classified the line pass *tags* to avoid
        classifying twice.  Lines arriving after ``finalize`` are ignored.
        """
        if tags is None:
            tags = self._classifier.classify(line)
        if self._finalized:
            logger.debug("Ignoring line after finalize: %r", line)
            return tags

        self._line_number += 1
        text = line.strip()

        if tags.is_start and self._start_time is None:
            self._start_time = self._now()

        if tags.is_success:
            self._status = BuildStatus.SUCCESS
            self._mark_end()
        elif tags.is_failure or tags.is_error:
            self._status = BuildStatus.FAILED
            self._mark_end()

        for severity in tags.diagnostics:
            diagnostic = extract_diagnostic(text, severity, self._line_number)
            if should_include(diagnostic, self._min_severity):
                self._diagnostics.append(diagnostic)
            if severity == DiagnosticSeverity.ERROR:
                self._error_count += 1
            elif severity == DiagnosticSeverity.WARNING:
                self._warning_count += 1

        if tags.compiled_file is not None:
            self._compiled_files.append(tags.compiled_file)

        return tags

    def _mark_end(self) -> None:
        self._end_time = self._now()
        if self._start_time is not None:
            self._total_duration = (self._end_time - self._start_time).total_seconds()

    def mark_failed(self, reason: str) -> None:
        """Force a failed status, e.g. on non-zero exit or cancellation."""
        if self._finalized:
            return
        logger.info("Marking build failed: %s", reason)
        self._status = BuildStatus.FAILED
        if self._end_time is None:
            self._mark_end()

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def snapshot(self) -> BuildResult:
        """Return the running result without resolving ``unknown`` status."""
        return BuildResult(
            status=self._status,
            diagnostics=list(self._diagnostics),
            metrics=BuildMetrics(
                error_count=self._error_count,
                warning_count=self._warning_count,
                compiled_files=list(self._compiled_files),
            ),
            timing=BuildTiming(
                start_time=self._start_time,
                end_time=self._end_time,
                total_duration=self._total_duration,
            ),
        )

    def finalize(self) -> BuildResult:
        """Resolve ``unknown`` status from the error count and freeze.

        Idempotent: later calls return the same result.
        """
        if not self._finalized:
            if self._status == BuildStatus.UNKNOWN:
                self._status = (
                    BuildStatus.SUCCESS if self._error_count == 0 else BuildStatus.FAILED
                )
            self._finalized = True
        return self.snapshot()


def parse_build_lines(
    lines: Iterable[str],
    *,
    min_severity: str | DiagnosticSeverity = "info",
    now: Callable[[], datetime] = _utc_now,
) -> BuildResult:
    """Scan an iterable of complete lines into a finalized ``BuildResult``.

    Raises
    ------
    NoInputError
        If *lines* yields nothing at all.
    """
    accumulator = BuildAccumulator(min_severity=min_severity, now=now)
    for line in lines:
        accumulator.consume(line)
    if accumulator.line_number == 0:
        raise NoInputError("No input received", technical_detail="The line stream was empty.")
    return accumulator.finalize()


def parse_build_output(
    output: str,
    *,
    min_severity: str | DiagnosticSeverity = "info",
    now: Callable[[], datetime] = _utc_now,
) -> BuildResult:
    """Parse a complete captured build log.

    Raises
    ------
    NoInputError
        If *output* is empty or whitespace only.
    """
    if not output.strip():
        raise NoInputError(
            "No input received",
            technical_detail=f"Received {len(output)} characters of whitespace-only input.",
        )
    return parse_build_lines(output.splitlines(), min_severity=min_severity, now=now)
