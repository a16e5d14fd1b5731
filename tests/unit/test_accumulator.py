"""Tests for BuildAccumulator and the one-shot parse helpers."""

from __future__ import annotations

import pytest

from buildsift.core.accumulator import BuildAccumulator, parse_build_lines, parse_build_output
from buildsift.core.errors import NoInputError
from buildsift.models.build import BuildStatus
from buildsift.models.diagnostics import DiagnosticSeverity


class TestParseBuildOutput:
    def test_failed_build(self, failed_build_log: str, wall_clock):
        result = parse_build_output(failed_build_log, now=wall_clock)
        assert result.status == BuildStatus.FAILED
        assert result.metrics.error_count == 2
        assert result.metrics.warning_count == 1
        assert result.metrics.compiled_files == [
            "AppDelegate.swift",
            "ViewController.swift",
            "Model.swift",
        ]
        assert [d.line_number for d in result.diagnostics] == [5, 7, 9]
        assert result.errors[0].message == "cannot find 'foo' in scope"
        assert result.warnings[0].location == "/Users/dev/MyApp/AppDelegate.swift:12:5"

    def test_successful_build(self, successful_build_log: str, wall_clock):
        result = parse_build_output(successful_build_log, now=wall_clock)
        assert result.status == BuildStatus.SUCCESS
        assert result.metrics.error_count == 0
        assert result.metrics.compiled_files == ["Core.swift", "Utils.swift"]
        assert result.timing.total_duration == pytest.approx(1.0)

    def test_timing_tracks_last_terminal_signal(self, failed_build_log: str, wall_clock):
        # start, error, error, BUILD FAILED -> four readings one second apart
        result = parse_build_output(failed_build_log, now=wall_clock)
        assert result.timing.start_time is not None
        assert result.timing.end_time is not None
        assert result.timing.total_duration == pytest.approx(3.0)

    def test_success_marker_only(self):
        result = parse_build_output("** BUILD SUCCEEDED **")
        assert result.status == BuildStatus.SUCCESS
        assert result.diagnostics == []
        assert result.timing.total_duration == 0.0

    def test_unknown_resolves_to_success_without_errors(self):
        result = parse_build_output("Compiling A.swift (1/1)\nnote: done")
        assert result.status == BuildStatus.SUCCESS

    def test_interleaved_compiles_and_diagnostics(self):
        lines = [
            "Compiling A.swift (1/3)",
            "/p/A.swift:1:1: error: first",
            "Compiling B.swift (2/3)",
            "/p/B.swift:2:2: warning: careful",
            "Compiling C.swift (3/3)",
            "/p/C.swift:3:3: error: second",
        ]
        result = parse_build_lines(lines)
        assert result.status == BuildStatus.FAILED
        assert result.metrics.error_count == 2
        assert result.metrics.warning_count == 1
        assert len(result.metrics.compiled_files) == 3

    def test_empty_input_raises(self):
        with pytest.raises(NoInputError) as excinfo:
            parse_build_output("   \n\n")
        assert excinfo.value.to_structured().code == "NO_INPUT"

    def test_empty_line_stream_raises(self):
        with pytest.raises(NoInputError):
            parse_build_lines([])

    def test_blank_lines_count_toward_line_numbers(self):
        result = parse_build_lines(["", "", "/a.swift:1:1: error: x"])
        assert result.diagnostics[0].line_number == 3


class TestSeverityFilter:
    def test_error_threshold_keeps_counts(self, failed_build_log: str):
        result = parse_build_output(failed_build_log, min_severity="error")
        assert [d.severity for d in result.diagnostics] == [
            DiagnosticSeverity.ERROR,
            DiagnosticSeverity.ERROR,
        ]
        # Counts are independent of the filter.
        assert result.metrics.warning_count == 1

    def test_unknown_threshold_keeps_everything(self, failed_build_log: str):
        result = parse_build_output(failed_build_log, min_severity="loud")
        assert len(result.diagnostics) == 3


class TestBuildAccumulator:
    def test_snapshot_keeps_unknown_status(self):
        acc = BuildAccumulator()
        acc.consume("Compiling A.swift (1/2)")
        assert acc.snapshot().status == BuildStatus.UNKNOWN

    def test_finalize_is_idempotent(self):
        acc = BuildAccumulator()
        acc.consume("/a.swift:1:1: error: x")
        first = acc.finalize()
        second = acc.finalize()
        assert first == second
        assert acc.finalized

    def test_lines_after_finalize_are_ignored(self):
        acc = BuildAccumulator()
        acc.consume("** BUILD SUCCEEDED **")
        acc.finalize()
        acc.consume("/a.swift:1:1: error: late")
        assert acc.line_number == 1
        assert acc.snapshot().metrics.error_count == 0
        assert acc.snapshot().status == BuildStatus.SUCCESS

    def test_mark_failed(self, wall_clock):
        acc = BuildAccumulator(now=wall_clock)
        acc.consume("xcodebuild build")
        acc.mark_failed("exit code 65")
        result = acc.finalize()
        assert result.status == BuildStatus.FAILED
        assert result.timing.total_duration == pytest.approx(1.0)

    def test_failure_marker_after_success_wins(self):
        acc = BuildAccumulator()
        acc.consume("** BUILD SUCCEEDED **")
        acc.consume("** BUILD FAILED **")
        assert acc.finalize().status == BuildStatus.FAILED

    def test_start_time_set_once(self, wall_clock):
        acc = BuildAccumulator(now=wall_clock)
        acc.consume("xcodebuild build")
        first = acc.snapshot().timing.start_time
        acc.consume("xcodebuild build again")
        assert acc.snapshot().timing.start_time == first

    def test_consume_returns_tags(self):
        acc = BuildAccumulator()
        tags = acc.consume("Compiling A.swift (1/2)")
        assert tags.compiled_file == "A.swift"
