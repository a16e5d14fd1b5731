"""Tests for build drivers and the xcodebuild command runner."""

from __future__ import annotations

import sys
import time
from pathlib import Path

import pytest

from buildsift.bridge.driver import (
    CANCELLED_EXIT_CODE,
    BuildDriver,
    ReplayBuildDriver,
    SubprocessBuildDriver,
)
from buildsift.bridge.xcodebuild import XcodebuildRunner
from buildsift.core.errors import BuildLaunchError
from buildsift.core.strategy import CommandRunner
from buildsift.models.rebuild import RebuildCommand


class TestReplayBuildDriver:
    def test_replays_lines_without_terminators(self):
        driver = ReplayBuildDriver(["a\n", "b\r\n", "c"], exit_code=3)
        assert list(driver.lines()) == ["a", "b", "c"]
        assert driver.wait() == 3

    def test_from_file(self, tmp_path: Path):
        log = tmp_path / "build.log"
        log.write_text("one\ntwo\n", encoding="utf-8")
        assert list(ReplayBuildDriver.from_file(log).lines()) == ["one", "two"]

    def test_cancel_stops_iteration(self):
        driver = ReplayBuildDriver(["a", "b", "c"])
        seen = []
        for line in driver.lines():
            seen.append(line)
            driver.cancel()
        assert seen == ["a"]
        assert driver.wait() == ReplayBuildDriver.CANCELLED_EXIT_CODE

    def test_satisfies_protocol(self):
        assert isinstance(ReplayBuildDriver([]), BuildDriver)


class TestSubprocessBuildDriver:
    def test_streams_merged_output(self):
        script = "import sys; print('out'); print('err', file=sys.stderr, flush=True); sys.exit(2)"
        driver = SubprocessBuildDriver([sys.executable, "-c", script])
        assert sorted(driver.lines()) == ["err", "out"]
        assert driver.wait() == 2

    def test_launch_failure(self, tmp_path: Path):
        driver = SubprocessBuildDriver([str(tmp_path / "no-such-build-tool")])
        with pytest.raises(BuildLaunchError) as excinfo:
            driver.start()
        assert excinfo.value.code == "BUILD_LAUNCH_FAILED"

    def test_cancel_terminates_and_is_idempotent(self):
        driver = SubprocessBuildDriver([sys.executable, "-c", "import time; time.sleep(30)"])
        driver.start()
        assert driver.pid is not None
        driver.cancel()
        driver.cancel()
        assert driver.cancelled
        assert driver.wait() != 0

    def test_cancel_stops_build_subprocesses(self):
        # The background sleep inherits the output pipe, like a compiler
        # spawned by xcodebuild.
        driver = SubprocessBuildDriver(["sh", "-c", "sleep 30 & echo started; wait"])
        lines = driver.lines()
        assert next(lines) == "started"

        began = time.monotonic()
        driver.cancel()
        assert list(lines) == []
        assert time.monotonic() - began < 5
        assert driver.wait() != 0

    def test_cancel_before_start_is_safe(self):
        driver = SubprocessBuildDriver(["true"])
        driver.cancel()
        assert list(driver.lines()) == []
        assert driver.pid is None
        assert driver.wait() == CANCELLED_EXIT_CODE

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            SubprocessBuildDriver([])


class TestXcodebuildRunner:
    def test_command_line(self):
        runner = XcodebuildRunner(["-scheme", "App"])
        command = RebuildCommand(description="Clean", arguments=["clean"])
        assert runner.command_line(command) == ["xcodebuild", "-scheme", "App", "clean"]

    def test_own_executable_skips_project_args(self):
        runner = XcodebuildRunner(["-scheme", "App"])
        command = RebuildCommand(
            description="Reset module cache", arguments=["-rf", "/tmp/cache"], executable="rm"
        )
        assert runner.command_line(command) == ["rm", "-rf", "/tmp/cache"]

    def test_success_and_failure(self):
        runner = XcodebuildRunner(executable=sys.executable)
        ok = RebuildCommand(description="ok", arguments=["-c", "pass"])
        bad = RebuildCommand(description="bad", arguments=["-c", "import sys; sys.exit(3)"])
        assert runner.run(ok) is True
        assert runner.run(bad) is False

    def test_timeout_is_failure(self):
        runner = XcodebuildRunner(executable=sys.executable)
        slow = RebuildCommand(
            description="slow", arguments=["-c", "import time; time.sleep(10)"], timeout=0.5
        )
        assert runner.run(slow) is False

    def test_missing_executable_raises_os_error(self, tmp_path: Path):
        runner = XcodebuildRunner(executable=str(tmp_path / "missing"))
        with pytest.raises(OSError):
            runner.run(RebuildCommand(description="x", arguments=[]))

    def test_satisfies_protocol(self):
        assert isinstance(XcodebuildRunner(), CommandRunner)
