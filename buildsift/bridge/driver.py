"""Build drivers — the boundary between buildsift and the build process.

A driver provides three things and nothing else:

1. ``lines()`` — complete output lines, in order, without terminators.
2. ``wait()`` — block until the build exits and return its exit code.
3. ``cancel()`` — request termination.  Calling it twice is safe.

``SubprocessBuildDriver`` runs a real command with stderr merged into
stdout.  ``ReplayBuildDriver`` replays captured output, for tests and
for re-analysing saved logs.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Protocol, runtime_checkable

import psutil

from buildsift.core.errors import BuildLaunchError

logger = logging.getLogger(__name__)

TERMINATE_GRACE_SECONDS = 10.0

# Reported by wait() for a build that was cancelled before it ran.
CANCELLED_EXIT_CODE = -15


@runtime_checkable
class BuildDriver(Protocol):
    """Protocol for sources of build output."""

    def lines(self) -> Iterator[str]:
        ...

    def wait(self) -> int:
        ...

    def cancel(self) -> None:
        ...


class SubprocessBuildDriver:
    """Runs a build command and streams its merged stdout/stderr.

    Parameters
    ----------
    args:
        The command line, e.g. ``["xcodebuild", "build", "-scheme", "App"]``.
    cwd:
        Working directory for the build.
    """

    def __init__(self, args: list[str], *, cwd: Path | None = None) -> None:
        if not args:
            raise ValueError("SubprocessBuildDriver needs a non-empty command")
        self._args = list(args)
        self._cwd = cwd
        self._process: subprocess.Popen[str] | None = None
        self._cancelled = False
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        """Launch the process.  Called implicitly by ``lines()``.

        Does nothing once the driver has been cancelled.
        """
        with self._lock:
            if self._process is not None or self._cancelled:
                return
            try:
                self._process = subprocess.Popen(
                    self._args,
                    cwd=self._cwd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    errors="replace",
                    bufsize=1,
                )
            except OSError as exc:
                raise BuildLaunchError(
                    f"Could not start build command: {self._args[0]}",
                    technical_detail=str(exc),
                ) from exc
        logger.info("Started build (pid %d): %s", self._process.pid, " ".join(self._args))

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    def lines(self) -> Iterator[str]:
        self.start()
        if self._process is None:
            return
        assert self._process.stdout is not None
        for raw in self._process.stdout:
            yield raw.rstrip("\r\n")

    def wait(self) -> int:
        self.start()
        if self._process is None:
            return CANCELLED_EXIT_CODE
        return self._process.wait()

    def cancel(self) -> None:
        """Terminate the build and every process it spawned.

        Compiler and linker subprocesses inherit the output pipe, so the
        whole tree must exit before ``lines()`` can finish.
        """
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            process = self._process
        if process is None or process.poll() is not None:
            return
        logger.warning("Terminating build (pid %d)", process.pid)
        try:
            descendants = psutil.Process(process.pid).children(recursive=True)
        except psutil.NoSuchProcess:
            descendants = []

        process.terminate()
        for child in descendants:
            _signal_process(child, kill=False)
        try:
            process.wait(timeout=TERMINATE_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("Build did not exit after terminate; killing pid %d", process.pid)
            process.kill()

        # Orphaned subprocesses still hold the pipe once the build is gone.
        for child in descendants:
            if _is_alive(child):
                logger.warning("Build subprocess %d outlived the build; killing", child.pid)
                _signal_process(child, kill=True)


def _is_alive(proc: psutil.Process) -> bool:
    try:
        return proc.is_running() and proc.status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False


def _signal_process(proc: psutil.Process, *, kill: bool) -> None:
    try:
        if kill:
            proc.kill()
        else:
            proc.terminate()
    except psutil.NoSuchProcess:
        logger.debug("Build subprocess %d already exited", proc.pid)


class ReplayBuildDriver:
    """Replays captured output as if it came from a live build.

    Parameters
    ----------
    lines:
        The captured lines.  Trailing newlines are stripped.
    exit_code:
        Exit code reported by ``wait()`` when not cancelled.
    """

    CANCELLED_EXIT_CODE = CANCELLED_EXIT_CODE

    def __init__(self, lines: Iterable[str], exit_code: int = 0) -> None:
        self._lines = [line.rstrip("\r\n") for line in lines]
        self._exit_code = exit_code
        self._cancelled = False
        self.cancel_calls = 0

    @classmethod
    def from_file(cls, path: Path, exit_code: int = 0) -> ReplayBuildDriver:
        with path.open(encoding="utf-8", errors="replace") as fh:
            return cls(fh.readlines(), exit_code=exit_code)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def lines(self) -> Iterator[str]:
        for line in self._lines:
            if self._cancelled:
                return
            yield line

    def wait(self) -> int:
        return self.CANCELLED_EXIT_CODE if self._cancelled else self._exit_code

    def cancel(self) -> None:
        self.cancel_calls += 1
        self._cancelled = True
