"""``CommandRunner`` that executes rebuild commands with xcodebuild."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from buildsift.models.rebuild import RebuildCommand

logger = logging.getLogger(__name__)


class XcodebuildRunner:
    """Runs ``RebuildCommand`` argument lists through ``xcodebuild``.

    Parameters
    ----------
    project_args:
        Arguments prepended to every command, e.g.
        ``["-workspace", "App.xcworkspace", "-scheme", "App"]``.
    executable:
        The build tool to invoke.
    cwd:
        Working directory for every command.
    """

    def __init__(
        self,
        project_args: list[str] | None = None,
        *,
        executable: str = "xcodebuild",
        cwd: Path | None = None,
    ) -> None:
        self._project_args = list(project_args or [])
        self._executable = executable
        self._cwd = cwd

    def command_line(self, command: RebuildCommand) -> list[str]:
        """Full argv for *command*.

        Commands that name their own executable run without the project
        arguments.
        """
        if command.executable is not None:
            return [command.executable, *command.arguments]
        return [self._executable, *self._project_args, *command.arguments]

    def run(self, command: RebuildCommand) -> bool:
        argv = self.command_line(command)
        try:
            completed = subprocess.run(
                argv,
                cwd=self._cwd,
                capture_output=True,
                text=True,
                timeout=command.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error("%s timed out after %ss", command.description, command.timeout)
            return False
        if completed.returncode != 0:
            tail = (completed.stderr or completed.stdout or "").strip().splitlines()[-5:]
            logger.error(
                "%s exited with %d: %s",
                command.description,
                completed.returncode,
                " | ".join(tail),
            )
            return False
        return True
