"""Stateless per-line classification of build tool output.

Each category is evaluated independently, so one line may carry several
tags at once (e.g. a phase change that is also a diagnostic).  The
classifier never mutates or consumes its input.

Categories
----------
target change
    ``Build target <name> of project`` (case-insensitive).
phase change
    Ordered keyword -> label rules, first match wins.
file progress
    ``Compiling ... (current/total)``.
compilation percent
    ``Compiling``/``Building`` plus an ``NN%`` token.
diagnostic
    ``": error: "`` or ``": warning: "``.

It additionally reports build start/success/failure markers and the
source file named on a ``Compiling`` line.
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, ConfigDict

from buildsift.models.diagnostics import DiagnosticSeverity

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Patterns and markers
# ---------------------------------------------------------------------------

TARGET_PATTERN = re.compile(r"build target (.+?) of project", re.IGNORECASE)
FILE_COUNTER_PATTERN = re.compile(r"\((\d+)/(\d+)\)")
PERCENT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)%")
SOURCE_FILE_PATTERN = re.compile(
    r"([^\s/()\\]+\.(?:swift|mm|m|cpp|cc|c))(?![\w.])"
)

COMPILING_MARKER = "Compiling"
BUILDING_MARKER = "Building"
ERROR_SEPARATOR = ": error: "
WARNING_SEPARATOR = ": warning: "
START_MARKERS: tuple[str, ...] = ("BUILD START", "xcodebuild")
SUCCESS_MARKER = "BUILD SUCCEEDED"
FAILURE_MARKER = "BUILD FAILED"

# Ordered keyword -> phase label rules.  First match wins.
PHASE_RULES: list[tuple[str, str]] = [
    ("CompileSwift", "Compiling Swift"),
    ("PhaseScriptExecution", "Running Scripts"),
    ("Ld ", "Linking"),
    ("Copy", "Copying Resources"),
    ("Processing", "Processing"),
    ("Building", "Building"),
    ("CompileC", "Compiling C"),
    ("CodeSign", "Code Signing"),
]


# ---------------------------------------------------------------------------
# Tag models
# ---------------------------------------------------------------------------


class FileProgress(BaseModel):
    """A ``(current/total)`` counter from a compiling-file line."""

    model_config = ConfigDict(frozen=True)

    current: int
    total: int
    filename: str | None = None


class LineTags(BaseModel):
    """Independent classification results for one line."""

    model_config = ConfigDict(frozen=True)

    target: str | None = None
    phase: str | None = None
    file_progress: FileProgress | None = None
    percent: float | None = None  # fraction, NN% -> NN/100
    diagnostics: tuple[DiagnosticSeverity, ...] = ()
    compiled_file: str | None = None
    is_start: bool = False
    is_success: bool = False
    is_failure: bool = False

    @property
    def has_progress_signal(self) -> bool:
        """True if any forward-progress category matched."""
        return (
            self.target is not None
            or self.phase is not None
            or self.file_progress is not None
            or self.percent is not None
        )

    @property
    def is_error(self) -> bool:
        return DiagnosticSeverity.ERROR in self.diagnostics


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


class LineClassifier:
    """Tags lines of build output.  Holds no per-stream state.

    Parameters
    ----------
    phase_rules:
        Ordered ``(keyword, label)`` pairs.  Defaults to ``PHASE_RULES``.
    """

    def __init__(self, phase_rules: list[tuple[str, str]] | None = None) -> None:
        self._phase_rules = list(phase_rules if phase_rules is not None else PHASE_RULES)

    def classify(self, line: str) -> LineTags:
        """Classify one complete line of output."""
        text = line.strip()
        if not text:
            return LineTags()

        return LineTags(
            target=self.parse_target(text),
            phase=self.parse_phase(text),
            file_progress=self.parse_file_progress(text),
            percent=self.parse_percent(text),
            diagnostics=self.parse_diagnostic_severities(text),
            compiled_file=self.parse_compiled_file(text),
            is_start=any(marker in text for marker in START_MARKERS),
            is_success=SUCCESS_MARKER in text,
            is_failure=FAILURE_MARKER in text,
        )

    # ------------------------------------------------------------------
    # Per-category parsers
    # ------------------------------------------------------------------

    def parse_target(self, line: str) -> str | None:
        match = TARGET_PATTERN.search(line)
        if match is None:
            return None
        target = match.group(1).strip()
        return target or None

    def parse_phase(self, line: str) -> str | None:
        for keyword, label in self._phase_rules:
            if keyword in line:
                return label
        return None

    def parse_file_progress(self, line: str) -> FileProgress | None:
        if COMPILING_MARKER not in line:
            return None
        match = FILE_COUNTER_PATTERN.search(line)
        if match is None:
            return None
        try:
            current = int(match.group(1))
            total = int(match.group(2))
        except ValueError:
            logger.debug("Unparseable file counter in line: %r", line)
            return None
        return FileProgress(
            current=current,
            total=total,
            filename=self.parse_compiled_file(line),
        )

    def parse_percent(self, line: str) -> float | None:
        if "%" not in line:
            return None
        if COMPILING_MARKER not in line and BUILDING_MARKER not in line:
            return None
        match = PERCENT_PATTERN.search(line)
        if match is None:
            return None
        try:
            return float(match.group(1)) / 100.0
        except ValueError:
            logger.debug("Unparseable percentage in line: %r", line)
            return None

    def parse_diagnostic_severities(self, line: str) -> tuple[DiagnosticSeverity, ...]:
        severities: list[DiagnosticSeverity] = []
        if ERROR_SEPARATOR in line:
            severities.append(DiagnosticSeverity.ERROR)
        if WARNING_SEPARATOR in line:
            severities.append(DiagnosticSeverity.WARNING)
        return tuple(severities)

    def parse_compiled_file(self, line: str) -> str | None:
        if COMPILING_MARKER not in line:
            return None
        matches = SOURCE_FILE_PATTERN.findall(line)
        return matches[-1] if matches else None
