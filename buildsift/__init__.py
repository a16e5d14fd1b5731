"""buildsift: structured diagnostics and live monitoring for build output.

  - Line classification for targets, phases, file counters, and markers
  - Diagnostic extraction with minimum-severity filtering
  - Build status, counts, compiled files, and timing from a line stream
  - Weighted progress estimation with ETA
  - Hang detection (active -> suspect -> hanging) with phase-aware advice
  - CPU/memory sampling through psutil
  - Rebuild strategy selection and execution
"""

__version__ = "0.1.0"
__description__ = "Structured diagnostics, progress, and hang detection for build output"

from buildsift.core.accumulator import BuildAccumulator, parse_build_lines, parse_build_output
from buildsift.core.classifier import LineClassifier
from buildsift.core.hang_detector import HangDetector
from buildsift.core.progress import ProgressEstimator
from buildsift.core.resources import ResourceSampler
from buildsift.core.session import MonitorSession
from buildsift.core.strategy import execute_strategy, select_strategy
from buildsift.cli.app import app as cli

__all__ = [
    "BuildAccumulator",
    "HangDetector",
    "LineClassifier",
    "MonitorSession",
    "ProgressEstimator",
    "ResourceSampler",
    "cli",
    "execute_strategy",
    "parse_build_lines",
    "parse_build_output",
    "select_strategy",
    "__version__",
]
