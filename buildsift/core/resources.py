"""CPU and memory sampling behind a ``SystemMetricsProvider`` capability.

The sampler runs on the periodic clock, independent of line arrival.
It keeps running peaks that never decrease and publishes each reading
as a frozen ``ResourceUsage`` by swapping one reference.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import psutil

from buildsift.models.progress import ResourceUsage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class SystemMetricsProvider(Protocol):
    """Source of raw system measurements.

    Any object with these three methods satisfies the protocol.
    """

    def cpu_percent(self) -> float:
        """CPU utilisation in percent since the previous call."""
        ...

    def memory_bytes(self) -> int:
        """Resident memory in bytes."""
        ...

    def memory_pressure(self) -> float:
        """System memory pressure as a fraction in [0, 1]."""
        ...


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class PsutilMetricsProvider:
    """Real measurements via psutil.

    Parameters
    ----------
    pid:
        When given, CPU and memory are summed over this process and all
        of its descendants (the build's process tree).  Otherwise
        system-wide figures are reported.
    """

    def __init__(self, pid: int | None = None) -> None:
        self._pid = pid
        self._processes: dict[int, psutil.Process] = {}
        # Prime the system-wide counter; psutil's first call returns 0.0.
        psutil.cpu_percent(interval=None)

    def _process_tree(self) -> list[psutil.Process]:
        try:
            root = psutil.Process(self._pid)
            found = [root, *root.children(recursive=True)]
        except psutil.NoSuchProcess:
            return []
        live: dict[int, psutil.Process] = {}
        for proc in found:
            # Reuse Process objects so cpu_percent() measures between calls.
            live[proc.pid] = self._processes.get(proc.pid, proc)
        self._processes = live
        return list(live.values())

    def cpu_percent(self) -> float:
        if self._pid is None:
            return float(psutil.cpu_percent(interval=None))
        total = 0.0
        for proc in self._process_tree():
            try:
                total += proc.cpu_percent(interval=None)
            except psutil.Error:
                continue
        return total

    def memory_bytes(self) -> int:
        if self._pid is None:
            return int(psutil.virtual_memory().used)
        total = 0
        for proc in self._process_tree():
            try:
                total += proc.memory_info().rss
            except psutil.Error:
                continue
        return total

    def memory_pressure(self) -> float:
        return min(max(psutil.virtual_memory().percent / 100.0, 0.0), 1.0)


class StaticMetricsProvider:
    """Fixed or scripted measurements for tests and dry runs.

    Parameters
    ----------
    cpu:
        A single value, or a sequence replayed one value per call
        (the last value repeats once exhausted).
    memory:
        Same as *cpu*, in bytes.
    pressure:
        Constant memory pressure fraction.
    """

    def __init__(
        self,
        cpu: float | list[float] = 0.0,
        memory: int | list[int] = 0,
        pressure: float = 0.0,
    ) -> None:
        self._cpu = list(cpu) if isinstance(cpu, list) else [cpu]
        self._memory = list(memory) if isinstance(memory, list) else [memory]
        self._pressure = pressure
        self._cpu_calls = 0
        self._memory_calls = 0

    def cpu_percent(self) -> float:
        value = self._cpu[min(self._cpu_calls, len(self._cpu) - 1)]
        self._cpu_calls += 1
        return value

    def memory_bytes(self) -> int:
        value = self._memory[min(self._memory_calls, len(self._memory) - 1)]
        self._memory_calls += 1
        return value

    def memory_pressure(self) -> float:
        return self._pressure


# ---------------------------------------------------------------------------
# Sampler
# ---------------------------------------------------------------------------


class ResourceSampler:
    """Polls a ``SystemMetricsProvider`` and tracks peak usage.

    Parameters
    ----------
    provider:
        Where measurements come from.  Defaults to system-wide psutil.
    """

    def __init__(self, provider: SystemMetricsProvider | None = None) -> None:
        self._provider = provider or PsutilMetricsProvider()
        self._peak_cpu = 0.0
        self._peak_memory = 0
        self._current: ResourceUsage | None = None

    @property
    def peak_cpu(self) -> float:
        return self._peak_cpu

    @property
    def peak_memory(self) -> int:
        return self._peak_memory

    def sample(self) -> ResourceUsage:
        """Take one reading, update peaks, and publish it."""
        cpu = max(0.0, float(self._provider.cpu_percent()))
        memory = max(0, int(self._provider.memory_bytes()))
        self._peak_cpu = max(self._peak_cpu, cpu)
        self._peak_memory = max(self._peak_memory, memory)
        usage = ResourceUsage(
            cpu_usage=cpu,
            memory_usage=memory,
            peak_cpu_usage=self._peak_cpu,
            peak_memory_usage=self._peak_memory,
        )
        self._current = usage
        logger.debug("Resource sample: cpu=%.1f%% mem=%d bytes", cpu, memory)
        return usage

    def current_usage(self) -> ResourceUsage | None:
        """The most recent reading, or None before the first sample."""
        return self._current
