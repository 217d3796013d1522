"""System sampling engine for sysmon."""

import os

import psutil
import structlog

from sysmon.models import Cycle, ProcessSnapshot, SystemSnapshot
from sysmon.procfs import LinuxProcessSource, ProcessSource, parse_stat_record

log = structlog.get_logger()

CLOCK_TICKS = os.sysconf("SC_CLK_TCK")


def _to_ticks(seconds: float) -> int:
    return round(seconds * CLOCK_TICKS)


class CountersReader:
    """
    Reads the global CPU tick totals and memory totals.

    Never raises: when a source can't be read, the values from the last
    successful read are returned for that source.
    """

    def __init__(self) -> None:
        self._last = SystemSnapshot()

    @property
    def last(self) -> SystemSnapshot:
        """The most recently returned counters."""
        return self._last

    def read(self) -> SystemSnapshot:
        """Read the current counters."""
        total, idle, iowait = (
            self._last.total_ticks,
            self._last.idle_ticks,
            self._last.iowait_ticks,
        )
        memory_total, memory_available = (
            self._last.memory_total_kb,
            self._last.memory_available_kb,
        )

        try:
            times = psutil.cpu_times()
        except (OSError, psutil.Error) as e:
            log.warning("cpu_counters_unavailable", error=str(e))
        else:
            total = sum(_to_ticks(value) for value in times)
            idle = _to_ticks(times.idle)
            iowait = _to_ticks(getattr(times, "iowait", 0.0))

        try:
            mem = psutil.virtual_memory()
        except (OSError, psutil.Error) as e:
            log.warning("memory_counters_unavailable", error=str(e))
        else:
            memory_total = mem.total // 1024
            memory_available = mem.available // 1024

        self._last = SystemSnapshot(
            total_ticks=total,
            idle_ticks=idle,
            iowait_ticks=iowait,
            memory_total_kb=memory_total,
            memory_available_kb=memory_available,
        )
        return self._last


class SnapshotCollector:
    """
    Collects accounting records for every live process.

    Processes that exit mid-scan or have unreadable records are left out of
    the result; nothing is raised for them.
    """

    def __init__(self, source: ProcessSource | None = None) -> None:
        self._source = source if source is not None else LinuxProcessSource()

    def collect(self) -> dict[int, ProcessSnapshot]:
        """Return a pid -> ProcessSnapshot map of the current process table."""
        try:
            pids = self._source.pids()
        except (OSError, psutil.Error) as e:
            log.warning("process_enumeration_failed", error=str(e))
            return {}

        processes: dict[int, ProcessSnapshot] = {}
        for pid in pids:
            try:
                processes[pid] = self._read_process(pid)
            except (OSError, ValueError, psutil.Error) as e:
                # Exited mid-scan or short/garbled record
                log.debug("process_skipped", pid=pid, error=str(e))
                continue

        return processes

    def _read_process(self, pid: int) -> ProcessSnapshot:
        record = parse_stat_record(self._source.read_record(pid), self._source.page_size_kb)
        uid = self._source.owner_uid(pid)
        return ProcessSnapshot(
            pid=pid,
            user=self._source.resolve_user(uid),
            name=record.name,
            utime=record.utime,
            stime=record.stime,
            rss_kb=record.rss_kb,
        )


class SystemMonitor:
    """Produces one complete Cycle per call to ``sample``."""

    def __init__(
        self,
        counters: CountersReader | None = None,
        collector: SnapshotCollector | None = None,
    ) -> None:
        self._counters = counters if counters is not None else CountersReader()
        self._collector = collector if collector is not None else SnapshotCollector()

    def sample(self) -> Cycle:
        """Read the system counters, then the process table."""
        system = self._counters.read()
        processes = self._collector.collect()
        log.debug("cycle_sampled", processes=len(processes), total_ticks=system.total_ticks)
        return Cycle(system=system, processes=processes)
