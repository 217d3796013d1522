"""Data models for sysmon."""

from dataclasses import dataclass, field
from enum import Enum


class SortMode(Enum):
    """Sort modes for the process list, cycled round-robin."""

    CPU = "CPU"
    MEM = "MEM"
    PID = "PID"

    def next(self) -> "SortMode":
        """Return the mode that follows this one."""
        modes = list(SortMode)
        return modes[(modes.index(self) + 1) % len(modes)]


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Immutable snapshot of one process's accounting record."""

    pid: int
    user: str
    name: str
    utime: int  # Clock ticks in user mode
    stime: int  # Clock ticks in kernel mode
    rss_kb: int
    cpu_percent: float = 0.0
    mem_percent: float = 0.0

    @property
    def ticks(self) -> int:
        """Accumulated scheduler ticks (user + kernel)."""
        return self.utime + self.stime


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """Immutable snapshot of the global CPU and memory counters."""

    total_ticks: int = 0
    idle_ticks: int = 0
    iowait_ticks: int = 0
    memory_total_kb: int = 0
    memory_available_kb: int = 0

    @property
    def idle_all_ticks(self) -> int:
        """Idle plus io-wait ticks."""
        return self.idle_ticks + self.iowait_ticks

    @property
    def memory_used_kb(self) -> int:
        return max(0, self.memory_total_kb - self.memory_available_kb)


@dataclass(slots=True, frozen=True)
class Cycle:
    """One complete sample: system counters plus the pid -> process map."""

    system: SystemSnapshot
    processes: dict[int, ProcessSnapshot] = field(default_factory=dict)
