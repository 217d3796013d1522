"""Shared test fixtures for sysmon."""

import errno

import pytest

from sysmon.models import Cycle, ProcessSnapshot, SystemSnapshot


def make_process(
    pid: int = 100,
    user: str = "tester",
    name: str = "proc",
    utime: int = 0,
    stime: int = 0,
    rss_kb: int = 1024,
    cpu_percent: float = 0.0,
    mem_percent: float = 0.0,
) -> ProcessSnapshot:
    """Create a ProcessSnapshot for testing."""
    return ProcessSnapshot(
        pid=pid,
        user=user,
        name=name,
        utime=utime,
        stime=stime,
        rss_kb=rss_kb,
        cpu_percent=cpu_percent,
        mem_percent=mem_percent,
    )


def make_system(
    total_ticks: int = 1000,
    idle_ticks: int = 0,
    iowait_ticks: int = 0,
    memory_total_kb: int = 1_000_000,
    memory_available_kb: int = 500_000,
) -> SystemSnapshot:
    """Create a SystemSnapshot for testing."""
    return SystemSnapshot(
        total_ticks=total_ticks,
        idle_ticks=idle_ticks,
        iowait_ticks=iowait_ticks,
        memory_total_kb=memory_total_kb,
        memory_available_kb=memory_available_kb,
    )


def make_cycle(system: SystemSnapshot, *processes: ProcessSnapshot) -> Cycle:
    """Create a Cycle from a system snapshot and processes."""
    return Cycle(system=system, processes={p.pid: p for p in processes})


def stat_line(
    pid: int,
    name: str,
    utime: int = 0,
    stime: int = 0,
    rss_pages: int = 0,
) -> str:
    """Build a /proc/<pid>/stat line with the given values."""
    after = ["S", "1", str(pid), str(pid), "0", "-1", "4194560", "10", "0", "0", "0"]
    after += [str(utime), str(stime), "0", "0", "20", "0", "1", "0", "12345", "1000000"]
    after += [str(rss_pages), "18446744073709551615"]
    return f"{pid} ({name}) " + " ".join(after) + "\n"


class FakeMonitor:
    """Stands in for SystemMonitor, replaying prepared Cycles."""

    def __init__(self, *cycles: Cycle) -> None:
        self._cycles = list(cycles)
        self.samples = 0

    def sample(self) -> Cycle:
        self.samples += 1
        if len(self._cycles) > 1:
            return self._cycles.pop(0)
        return self._cycles[0]


class FakeSource:
    """ProcessSource over in-memory records."""

    page_size_kb = 4

    def __init__(self, records: dict[int, str], uids: dict[int, int] | None = None) -> None:
        self.records = records
        self.uids = uids or {}
        self.users = {0: "root", 1000: "alice"}

    def pids(self) -> list[int]:
        return sorted(self.records)

    def read_record(self, pid: int) -> str:
        record = self.records[pid]
        if record is None:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory")
        return record

    def owner_uid(self, pid: int) -> int:
        return self.uids.get(pid, 1000)

    def resolve_user(self, uid: int) -> str:
        return self.users.get(uid, str(uid))


class FakeDelivery:
    """Records signals instead of sending them."""

    def __init__(self, error: OSError | None = None) -> None:
        self.error = error
        self.sent: list[tuple[int, int]] = []

    def __call__(self, pid: int, sig) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((pid, sig))


@pytest.fixture
def fake_delivery() -> FakeDelivery:
    return FakeDelivery()
