"""Access to the Linux process table.

The rest of sysmon talks to the operating system only through the
``ProcessSource`` protocol and ``deliver_signal`` defined here, so tests can
swap in fakes.
"""

import os
import pwd
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import psutil

# Offsets into the fields that follow the ") " closing the command name.
# Field 0 is the process state (the third field of /proc/<pid>/stat).
UTIME_FIELD = 11
STIME_FIELD = 12
RSS_FIELD = 21
MIN_FIELDS = RSS_FIELD + 1


class MalformedRecordError(ValueError):
    """Raised when a /proc/<pid>/stat record cannot be parsed."""


@dataclass(slots=True, frozen=True)
class StatRecord:
    """The parts of a stat record sysmon uses."""

    name: str
    utime: int
    stime: int
    rss_kb: int


def parse_stat_record(record: str, page_size_kb: int) -> StatRecord:
    """
    Parse a raw /proc/<pid>/stat line.

    The command name is taken from between the first '(' and the last ')',
    so names containing spaces or parentheses survive intact.

    Raises:
        MalformedRecordError: If the delimiters are missing or the record
            is too short or holds non-numeric fields.
    """
    start = record.find("(")
    end = record.rfind(")")
    if start == -1 or end == -1 or end <= start:
        raise MalformedRecordError(f"no command delimiters in {record[:40]!r}")

    name = record[start + 1 : end]
    fields = record[end + 2 :].split()
    if len(fields) < MIN_FIELDS:
        raise MalformedRecordError(f"expected {MIN_FIELDS} fields, got {len(fields)}")

    try:
        utime = int(fields[UTIME_FIELD])
        stime = int(fields[STIME_FIELD])
        rss_pages = int(fields[RSS_FIELD])
    except ValueError as e:
        raise MalformedRecordError(str(e)) from e

    rss_kb = rss_pages * page_size_kb if rss_pages > 0 else 0
    return StatRecord(name=name, utime=utime, stime=stime, rss_kb=rss_kb)


class ProcessSource(Protocol):
    """Read-only view of the live process table."""

    page_size_kb: int

    def pids(self) -> list[int]: ...

    def read_record(self, pid: int) -> str: ...

    def owner_uid(self, pid: int) -> int: ...

    def resolve_user(self, uid: int) -> str: ...


class LinuxProcessSource:
    """ProcessSource backed by /proc and psutil."""

    def __init__(self, proc_root: Path = Path("/proc")) -> None:
        self._proc_root = proc_root
        self._users: dict[int, str] = {}
        self.page_size_kb = max(1, os.sysconf("SC_PAGE_SIZE") // 1024)

    def pids(self) -> list[int]:
        return psutil.pids()

    def read_record(self, pid: int) -> str:
        # Command names are arbitrary bytes
        raw = (self._proc_root / str(pid) / "stat").read_bytes()
        return raw.decode("utf-8", errors="replace")

    def owner_uid(self, pid: int) -> int:
        return psutil.Process(pid).uids().real

    def resolve_user(self, uid: int) -> str:
        """Map a uid to a login name, falling back to the numeric uid."""
        name = self._users.get(uid)
        if name is None:
            try:
                name = pwd.getpwuid(uid).pw_name
            except KeyError:
                name = str(uid)
            self._users[uid] = name
        return name


def deliver_signal(pid: int, sig: signal.Signals) -> None:
    """
    Send a signal to a process.

    Raises:
        OSError: If delivery fails; ``strerror`` carries the OS reason.
    """
    os.kill(pid, sig)
