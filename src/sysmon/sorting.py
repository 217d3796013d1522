"""Ordering of the process list."""

from collections.abc import Iterable

from sysmon.models import ProcessSnapshot, SortMode

# CPU and MEM break ties on ascending pid so the order is total.
_SORT_KEYS = {
    SortMode.CPU: lambda p: (-p.cpu_percent, p.pid),
    SortMode.MEM: lambda p: (-p.mem_percent, p.pid),
    SortMode.PID: lambda p: p.pid,
}


def sort_processes(
    processes: Iterable[ProcessSnapshot], mode: SortMode
) -> list[ProcessSnapshot]:
    """Return a new list of ``processes`` ordered by ``mode``."""
    try:
        key_func = _SORT_KEYS[mode]
    except KeyError:
        raise ValueError(f"Unknown sort mode: {mode!r}") from None
    return sorted(processes, key=key_func)
