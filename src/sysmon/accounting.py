"""Turns two successive Cycles into CPU and memory percentages."""

from dataclasses import dataclass, replace

from sysmon.models import Cycle, ProcessSnapshot, SystemSnapshot

_EMPTY_SYSTEM = SystemSnapshot()


@dataclass(slots=True, frozen=True)
class Accounting:
    """The result of accounting one Cycle against its predecessor."""

    cycle: Cycle
    global_cpu_percent: float
    total_delta: int
    processes: tuple[ProcessSnapshot, ...]  # Annotated, ascending pid


def account(previous: Cycle | None, current: Cycle) -> Accounting:
    """
    Compute global and per-process CPU percentages plus memory percentages.

    A missing ``previous`` counts as all-zero counters. A process absent
    from ``previous`` is measured against its absolute tick count, so its
    first reading is inflated; that is expected. Neither input is modified.
    """
    prev_system = previous.system if previous is not None else _EMPTY_SYSTEM
    prev_processes = previous.processes if previous is not None else {}
    system = current.system

    total_delta = system.total_ticks - prev_system.total_ticks
    if total_delta <= 0:
        # Counter reset or no time passed
        total_delta = 1

    idle_delta = max(0, system.idle_all_ticks - prev_system.idle_all_ticks)
    global_cpu_percent = 100.0 * (1.0 - idle_delta / total_delta)

    memory_total = system.memory_total_kb
    annotated = []
    for pid in sorted(current.processes):
        proc = current.processes[pid]
        prev = prev_processes.get(pid)
        prev_ticks = prev.ticks if prev is not None else 0
        proc_delta = max(0, proc.ticks - prev_ticks)
        mem_percent = 100.0 * proc.rss_kb / memory_total if memory_total > 0 else 0.0
        annotated.append(
            replace(
                proc,
                cpu_percent=100.0 * proc_delta / total_delta,
                mem_percent=mem_percent,
            )
        )

    return Accounting(
        cycle=current,
        global_cpu_percent=global_cpu_percent,
        total_delta=total_delta,
        processes=tuple(annotated),
    )
