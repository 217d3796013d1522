"""The sysmon control loop, one ``tick`` per iteration."""

from dataclasses import dataclass
from enum import Enum

import structlog

from sysmon.accounting import Accounting, account
from sysmon.kill import KillState, KillWorkflow
from sysmon.models import Cycle, ProcessSnapshot, SortMode, SystemSnapshot
from sysmon.monitor import SystemMonitor
from sysmon.selection import Selection
from sysmon.sorting import sort_processes

log = structlog.get_logger()


class Command(Enum):
    """Operator commands outside the kill confirmation."""

    UP = "up"
    DOWN = "down"
    PAGE_UP = "pageup"
    PAGE_DOWN = "pagedown"
    SORT = "s"
    KILL = "k"
    REFRESH = "r"
    QUIT = "q"


def command_for_key(key: str) -> Command | None:
    """Map a key name to a Command; single letters are case-insensitive."""
    if len(key) == 1:
        key = key.lower()
    try:
        return Command(key)
    except ValueError:
        return None


@dataclass(slots=True, frozen=True)
class Frame:
    """Everything the rendering surface shows, derived from a single Cycle."""

    global_cpu_percent: float
    system: SystemSnapshot
    sort_mode: SortMode
    interval: int
    processes: tuple[ProcessSnapshot, ...]
    selected: int
    top: int
    viewport_height: int

    @property
    def memory_used_percent(self) -> float:
        if self.system.memory_total_kb <= 0:
            return 0.0
        return 100.0 * self.system.memory_used_kb / self.system.memory_total_kb

    @property
    def visible(self) -> tuple[ProcessSnapshot, ...]:
        """The rows inside the viewport."""
        return self.processes[self.top : self.top + self.viewport_height]

    @property
    def selected_process(self) -> ProcessSnapshot | None:
        if 0 <= self.selected < len(self.processes):
            return self.processes[self.selected]
        return None


class RefreshScheduler:
    """
    Coordinates timed refresh, operator input and the kill workflow.

    The rendering surface calls ``tick`` every few milliseconds with at most
    one pending key and redraws ``frame`` when ``tick`` returns True. While
    the kill workflow is modal, refreshing is suspended and keys go to the
    workflow instead of the command table.
    """

    def __init__(
        self,
        monitor: SystemMonitor,
        interval: int = 2,
        workflow: KillWorkflow | None = None,
    ) -> None:
        self._monitor = monitor
        self.interval = interval
        self.workflow = workflow if workflow is not None else KillWorkflow()
        self.sort_mode = SortMode.CPU
        self.selection = Selection()
        self.running = True
        self.frame: Frame | None = None
        self._previous: Cycle | None = None
        self._accounting: Accounting | None = None
        self._last_refresh: float | None = None  # None means due now

    @property
    def accepts_input(self) -> bool:
        """Whether the next tick may be given a key."""
        return self.workflow.accepts_input

    @property
    def previous(self) -> Cycle | None:
        """The Cycle the next refresh will be accounted against."""
        return self._previous

    def set_viewport_height(self, height: int) -> bool:
        """Record the rows available for the list; returns True if it changed."""
        if max(1, height) == self.selection.viewport_height:
            return False
        self.selection.viewport_height = height
        self._relayout()
        return True

    def force_refresh(self) -> None:
        """Make the next check run a refresh regardless of the timer."""
        self._last_refresh = None

    def refresh_due(self, now: float) -> bool:
        if self.workflow.modal:
            return False
        return self._last_refresh is None or now - self._last_refresh >= self.interval

    def tick(self, now: float, key: str | None = None) -> bool:
        """
        Run one loop iteration.

        Args:
            now: Monotonic time in seconds.
            key: The pending key, if any.

        Returns:
            True if the frame or the kill prompt changed and needs redrawing.
        """
        changed = False
        if key is not None:
            changed = self._dispatch(key, now)

        if self.workflow.expire(now):
            changed = True

        if self.running and self.refresh_due(now):
            self.refresh(now)
            changed = True

        return changed

    def refresh(self, now: float) -> None:
        """Sample a new Cycle, account it and rebuild the frame."""
        cycle = self._monitor.sample()
        self._accounting = account(self._previous, cycle)
        self._previous = cycle
        self._last_refresh = now
        self._relayout()

    def _dispatch(self, key: str, now: float) -> bool:
        state = self.workflow.state
        if state is KillState.CONFIRM_PENDING:
            outcome = self.workflow.resolve(key, now)
            if outcome is not KillState.CANCELLED:
                self.force_refresh()
            return True
        if state is KillState.TERMINATE_FAILED:
            self.workflow.dismiss()
            return True
        if state is KillState.TERMINATED_OK:
            return False

        command = command_for_key(key)
        if command is None:
            return False
        return self._run(command)

    def _run(self, command: Command) -> bool:
        if command is Command.UP:
            self.selection.move_up()
        elif command is Command.DOWN:
            self.selection.move_down()
        elif command is Command.PAGE_UP:
            self.selection.page_up()
        elif command is Command.PAGE_DOWN:
            self.selection.page_down()
        elif command is Command.SORT:
            self.sort_mode = self.sort_mode.next()
            log.debug("sort_mode_changed", sort_mode=self.sort_mode.value)
        elif command is Command.REFRESH:
            self.force_refresh()
            return False
        elif command is Command.KILL:
            target = self.frame.selected_process if self.frame is not None else None
            if target is None:
                return False
            self.workflow.request(target.pid)
            return True
        elif command is Command.QUIT:
            self.running = False
            return False

        self._relayout()
        return True

    def _relayout(self) -> None:
        # Re-sort and re-clamp the latest accounted Cycle without sampling
        if self._accounting is None:
            return
        ordered = tuple(sort_processes(self._accounting.processes, self.sort_mode))
        self.selection.clamp(len(ordered))
        self.frame = Frame(
            global_cpu_percent=self._accounting.global_cpu_percent,
            system=self._accounting.cycle.system,
            sort_mode=self.sort_mode,
            interval=self.interval,
            processes=ordered,
            selected=self.selection.selected,
            top=self.selection.top,
            viewport_height=self.selection.viewport_height,
        )
