"""sysmon - Textual rendering surface."""

import time
from collections import deque

import structlog
from rich.table import Table
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Static

from sysmon.config import Config
from sysmon.kill import KillWorkflow
from sysmon.monitor import SystemMonitor
from sysmon.scheduler import Frame, RefreshScheduler

log = structlog.get_logger()

HELP_TEXT = "SysMon - 'q' quit | 's' sort | 'k' kill | 'r' refresh"

# Column header line at the top of ProcessView
VIEW_HEADER_ROWS = 1


def format_kb(kb: int) -> str:
    """Format a size in kilobytes as a human-readable string."""
    if kb > 1024 * 1024:
        return f"{kb / (1024 * 1024):.2f}GB"
    if kb > 1024:
        return f"{kb / 1024:.1f}MB"
    return f"{kb}KB"


class HeaderBar(Static):
    """One-line summary: help, global CPU, memory, refresh and sort mode."""

    DEFAULT_CSS = """
    HeaderBar {
        height: 3;
        border: solid $primary;
        padding: 0 1;
    }
    """

    def show_frame(self, frame: Frame) -> None:
        mem_used_mb = frame.system.memory_used_kb // 1024
        mem_total_mb = frame.system.memory_total_kb // 1024
        text = Text(HELP_TEXT, style="bold")
        text.append(f"   CPU: {frame.global_cpu_percent:.2f}%")
        text.append(
            f"   Mem: {mem_used_mb}MB/{mem_total_mb}MB ({frame.memory_used_percent:.2f}%)"
        )
        text.append(f"   Refresh: {frame.interval}s | Sort: {frame.sort_mode.value}")
        self.update(text)


class ProcessView(Static):
    """The visible window of the sorted process list."""

    DEFAULT_CSS = """
    ProcessView {
        height: 1fr;
        border: solid $primary;
    }
    """

    @property
    def viewport_height(self) -> int:
        """Rows available for process lines."""
        return max(1, self.size.height - VIEW_HEADER_ROWS)

    def show_frame(self, frame: Frame) -> None:
        table = Table(box=None, expand=True, padding=(0, 1), show_edge=False)
        table.add_column("PID", justify="right", width=7)
        table.add_column("USER", width=10, no_wrap=True)
        table.add_column("%CPU", justify="right", width=7)
        table.add_column("MEM(%)", justify="right", width=7)
        table.add_column("RSS", justify="right", width=9)
        table.add_column("NAME", no_wrap=True)

        for index, proc in enumerate(frame.visible, start=frame.top):
            table.add_row(
                str(proc.pid),
                proc.user[:10],
                f"{proc.cpu_percent:.2f}",
                f"{proc.mem_percent:.2f}",
                format_kb(proc.rss_kb),
                proc.name[:30],
                style="reverse" if index == frame.selected else None,
            )
        self.update(table)


class PromptBar(Static):
    """Kill confirmation, acknowledgement and failure notices."""

    DEFAULT_CSS = """
    PromptBar {
        height: 3;
        border: double $warning;
        padding: 0 1;
        display: none;
    }
    """

    def show_message(self, message: str) -> None:
        self.update(message)
        self.display = bool(message)


class SysmonApp(App):
    """Main sysmon application."""

    TITLE = "sysmon"
    SUB_TITLE = "Process monitor"

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    # Keys are queued rather than acted on; the scheduler decides what they
    # mean depending on whether a kill prompt is open.
    BINDINGS = [
        Binding("up", "enqueue('up')", "Up", show=False, priority=True),
        Binding("down", "enqueue('down')", "Down", show=False, priority=True),
        Binding("pageup", "enqueue('pageup')", "Page up", show=False, priority=True),
        Binding("pagedown", "enqueue('pagedown')", "Page down", show=False, priority=True),
        Binding("s", "enqueue('s')", "Sort", priority=True),
        Binding("k", "enqueue('k')", "Kill", priority=True),
        Binding("r", "enqueue('r')", "Refresh", priority=True),
        Binding("q", "enqueue('q')", "Quit", priority=True),
    ]

    def __init__(
        self,
        config: Config | None = None,
        monitor: SystemMonitor | None = None,
        workflow: KillWorkflow | None = None,
    ) -> None:
        """Initialize the SysmonApp."""
        super().__init__()
        self._app_config = config if config is not None else Config()
        if workflow is None:
            workflow = KillWorkflow(ack_seconds=self._app_config.kill.ack_seconds)
        self._scheduler = RefreshScheduler(
            monitor if monitor is not None else SystemMonitor(),
            interval=self._app_config.refresh.interval,
            workflow=workflow,
        )
        self._pending_keys: deque[str] = deque()

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderBar(id="header")
        yield ProcessView(id="process-view")
        yield PromptBar(id="prompt")
        yield Footer()

    def on_mount(self) -> None:
        """Start the control loop timer."""
        log.info("app_started", interval=self._scheduler.interval)
        self.set_interval(self._app_config.refresh.tick_seconds, self._loop_tick)

    def action_enqueue(self, key: str) -> None:
        self._pending_keys.append(key)

    def on_key(self, event: events.Key) -> None:
        """Queue keys that have no binding, e.g. the kill prompt's answer."""
        self._pending_keys.append(event.character if event.is_printable else event.key)
        event.stop()

    def _loop_tick(self) -> None:
        """One control loop iteration."""
        scheduler = self._scheduler
        view = self.query_one("#process-view", ProcessView)
        changed = scheduler.set_viewport_height(view.viewport_height)

        key = None
        if self._pending_keys and scheduler.accepts_input:
            key = self._pending_keys.popleft()
        if scheduler.tick(time.monotonic(), key):
            changed = True

        if not scheduler.running:
            log.info("app_stopping")
            self.exit()
            return

        if changed:
            self._redraw()

    def _redraw(self) -> None:
        frame = self._scheduler.frame
        if frame is not None:
            self.query_one("#header", HeaderBar).show_frame(frame)
            self.query_one("#process-view", ProcessView).show_frame(frame)
        self.query_one("#prompt", PromptBar).show_message(self._scheduler.workflow.message)
