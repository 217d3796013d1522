"""Kill confirmation workflow."""

import signal
from collections.abc import Callable
from enum import Enum

import structlog

from sysmon.procfs import deliver_signal

log = structlog.get_logger()

# Keystroke -> signal in the confirmation prompt; anything else cancels
CONFIRM_KEYS = {
    "t": signal.SIGTERM,
    "k": signal.SIGKILL,
}


class KillState(Enum):
    """States of the kill workflow."""

    IDLE = "idle"
    CONFIRM_PENDING = "confirm_pending"
    TERMINATED_OK = "terminated_ok"
    TERMINATE_FAILED = "terminate_failed"
    CANCELLED = "cancelled"


class KillWorkflow:
    """
    Confirmation and signal delivery for one process at a time.

    IDLE -> CONFIRM_PENDING -> TERMINATED_OK | TERMINATE_FAILED | CANCELLED -> IDLE

    CANCELLED is never held: ``resolve`` reports it and the workflow is
    already back in IDLE. TERMINATED_OK clears itself after ``ack_seconds``
    via ``expire``; TERMINATE_FAILED waits for ``dismiss``.
    """

    def __init__(
        self,
        deliver: Callable[[int, signal.Signals], None] = deliver_signal,
        ack_seconds: float = 0.7,
    ) -> None:
        self._deliver = deliver
        self._ack_seconds = ack_seconds
        self._ack_deadline = 0.0
        self.state = KillState.IDLE
        self.target_pid: int | None = None
        self.message = ""

    @property
    def modal(self) -> bool:
        """True while normal input and refreshing are suspended."""
        return self.state is not KillState.IDLE

    @property
    def accepts_input(self) -> bool:
        """False while a success acknowledgement is on screen."""
        return self.state is not KillState.TERMINATED_OK

    def request(self, pid: int) -> None:
        """Ask the operator to confirm killing ``pid``."""
        if self.state is not KillState.IDLE:
            return
        self.state = KillState.CONFIRM_PENDING
        self.target_pid = pid
        self.message = (
            f"Send SIGTERM or SIGKILL to PID {pid}? (t=TERM / k=KILL / c=cancel)"
        )

    def resolve(self, key: str, now: float) -> KillState:
        """
        Act on the confirmation keystroke.

        Returns the outcome: TERMINATED_OK, TERMINATE_FAILED or CANCELLED.
        """
        if self.state is not KillState.CONFIRM_PENDING or self.target_pid is None:
            raise RuntimeError(f"No kill awaiting confirmation (state={self.state.value})")

        pid = self.target_pid
        sig = CONFIRM_KEYS.get(key.lower())
        if sig is None:
            self._reset()
            log.debug("kill_cancelled", pid=pid)
            return KillState.CANCELLED

        try:
            self._deliver(pid, sig)
        except OSError as e:
            reason = e.strerror or str(e)
            self.state = KillState.TERMINATE_FAILED
            self.message = (
                f"Failed to send signal {int(sig)} to PID {pid}: {reason}. Press any key..."
            )
            log.warning("kill_failed", pid=pid, signal=sig.name, reason=reason)
        else:
            self.state = KillState.TERMINATED_OK
            self.message = f"Signal {int(sig)} sent to PID {pid}"
            self._ack_deadline = now + self._ack_seconds
            log.info("kill_sent", pid=pid, signal=sig.name)
        return self.state

    def expire(self, now: float) -> bool:
        """Clear a success acknowledgement once it has been shown long enough."""
        if self.state is KillState.TERMINATED_OK and now >= self._ack_deadline:
            self._reset()
            return True
        return False

    def dismiss(self) -> None:
        """Close the failure notice."""
        if self.state is KillState.TERMINATE_FAILED:
            self._reset()

    def _reset(self) -> None:
        self.state = KillState.IDLE
        self.target_pid = None
        self.message = ""
