import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class CancellationToken:
    """Run-scoped quit flag.

    Handed to the flow map so that model-specific safety checks (e.g. a leg
    falling over) can abort the current run. The simulator resets it at the
    start of every run and polls it between integration steps. It also backs
    the cancellable real-time pacing wait of the output adapter.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "") -> None:
        """Request termination of the current run."""
        if not self._event.is_set():
            logger.warning("Simulation quit requested: %s", reason or "no reason given")
            self._reason = reason
            self._event.set()

    def reset(self) -> None:
        self._reason = None
        self._event.clear()

    def wait(self, timeout: float) -> bool:
        """Sleep for at most `timeout` seconds; returns True if cancelled meanwhile."""
        return self._event.wait(timeout)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason
