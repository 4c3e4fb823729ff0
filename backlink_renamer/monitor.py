"""Background watcher that halts a run when a discussion opens on a watch document."""

import logging
import threading
from enum import Enum
from typing import Optional

from .api_client import WikiClient, WikiAPIError


class MonitorState(str, Enum):
    """Discussion monitor lifecycle states."""
    IDLE = "idle"
    RUNNING = "running"
    TRIPPED = "tripped"   # Open discussion found, run halted
    FAILED = "failed"     # Check failed, run halted
    STOPPED = "stopped"   # Shut down after the run finished


class DiscussionMonitor(threading.Thread):
    """Polls a watch document and sets ``halt_event`` when the run must stop.

    The orchestrator checks ``halt_event`` before each document; requests
    already in flight are allowed to finish.
    """

    def __init__(self, client: WikiClient, watch_document: str,
                 halt_event: threading.Event, interval: float = 15.0):
        super().__init__(name="discussion-monitor", daemon=True)
        self.client = client
        self.watch_document = watch_document
        self.halt_event = halt_event
        self.interval = interval
        self.state = MonitorState.IDLE
        self.error: Optional[WikiAPIError] = None
        self._stop_event = threading.Event()
        self.logger = logging.getLogger(__name__)

    @property
    def halted(self) -> bool:
        return self.state in (MonitorState.TRIPPED, MonitorState.FAILED)

    def check_once(self) -> bool:
        """Run a single check, returning True when the run must halt."""
        try:
            is_open = self.client.query_open_discussions(self.watch_document)
        except WikiAPIError as e:
            self.error = e
            self.state = MonitorState.FAILED
            self.logger.error(f"Discussion check on [[{self.watch_document}]] failed: {e}")
            self.halt_event.set()
            return True

        if is_open:
            self.state = MonitorState.TRIPPED
            self.logger.warning(f"Open discussion on [[{self.watch_document}]], halting the bot")
            self.halt_event.set()
            return True

        self.logger.debug(f"No open discussion on [[{self.watch_document}]]")
        return False

    def run(self) -> None:
        self.state = MonitorState.RUNNING
        self.logger.info(f"Watching [[{self.watch_document}]] every {self.interval:g}s")

        while not self._stop_event.is_set():
            if self.check_once():
                return
            if self._stop_event.wait(self.interval):
                break

        if not self.halted:
            self.state = MonitorState.STOPPED

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop polling; waits for the thread if it was started."""
        self._stop_event.set()
        if self.is_alive():
            self.join(timeout)
        if self.state in (MonitorState.IDLE, MonitorState.RUNNING):
            self.state = MonitorState.STOPPED
