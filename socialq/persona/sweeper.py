"""Background sweep of expired persona sessions."""

from __future__ import annotations

import threading

from socialq.config import CLEANUP_INTERVAL_SECONDS
from socialq.observability.logging import get_logger
from socialq.persona.state_manager import PersonaStateManager

logger = get_logger(__name__)


class SessionSweeper:
    """Runs PersonaStateManager.cleanup() on a fixed interval in a daemon thread."""

    def __init__(
        self,
        manager: PersonaStateManager,
        interval_seconds: float = CLEANUP_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.manager = manager
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        """Sweep now. Errors are logged and reported as zero removals."""
        try:
            return self.manager.cleanup()
        except Exception as e:
            logger.error("Persona session sweep failed: %s", e)
            return 0

    def _loop(self) -> None:
        """
        Side Effects:
            - Deletes expired sessions from the manager's store every interval
            - Runs until stop() is called or the process exits
        """
        while not self._stop.wait(self.interval_seconds):
            self.run_once()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="persona-session-sweeper", daemon=True
        )
        self._thread.start()
        logger.info("Persona session sweeper started (%.0fs interval)", self.interval_seconds)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Persona session sweeper stopped")
