"""
Periodic tick driver.

Runs a background thread that calls a tick function at a fixed interval.
One driver per surface serialises ticks for all of its observers.
"""

import threading
from typing import Callable, Optional

from stripbound.logging_config import get_logger

logger = get_logger(__name__)


class FeedbackDriver:
    """
    Background thread calling tick() every `interval` seconds.

    Errors raised by a tick are logged and the loop keeps running.
    """

    def __init__(self, tick: Callable[[], None], interval: float = 0.1, name: str = "FeedbackTickThread"):
        """
        Initialize driver (not started).

        Args:
            tick: Function called once per interval
            interval: Seconds between ticks
            name: Thread name

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self._tick = tick
        self._interval = interval
        self._name = name

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        # Statistics
        self._ticks = 0
        self._errors = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the tick thread. Starting a running driver does nothing."""
        if self.is_running:
            logger.warning("Feedback driver already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name=self._name)
        self._thread.start()
        logger.debug(f"Started {self._name} ({self._interval}s interval)")

    def stop(self, timeout: float = 2.0) -> None:
        """
        Stop the tick thread and wait for it to exit.

        Args:
            timeout: Seconds to wait for the thread
        """
        if not self._thread:
            return

        self._stop_event.set()
        self._thread.join(timeout=timeout)

        if self._thread.is_alive():
            logger.warning(f"{self._name} did not stop gracefully")

        self._thread = None
        logger.debug(f"Feedback driver stopped. Stats: {self.get_stats()}")

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._tick()
            except Exception as e:
                self._errors += 1
                logger.exception(f"Error in feedback tick: {e}")
            finally:
                self._ticks += 1

    def get_stats(self) -> dict[str, int]:
        """
        Get tick statistics.

        Returns:
            Dictionary with tick and error counts
        """
        return {"ticks": self._ticks, "errors": self._errors}

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
