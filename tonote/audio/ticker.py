"""
Cancelable repeating callback driving the recording clock.
"""
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RepeatingTicker:
    """
    Calls a callback every `interval` seconds on a daemon thread.

    Ticks are scheduled against fixed deadlines (start + n * interval), so a
    slow callback does not push later ticks back.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        """
        Args:
            interval: Seconds between ticks
            callback: Called once per tick from the ticker thread
        """
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.interval = interval
        self.callback = callback
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._cancelled.is_set()
        )

    def start(self):
        if self._thread is not None:
            raise RuntimeError("Ticker already started")
        self._thread = threading.Thread(target=self._run, name="tonote-ticker", daemon=True)
        self._thread.start()

    def _run(self):
        next_deadline = time.monotonic() + self.interval
        while not self._cancelled.wait(max(0.0, next_deadline - time.monotonic())):
            try:
                self.callback()
            except Exception:
                logger.exception("Ticker callback failed")
            next_deadline += self.interval

    def cancel(self):
        """Stop ticking. Safe to call repeatedly and from the callback itself."""
        self._cancelled.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)
