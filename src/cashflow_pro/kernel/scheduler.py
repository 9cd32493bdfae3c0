"""
Debounced save scheduling

Rapid successive edits should produce one write. DebouncedSaver owns a single
pending timer: every schedule() cancels it and starts a fresh one, so the
save fires once, a fixed delay after the last edit (trailing edge).
"""

import threading
from collections.abc import Callable

from cashflow_pro.kernel.logging import get_logger

logger = get_logger(__name__)


class DebouncedSaver:
    """
    Trailing-edge debouncer around a save callable

    Only the timer handle is guarded by a lock; the save itself runs outside
    it and is never interrupted once started. cancel() on shutdown drops a
    pending save but cannot stop one already in flight.
    """

    def __init__(self, save: Callable[[], object], delay_seconds: float = 1.0) -> None:
        """
        Args:
            save: Callable performing the write; its errors are its own to report
            delay_seconds: Quiet period after the last schedule() before saving
        """
        self._save = save
        self.delay_seconds = delay_seconds
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        """True while a save is scheduled but has not started"""
        with self._lock:
            return self._timer is not None

    def schedule(self) -> None:
        """Cancel any pending save and restart the delay"""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay_seconds, self._fire)
            self._timer.daemon = True
            self._timer.start()
        logger.debug("Save scheduled", delay_seconds=self.delay_seconds)

    def flush(self) -> bool:
        """
        Run the pending save now

        Returns:
            True if a save was pending and has been run
        """
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        self._save()
        return True

    def cancel(self) -> None:
        """Drop the pending save, if any"""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            logger.debug("Pending save cancelled")

    def _fire(self) -> None:
        with self._lock:
            if self._timer is None or self._timer is not threading.current_thread():
                return
            self._timer = None
        self._save()
