# src/services/pacing.py

"""Cancellable delay used to space out requests within a sweep."""

import logging
import threading

logger = logging.getLogger("price_tracker.pacing")


class Pacer:
    """Waits a fixed delay between item fetches.

    ``pause()`` blocks for ``delay`` seconds unless ``cancel()`` is
    called from another thread, in which case it returns early with
    ``False``.  Tests substitute a subclass that records pauses instead
    of sleeping.
    """

    def __init__(self, delay: float) -> None:
        if delay < 0:
            raise ValueError(f"Pacing delay must be >= 0, got {delay}")
        self.delay = delay
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        """True once :meth:`cancel` was called and not yet reset."""
        return self._cancelled.is_set()

    def pause(self) -> bool:
        """Wait out the delay; False if cancelled before or during it."""
        if self._cancelled.is_set():
            return False
        if self.delay == 0:
            return True
        interrupted = self._cancelled.wait(self.delay)
        if interrupted:
            logger.debug("Pause interrupted by cancellation")
        return not interrupted

    def cancel(self) -> None:
        """Interrupt the current pause and refuse further ones."""
        self._cancelled.set()

    def reset(self) -> None:
        """Allow pauses again after :meth:`cancel`."""
        self._cancelled.clear()
