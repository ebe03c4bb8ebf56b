"""
Progress reporting for batch resolutions.

A :class:`ProgressReporter` counts finished version searches against a
configured total and notifies optional callbacks.  It has no bearing on
results; the CLI binds the callbacks to a Rich status spinner.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from depfloor.utils.logger import get_logger

logger = get_logger("progress")


class ProgressReporter:
    """Completed-task counter with a terminal "done" signal.

    Args:
        on_update: Called as ``(completed, total)`` after every change.
        on_done: Called once when ``completed`` reaches ``total``.

    Example:
        >>> reporter = ProgressReporter()
        >>> reporter.set_total_tasks(2)
        >>> reporter.advance(); reporter.advance()
        >>> reporter.is_done
        True
    """

    def __init__(
        self,
        *,
        on_update: Optional[Callable[[int, int], None]] = None,
        on_done: Optional[Callable[[], None]] = None,
    ) -> None:
        self.on_update = on_update
        self.on_done = on_done
        self._total = 0
        self._completed = 0
        self._done_signalled = False
        self._lock = threading.Lock()

    @property
    def total(self) -> int:
        return self._total

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def is_done(self) -> bool:
        """True once the configured total has been reached."""
        return self._total > 0 and self._completed >= self._total

    def set_total_tasks(self, total: int) -> None:
        """Start a new batch of *total* tasks, resetting the counter."""
        with self._lock:
            self._total = total
            self._completed = 0
            self._done_signalled = False
        logger.debug("Tracking %d task(s)", total)
        self._notify()

    def advance(self) -> None:
        """Record one completed task."""
        with self._lock:
            self._completed += 1
        self._notify()

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self._completed, self._total)

        fire = False
        with self._lock:
            if self.is_done and not self._done_signalled:
                self._done_signalled = True
                fire = True

        if fire and self.on_done is not None:
            self.on_done()
