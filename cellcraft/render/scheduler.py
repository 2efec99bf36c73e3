"""CoalescingScheduler — at most one deferred unit of work.

Rapid viewport changes (dragging, wheel zoom) would otherwise trigger a
full re-enumeration per event.  Work is deferred to the next frame
boundary and a newer request cancels the pending one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CoalescingScheduler:
    """Holds a single pending task until ``flush`` is called."""

    def __init__(self) -> None:
        self._pending: Callable[[], None] | None = None
        self.coalesced = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, task: Callable[[], None]) -> None:
        """Defer ``task``, replacing any task already waiting."""
        if self._pending is not None:
            self.coalesced += 1
        self._pending = task

    def cancel(self) -> None:
        self._pending = None

    def flush(self) -> bool:
        """Run the pending task, if any.  Call once per frame.

        Returns:
            True if a task ran.
        """
        task, self._pending = self._pending, None
        if task is None:
            return False
        if self.coalesced:
            logger.debug("Coalesced %d deferred passes", self.coalesced)
            self.coalesced = 0
        task()
        return True
