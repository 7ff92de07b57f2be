"""
Async Utilities for the search front end.

Provides:
- Debouncer: a single cancelable timer that runs a coroutine once input
  has been quiet for a fixed interval
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Debouncer
# =============================================================================

class Debouncer:
    """
    Delay an action until calls stop arriving for ``delay`` seconds.

    At most one timer is pending at a time: ``call()`` cancels the previous
    timer before scheduling its own. Once a timer fires, the action it
    started is detached and can no longer be cancelled through ``cancel()``.

    Example:
        debouncer = Debouncer(delay=0.3)
        debouncer.call(lambda: controller.perform_search("cats"))
        debouncer.call(lambda: controller.perform_search("cats and dogs"))
        # only the second search runs
    """

    def __init__(self, delay: float) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self.delay = delay
        self._pending: asyncio.Task[Any] | None = None
        self._running: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> bool:
        """True while a timer is scheduled and has not fired yet."""
        return self._pending is not None and not self._pending.done()

    def call(self, action: Callable[[], Awaitable[Any]]) -> asyncio.Task[Any]:
        """
        (Re)start the timer for ``action``.

        Must be called from a running event loop.

        Returns:
            The task that sleeps and then awaits ``action``
        """
        self.cancel()
        task = asyncio.get_running_loop().create_task(self._fire_later(action))
        self._pending = task
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        return task

    def cancel(self) -> bool:
        """
        Cancel the pending timer, if any.

        Returns:
            True if a pending timer was cancelled
        """
        task = self._pending
        self._pending = None
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Debounce timer cancelled")
        return True

    async def wait(self) -> None:
        """Wait until the pending timer and every action it started are done."""
        while self._running:
            await asyncio.wait(set(self._running))

    async def _fire_later(self, action: Callable[[], Awaitable[Any]]) -> Any:
        await asyncio.sleep(self.delay)
        # Fired: detach so later input no longer cancels the running action
        if self._pending is asyncio.current_task():
            self._pending = None
        return await action()
