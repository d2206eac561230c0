"""Schedulers that hand job completions back to the caller's thread.

Jobs finish on the runner's worker threads. Anything that touches the
caller's world (directory changes, change listeners, user callbacks) is
posted to a scheduler instead and runs wherever the caller drains it.
"""

import asyncio
import queue
import time
from typing import Any, Callable, Optional, Protocol

from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


class Scheduler(Protocol):
    """Something that runs callbacks on the caller's execution context."""

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        ...


class CallbackQueue:
    """Thread-safe queue of callbacks, drained by the thread that owns it.

    Posting never runs the callback inline, even from the owning thread.
    """

    def __init__(self):
        self._queue: "queue.Queue[tuple[Callable[..., Any], tuple]]" = queue.Queue()

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.put((callback, args))

    def pending(self) -> int:
        return self._queue.qsize()

    def run_pending(self) -> int:
        """Run every callback queued so far. Returns how many ran."""
        ran = 0
        while True:
            try:
                callback, args = self._queue.get_nowait()
            except queue.Empty:
                return ran
            callback(*args)
            ran += 1

    def run_until(
        self,
        predicate: Callable[[], bool],
        timeout: Optional[float] = None,
        poll_interval: float = 0.05,
    ) -> bool:
        """Run callbacks as they arrive until ``predicate()`` holds.

        Returns:
            True if the predicate became true, False if ``timeout`` expired first
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not predicate():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            try:
                callback, args = self._queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            callback(*args)
        return True


class AsyncioScheduler:
    """Posts callbacks onto an asyncio event loop from any thread."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        if self.loop.is_closed():
            logger.warning(f"Event loop closed, dropping callback {callback!r}")
            return
        self.loop.call_soon_threadsafe(callback, *args)
