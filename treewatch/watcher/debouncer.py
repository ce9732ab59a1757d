"""
Treewatch Debouncer.

Coalesces bursts of triggers per path into one delayed callback.
Requires Python 3.11+.
"""

import asyncio
import inspect
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any

from treewatch.utils.logger import LoggerMixin


@dataclass
class PendingTrigger:
    """A path waiting for its quiet period to elapse."""

    path: str
    deadline: float  # time.monotonic() value
    timer: threading.Timer | None = field(default=None, repr=False)


class Debouncer(LoggerMixin):
    """
    Debounces rapid changes per path.

    Each path owns at most one timer. A new trigger for a path cancels the
    pending timer and schedules a fresh one, so the callback runs once,
    ``delay_ms`` after the last trigger of a burst. Timers for different
    paths are independent.
    """

    def __init__(
        self,
        callback: Callable[[str], Any],
        delay_ms: int = 500,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            callback: Function called with the changed path; may be async
            delay_ms: Quiet period in milliseconds before calling back
            loop: Event loop that runs async callbacks
        """
        if delay_ms <= 0:
            raise ValueError(f"delay_ms must be positive, got {delay_ms}")

        self._callback = callback
        self._delay = delay_ms / 1000.0
        self._loop = loop
        self._pending: dict[str, PendingTrigger] = {}
        self._lock = threading.Lock()

    @property
    def delay(self) -> float:
        """Debounce delay in seconds."""
        return self._delay

    def trigger(self, path: str) -> None:
        """
        Record a change at ``path``.

        Restarts the quiet period if the path is already pending.

        Args:
            path: Path that changed
        """
        with self._lock:
            previous = self._pending.get(path)
            if previous is not None and previous.timer is not None:
                previous.timer.cancel()

            pending = PendingTrigger(path=path, deadline=time.monotonic() + self._delay)
            pending.timer = threading.Timer(self._delay, self._fire, args=(pending,))
            pending.timer.daemon = True
            self._pending[path] = pending
            pending.timer.start()

    def _fire(self, pending: PendingTrigger) -> None:
        with self._lock:
            # A timer that was already running when it got replaced loses
            if self._pending.get(pending.path) is not pending:
                return
            del self._pending[pending.path]

        self._invoke(pending.path)

    def _invoke(self, path: str) -> None:
        """Call the callback for one path without holding the lock."""
        self.log.debug("debounced_change", path=path)

        try:
            if inspect.iscoroutinefunction(self._callback):
                if self._loop is not None:
                    future = asyncio.run_coroutine_threadsafe(
                        self._callback(path),
                        self._loop,
                    )
                    future.add_done_callback(
                        lambda f: self._report_async_result(f, path)
                    )
                else:
                    asyncio.run(self._callback(path))
            else:
                self._callback(path)
        except Exception as e:
            self.log.error("debounce_callback_failed", path=path, error=str(e))

    def _report_async_result(self, future: Future, path: str) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self.log.error("debounce_callback_failed", path=path, error=str(error))

    def flush(self) -> list[str]:
        """
        Immediately fire every pending path.

        Returns:
            Paths that were pending, in first-trigger order
        """
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
            for entry in pending:
                if entry.timer is not None:
                    entry.timer.cancel()

        for entry in pending:
            self._invoke(entry.path)

        return [entry.path for entry in pending]

    def clear(self) -> None:
        """Cancel all pending paths without calling back."""
        with self._lock:
            for entry in self._pending.values():
                if entry.timer is not None:
                    entry.timer.cancel()
            self._pending.clear()

    @property
    def pending_count(self) -> int:
        """Get number of pending paths."""
        with self._lock:
            return len(self._pending)

    @property
    def pending_paths(self) -> list[str]:
        """Get list of pending paths."""
        with self._lock:
            return list(self._pending)
