"""
Treewatch Watch Session.

Public entry point that wires the filter, registrar, debouncer and event
loop together.
Requires Python 3.11+.
"""

import asyncio
import os
import threading
from collections.abc import Callable, Sequence
from typing import Any

from treewatch.exceptions import WatchSetupError
from treewatch.utils.config import get_settings
from treewatch.utils.logger import LoggerMixin
from treewatch.watcher.debouncer import Debouncer
from treewatch.watcher.event_loop import EventLoop
from treewatch.watcher.path_filter import PathFilter
from treewatch.watcher.registrar import TreeRegistrar
from treewatch.watcher.source import BaseNotificationSource, WatchdogSource

PathArg = str | os.PathLike[str]


class WatchSession(LoggerMixin):
    """
    Watches one or more directory trees and reports debounced changes.

    The callback receives the changed path as a string, once per burst of
    changes to that path. Setup problems raise WatchSetupError from
    ``start()``; once started, failures are logged and monitoring goes on.
    The event loop runs on a daemon thread, so a session that is never
    closed lives until the process exits.
    """

    def __init__(
        self,
        paths: PathArg | Sequence[PathArg],
        callback: Callable[[str], Any],
        delay_ms: int | None = None,
        *,
        path_filter: PathFilter | None = None,
        source: BaseNotificationSource | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            paths: Root directory or directories to watch
            callback: Function called with each changed path; may be async
            delay_ms: Debounce delay; None or <= 0 uses the configured default
            path_filter: Ignore policy (default: the built-in ignore list)
            source: Notification source (default: a watchdog-backed source)
            loop: Event loop that runs async callbacks
        """
        if isinstance(paths, (str, os.PathLike)):
            paths = [paths]

        self._roots = [os.fspath(p) for p in paths]
        self._callback = callback
        if delay_ms is None or delay_ms <= 0:
            delay_ms = get_settings().watcher.debounce_delay_ms
        self._delay_ms = delay_ms
        self._filter = path_filter or PathFilter()
        self._source = source
        self._loop = loop

        self._debouncer: Debouncer | None = None
        self._thread: threading.Thread | None = None

    @property
    def roots(self) -> list[str]:
        return list(self._roots)

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def start(self) -> "WatchSession":
        """
        Register every root and start the background event loop.

        A closed session can be started again; its source is reopened
        and the roots are registered from scratch.

        Returns:
            This session, running

        Raises:
            WatchSetupError: If the source cannot be opened or a root
                cannot be registered; nothing is left running
        """
        if self._thread is not None:
            return self

        if not self._roots:
            raise WatchSetupError("No paths to watch")

        source = self._source or WatchdogSource()
        source.open()

        debouncer = Debouncer(self._callback, self._delay_ms, loop=self._loop)
        registrar = TreeRegistrar(source, self._filter)

        try:
            for root in self._roots:
                registrar.register_tree(root)
        except WatchSetupError:
            source.close()
            raise

        event_loop = EventLoop(source, self._filter, debouncer, registrar)

        self._source = source
        self._debouncer = debouncer
        self._thread = event_loop.start()

        self.log.info(
            "watch_session_started",
            roots=self._roots,
            delay_ms=self._delay_ms,
            directories=len(source.watched_paths),
        )
        return self

    def close(self, flush: bool = False, timeout: float = 5.0) -> None:
        """
        Stop watching.

        Args:
            flush: Report pending changes now instead of dropping them
            timeout: Seconds to wait for the event loop thread
        """
        if self._thread is None or self._source is None or self._debouncer is None:
            return

        self._source.close()
        self._thread.join(timeout=timeout)
        self._thread = None

        if flush:
            self._debouncer.flush()
        else:
            self._debouncer.clear()

        self.log.info("watch_session_stopped", roots=self._roots)

    @property
    def is_running(self) -> bool:
        """Check if the event loop is alive."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def watched_paths(self) -> list[str]:
        """Directories currently registered with the source."""
        if self._source is None:
            return []
        return self._source.watched_paths

    @property
    def pending_count(self) -> int:
        """Get number of paths waiting for their debounce delay."""
        if self._debouncer is None:
            return 0
        return self._debouncer.pending_count

    def __enter__(self) -> "WatchSession":
        """Context manager entry."""
        return self.start()

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()


def watch(
    paths: PathArg | Sequence[PathArg],
    callback: Callable[[str], Any],
    delay_ms: int | None = None,
    **kwargs: Any,
) -> WatchSession:
    """
    Start watching ``paths`` and call ``callback`` for every debounced change.

    Returns as soon as the background loop runs. Keeping the returned
    session is optional; it is only needed to stop watching early.

    Args:
        paths: Root directory or directories to watch
        callback: Function called with each changed path
        delay_ms: Debounce delay in milliseconds (default from settings)
        **kwargs: Passed through to WatchSession

    Returns:
        The running session

    Raises:
        WatchSetupError: If watching could not be set up
    """
    return WatchSession(paths, callback, delay_ms, **kwargs).start()
