"""
Treewatch Notification Source.

Wraps watchdog so the event loop sees a single stream of raw change
events and source errors.
Requires Python 3.11+.
"""

import os
import queue
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from treewatch.exceptions import WatchSetupError
from treewatch.utils.config import get_settings
from treewatch.utils.logger import LoggerMixin


class Op(Enum):
    """Kinds of change reported by the notification source."""

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    RENAME = "rename"


@dataclass(frozen=True)
class RawEvent:
    """A single change observed at a path."""

    path: str
    op: Op


# Anything missing here (opened, closed_no_write) is not a change
_OPS_BY_EVENT_TYPE: dict[str, Op] = {
    EVENT_TYPE_CREATED: Op.CREATE,
    EVENT_TYPE_MODIFIED: Op.WRITE,
    EVENT_TYPE_CLOSED: Op.WRITE,
    EVENT_TYPE_DELETED: Op.REMOVE,
    EVENT_TYPE_MOVED: Op.RENAME,
}

SourceItem = RawEvent | Exception


def translate_event(event: FileSystemEvent) -> Iterator[RawEvent]:
    """
    Convert a watchdog event into raw change events.

    A move becomes a rename of the old path followed by a create of the
    new one, so a directory moved into a watched tree is picked up by
    late registration.

    watchdog follows every change inside a directory with a ``modified``
    event for the directory itself. Those carry no change of their own and
    are dropped, otherwise each edit would also report the parent.
    """
    op = _OPS_BY_EVENT_TYPE.get(event.event_type)
    if op is None:
        return
    if event.is_directory and event.event_type == EVENT_TYPE_MODIFIED:
        return

    yield RawEvent(path=os.fsdecode(event.src_path), op=op)

    if op is Op.RENAME and event.dest_path:
        yield RawEvent(path=os.fsdecode(event.dest_path), op=Op.CREATE)


class BaseNotificationSource(LoggerMixin):
    """
    Queue-backed notification source.

    Events and errors share one unbounded queue, so producers never block
    and the consumer handles whichever arrives first. ``close()`` enqueues
    a ``None`` sentinel that ends consumption.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[SourceItem | None] = queue.Queue()
        self._watched: set[str] = set()
        self._lock = threading.Lock()
        self._closed = False

    def open(self) -> None:
        """
        Prepare the source for ``add_watch`` calls.

        Reopening a closed source starts a fresh stream with no watches.
        """
        with self._lock:
            if not self._closed:
                return
            self._queue = queue.Queue()
            self._watched.clear()
            self._closed = False

    def add_watch(self, path: str) -> None:
        """Register a single directory. Raises ``OSError`` on failure."""
        with self._lock:
            self._watched.add(path)

    def put_event(self, event: RawEvent) -> None:
        if not self._closed:
            self._queue.put(event)

    def report_error(self, error: Exception) -> None:
        if not self._closed:
            self._queue.put(error)

    def next_item(self, timeout: float | None = None) -> SourceItem | None:
        """
        Block until the next event or error is available.

        Returns:
            A RawEvent, an exception reported by the source, or None once
            the source has been closed.

        Raises:
            queue.Empty: If ``timeout`` elapses first
        """
        return self._queue.get(timeout=timeout)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(None)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def watched_paths(self) -> list[str]:
        """Directories registered so far, sorted."""
        with self._lock:
            return sorted(self._watched)


class _QueueingHandler(FileSystemEventHandler):
    """Forwards every watchdog event into a notification source."""

    def __init__(self, source: BaseNotificationSource) -> None:
        super().__init__()
        self._source = source

    def on_any_event(self, event: FileSystemEvent) -> None:
        # Never raise into watchdog's dispatch thread
        try:
            for raw_event in translate_event(event):
                self._source.put_event(raw_event)
        except Exception as e:
            self._source.report_error(e)


class WatchdogSource(BaseNotificationSource):
    """
    Notification source backed by a watchdog observer.

    Each root gets one recursive watch. Directories below an already
    scheduled root are only recorded, so a large tree costs one inotify
    instance instead of one per directory. Events from ignored subtrees
    still arrive and are dropped by the path filter.
    """

    def __init__(
        self,
        use_polling: bool | None = None,
        polling_interval_s: float | None = None,
    ) -> None:
        """
        Initialize the source.

        Args:
            use_polling: Use PollingObserver instead of the native observer
            polling_interval_s: Polling interval in seconds
        """
        super().__init__()
        settings = get_settings().watcher
        self._use_polling = settings.use_polling if use_polling is None else use_polling
        self._polling_interval = polling_interval_s or settings.polling_interval_s
        self._handler = _QueueingHandler(self)
        self._observer: BaseObserver | None = None
        self._recursive_roots: list[str] = []

    def open(self) -> None:
        """Create and start the observer thread."""
        if self._observer is not None:
            return

        super().open()
        self._recursive_roots = []
        try:
            if self._use_polling:
                observer: BaseObserver = PollingObserver(timeout=self._polling_interval)
            else:
                observer = Observer()
            observer.daemon = True
            observer.start()
        except (OSError, RuntimeError) as e:
            raise WatchSetupError(f"Error creating watcher: {e}") from e

        self._observer = observer
        self.log.debug("notification_source_opened", polling=self._use_polling)

    def add_watch(self, path: str) -> None:
        """Schedule a recursive watch on ``path`` unless a root already covers it."""
        observer = self._observer
        if observer is None:
            raise RuntimeError("notification source is not open")

        if not self._is_covered(path):
            observer.schedule(self._handler, path, recursive=True)
            with self._lock:
                self._recursive_roots.append(os.path.abspath(path))
            self.log.debug("recursive_watch_scheduled", path=path)
        super().add_watch(path)

    def _is_covered(self, path: str) -> bool:
        target = os.path.abspath(path)
        with self._lock:
            roots = list(self._recursive_roots)
        return any(os.path.commonpath([root, target]) == root for root in roots)

    @property
    def scheduled_roots(self) -> list[str]:
        """Directories holding their own recursive observer watch."""
        with self._lock:
            return list(self._recursive_roots)

    def close(self) -> None:
        """Stop the observer and end the event stream."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None
            self.log.debug("notification_source_closed")
        super().close()
