"""
Treewatch Event Loop.

Consumes raw events from the notification source and feeds the
debouncer.
Requires Python 3.11+.
"""

import threading

from treewatch.utils.logger import LoggerMixin
from treewatch.watcher.debouncer import Debouncer
from treewatch.watcher.path_filter import PathFilter
from treewatch.watcher.registrar import TreeRegistrar
from treewatch.watcher.source import BaseNotificationSource, Op, RawEvent


class EventLoop(LoggerMixin):
    """
    Background consumer of notification source output.

    Every non-ignored event triggers the debouncer, whatever its kind.
    Create events additionally register the new path if it is a directory.
    Source errors are logged and never end the loop; only closing the
    source does.
    """

    def __init__(
        self,
        source: BaseNotificationSource,
        path_filter: PathFilter,
        debouncer: Debouncer,
        registrar: TreeRegistrar,
    ) -> None:
        self._source = source
        self._filter = path_filter
        self._debouncer = debouncer
        self._registrar = registrar

    def run(self) -> None:
        """Process source output until the source is closed."""
        self.log.debug("event_loop_started")

        while True:
            item = self._source.next_item()
            if item is None:
                break

            if isinstance(item, Exception):
                self.log.error("watcher_error", error=str(item))
                continue

            try:
                self.handle_event(item)
            except Exception as e:
                self.log.error("event_handling_failed", path=item.path, error=str(e))

        self.log.debug("event_loop_stopped")

    def handle_event(self, event: RawEvent) -> None:
        """Filter, debounce and late-register a single event."""
        if self._filter.is_ignored(event.path):
            return

        self._debouncer.trigger(event.path)

        if event.op is Op.CREATE:
            self._registrar.register_late(event.path)

    def start(self) -> threading.Thread:
        """
        Run the loop on a daemon thread.

        Returns:
            The started thread
        """
        thread = threading.Thread(target=self.run, name="treewatch-event-loop", daemon=True)
        thread.start()
        return thread
