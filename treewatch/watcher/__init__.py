"""
Treewatch Watcher Package.

Debounced, recursive file system change notification.
Requires Python 3.11+.
"""

from treewatch.watcher.debouncer import Debouncer, PendingTrigger
from treewatch.watcher.event_loop import EventLoop
from treewatch.watcher.path_filter import DEFAULT_IGNORED_PATHS, PathFilter
from treewatch.watcher.registrar import TreeRegistrar
from treewatch.watcher.session import WatchSession, watch
from treewatch.watcher.source import BaseNotificationSource, Op, RawEvent, WatchdogSource

__all__ = [
    "DEFAULT_IGNORED_PATHS",
    "BaseNotificationSource",
    "Debouncer",
    "EventLoop",
    "Op",
    "PathFilter",
    "PendingTrigger",
    "RawEvent",
    "TreeRegistrar",
    "WatchSession",
    "WatchdogSource",
    "watch",
]
