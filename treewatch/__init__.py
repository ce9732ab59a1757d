"""
Treewatch.

Debounced, recursive file system change notifier.
Requires Python 3.11+.
"""

from treewatch.exceptions import TreewatchError, WatchSetupError
from treewatch.watcher import PathFilter, WatchSession, watch

__version__ = "0.1.0"

__all__ = [
    "PathFilter",
    "TreewatchError",
    "WatchSession",
    "WatchSetupError",
    "watch",
]
