"""
Treewatch Tree Registrar.

Registers a directory tree with the notification source, one directory
at a time.
Requires Python 3.11+.
"""

import os
import stat

from treewatch.exceptions import WatchSetupError
from treewatch.utils.logger import LoggerMixin
from treewatch.watcher.path_filter import PathFilter
from treewatch.watcher.source import BaseNotificationSource


class TreeRegistrar(LoggerMixin):
    """
    Walks directory trees and registers every non-ignored directory.

    Used at session setup for each root, and again by the event loop when
    a new directory shows up under a watched tree.
    """

    def __init__(self, source: BaseNotificationSource, path_filter: PathFilter) -> None:
        self._source = source
        self._filter = path_filter

    def register_tree(self, root: str | os.PathLike[str]) -> int:
        """
        Register ``root`` and all of its descendant directories.

        A directory that cannot be watched or listed is logged and skipped;
        the rest of the tree is still registered.

        Args:
            root: Directory to walk

        Returns:
            Number of directories registered

        Raises:
            WatchSetupError: If the root is missing, not a directory,
                or cannot be listed
        """
        root = os.fspath(root)

        try:
            st = os.stat(root)
        except OSError as e:
            raise WatchSetupError(f"Error adding path {root}: {e}", path=root) from e

        if not stat.S_ISDIR(st.st_mode):
            raise WatchSetupError(f"Error adding path {root}: not a directory", path=root)

        if self._filter.is_ignored(root):
            self.log.warning("root_ignored", path=root)
            return 0

        def on_walk_error(error: OSError) -> None:
            if error.filename == root:
                raise WatchSetupError(f"Error adding path {root}: {error}", path=root) from error
            self.log.warning("directory_walk_failed", path=error.filename, error=str(error))

        registered = 0
        for dirpath, dirnames, _ in os.walk(root, onerror=on_walk_error):
            try:
                self._source.add_watch(dirpath)
                registered += 1
            except OSError as e:
                self.log.warning("watch_directory_failed", path=dirpath, error=str(e))

            # Descendants of an ignored directory contain the same substring
            dirnames[:] = [
                name for name in dirnames
                if not self._filter.is_ignored(os.path.join(dirpath, name))
            ]

        self.log.debug("tree_registered", root=root, directories=registered)
        return registered

    def register_late(self, path: str) -> int:
        """
        Best-effort registration of a directory created after setup.

        Paths that are not directories (or no longer exist) are skipped.
        Directories already inside the new one are registered too. Nothing
        here ever raises.

        Args:
            path: Path reported by a create event

        Returns:
            Number of directories registered
        """
        if not os.path.isdir(path) or self._filter.is_ignored(path):
            return 0

        registered = 0
        for dirpath, dirnames, _ in os.walk(path):
            try:
                self._source.add_watch(dirpath)
                registered += 1
            except (OSError, RuntimeError) as e:
                self.log.debug("late_registration_failed", path=dirpath, error=str(e))

            dirnames[:] = [
                name for name in dirnames
                if not self._filter.is_ignored(os.path.join(dirpath, name))
            ]

        return registered
