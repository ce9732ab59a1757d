"""
Treewatch Path Filter.

Decides which paths are noise and must never be watched or reported.
Requires Python 3.11+.
"""

import os
from dataclasses import dataclass

DEFAULT_IGNORED_PATHS: tuple[str, ...] = (".git", "node_modules", "vendor", "__pycache__")


@dataclass(frozen=True)
class PathFilter:
    """
    Substring-based ignore predicate.

    A path is ignored when any of the configured substrings occurs anywhere
    in it, so ``/repo/.git/HEAD`` and ``/repo/.github`` are both ignored by
    the ``.git`` entry. Instances are immutable and safe to share between
    threads.
    """

    ignored: tuple[str, ...] = DEFAULT_IGNORED_PATHS

    def is_ignored(self, path: str | os.PathLike[str]) -> bool:
        """Check if a path should be excluded from watching and notification."""
        path_str = os.fspath(path)
        return any(pattern in path_str for pattern in self.ignored)

    def __call__(self, path: str | os.PathLike[str]) -> bool:
        return self.is_ignored(path)
