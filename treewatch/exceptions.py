"""Treewatch exceptions."""

from __future__ import annotations

import os


class TreewatchError(Exception):
    """Base class for all treewatch errors."""

    pass


class WatchSetupError(TreewatchError):
    """Raised when a watch session cannot be started.

    Covers notification-source construction failures and roots that cannot
    be enumerated. Once a session is running, later failures are only logged.
    """

    def __init__(self, message: str, path: str | os.PathLike[str] | None = None) -> None:
        super().__init__(message)
        self.path = os.fspath(path) if path is not None else None


__all__ = ["TreewatchError", "WatchSetupError"]
