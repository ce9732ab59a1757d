"""
Treewatch Utilities Package.

Configuration and logging shared across the package.
Requires Python 3.11+.
"""

from treewatch.utils.config import Settings, get_settings
from treewatch.utils.logger import configure_logging, get_logger, LoggerMixin

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggerMixin",
]
