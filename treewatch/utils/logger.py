"""
Treewatch Structured Logging Module.

structlog setup shared by the watcher threads and the CLI. Entries carry
the emitting component and thread, since debounce timers, the event loop
and the observer all log concurrently.
Requires Python 3.11+.
"""

import logging
import sys
import threading
from typing import Literal, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from treewatch.utils.config import get_settings

# stdlib loggers of dependencies that are chatty below WARNING
QUIET_LOGGERS = ("watchdog",)


def _add_thread_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("thread", threading.current_thread().name)
    return event_dict


def _add_app(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    return event_dict


def _render_chain(fmt: str, stream: TextIO) -> list[Processor]:
    if fmt == "console":
        return [
            structlog.dev.ConsoleRenderer(
                colors=stream.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        ]
    return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]


def configure_logging(
    level: str | None = None,
    fmt: Literal["json", "console"] | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog for the process.

    Call once at startup. Library users who never call it get structlog's
    defaults.

    Args:
        level: Minimum level name; defaults to ``LOG_LEVEL``
        fmt: ``json`` or ``console``; defaults to ``LOG_FORMAT``
        stream: Destination, stderr by default since stdout carries the
            reported paths
    """
    settings = get_settings().logging
    level_name = (level or settings.level).upper()
    numeric_level = logging.getLevelNamesMapping().get(level_name, logging.INFO)
    stream = stream or sys.stderr

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_thread_name,
        _add_app,
        *_render_chain(fmt or settings.format, stream),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(component: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Return a lazy logger whose entries are tagged with ``component``."""
    if component is None:
        return structlog.get_logger()
    return structlog.get_logger(component=component)


class LoggerMixin:
    """Gives a class a ``log`` attribute tagged with the class name."""

    @property
    def log(self) -> structlog.typing.FilteringBoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(type(self).__name__)
        return self._logger
