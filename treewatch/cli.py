"""
Treewatch Command Line Interface.

Prints one line per debounced change until interrupted.
Requires Python 3.11+.

Usage:
    treewatch /path/to/project [/other/path ...] [--delay-ms 200] [--log-level debug]
"""

import argparse
import sys
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from treewatch.exceptions import WatchSetupError
from treewatch.utils.logger import configure_logging, get_logger
from treewatch.watcher.session import watch
from treewatch.watcher.source import WatchdogSource

logger = get_logger("cli")


def run(
    paths: Sequence[Path],
    delay_ms: int | None = None,
    use_polling: bool = False,
    stop_event: threading.Event | None = None,
    out: TextIO | None = None,
) -> None:
    """
    Watch ``paths`` and print changed paths until ``stop_event`` is set.

    Args:
        paths: Root directories to watch
        delay_ms: Debounce delay in milliseconds
        use_polling: Use the polling observer
        stop_event: Event that ends the run (default: wait forever)
        out: Stream for changed paths (default: stdout)

    Raises:
        WatchSetupError: If watching could not be set up
    """
    stream = out or sys.stdout
    stop_event = stop_event or threading.Event()
    print_lock = threading.Lock()

    def report(path: str) -> None:
        with print_lock:
            print(path, file=stream, flush=True)

    source = WatchdogSource(use_polling=use_polling or None)
    session = watch(paths, report, delay_ms, source=source)
    try:
        stop_event.wait()
    finally:
        session.close()


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Watch directory trees and print each changed path once it settles"
    )
    parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Directories to watch recursively",
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=None,
        help="Debounce delay in milliseconds (default: WATCHER_DEBOUNCE_DELAY_MS or 500)",
    )
    parser.add_argument(
        "--polling",
        action="store_true",
        default=False,
        help="Poll the file system instead of using native notifications",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Minimum log level written to stderr (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default=None,
        help="Log renderer (default: LOG_FORMAT or json)",
    )

    args = parser.parse_args(argv)
    configure_logging(level=args.log_level, fmt=args.log_format)

    try:
        run(args.paths, delay_ms=args.delay_ms, use_polling=args.polling)
    except WatchSetupError as e:
        logger.error("watch_setup_failed", path=e.path, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nStopped", file=sys.stderr)


if __name__ == "__main__":
    main()
