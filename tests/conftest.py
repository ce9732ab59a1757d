"""
Treewatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import threading
import time
from collections.abc import Generator, Iterable
from pathlib import Path

import pytest
import structlog

from treewatch.utils.config import get_settings
from treewatch.watcher.source import BaseNotificationSource


class FakeSource(BaseNotificationSource):
    """In-memory notification source; events are pushed by the test."""

    def __init__(self, failing: Iterable[str | Path] = ()) -> None:
        super().__init__()
        self.failing = {str(p) for p in failing}
        self.opened = False

    def open(self) -> None:
        super().open()
        self.opened = True

    def add_watch(self, path: str) -> None:
        if path in self.failing:
            raise PermissionError(13, "Permission denied", path)
        super().add_watch(path)


class Recorder:
    """Thread-safe callback that remembers every call and when it happened."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, float]] = []
        self._cond = threading.Condition()

    def __call__(self, path: str) -> None:
        with self._cond:
            self.calls.append((path, time.monotonic()))
            self._cond.notify_all()

    @property
    def paths(self) -> list[str]:
        with self._cond:
            return [p for p, _ in self.calls]

    def count(self, path: str | Path) -> int:
        return self.paths.count(str(path))

    def times(self, path: str | Path) -> list[float]:
        with self._cond:
            return [t for p, t in self.calls if p == str(path)]

    def wait_for(self, path: str | Path, timeout: float = 5.0) -> bool:
        """Block until ``path`` has been reported at least once."""
        target = str(path)
        with self._cond:
            return self._cond.wait_for(
                lambda: any(p == target for p, _ in self.calls),
                timeout=timeout,
            )


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Isolate cached settings and structlog configuration between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """
    Create a small project tree.

    Layout:
        proj/
            a.txt
            src/pkg/mod.py
            docs/
            .git/HEAD
            node_modules/lib/index.js
            vendor/dep/dep.go
            src/__pycache__/mod.cpython-311.pyc
    """
    root = tmp_path / "proj"
    (root / "src" / "pkg").mkdir(parents=True)
    (root / "docs").mkdir()
    (root / ".git").mkdir()
    (root / "node_modules" / "lib").mkdir(parents=True)
    (root / "vendor" / "dep").mkdir(parents=True)
    (root / "src" / "__pycache__").mkdir()

    (root / "a.txt").write_text("initial content")
    (root / "src" / "pkg" / "mod.py").write_text("x = 1\n")
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    (root / "node_modules" / "lib" / "index.js").write_text("module.exports = {}\n")
    (root / "vendor" / "dep" / "dep.go").write_text("package dep\n")
    (root / "src" / "__pycache__" / "mod.cpython-311.pyc").write_bytes(b"\x00")
    return root
