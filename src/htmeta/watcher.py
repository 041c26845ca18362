"""Polling file watcher for ``htmeta --watch``.

The watch set is replaced wholesale after every successful build with the
files that build read. A file counts as changed when its modification time
or size differs from the last snapshot; access-time updates are ignored.
Bursts of changes (editors writing a file in several steps) are coalesced by
waiting a short debounce window before reporting.
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable, Iterable
from pathlib import Path

DEBOUNCE = 0.005
POLL_INTERVAL = 0.1

Stamp = tuple[int, int] | None


def _stamp(path: Path) -> Stamp:
    try:
        stat = path.stat()
    except FileNotFoundError:
        return None
    return stat.st_mtime_ns, stat.st_size


class Watcher:
    """Watches a set of files for content changes.

    Example:
        >>> watcher = Watcher(["index.kdl"])
        >>> watcher.changed()
        set()
    """

    __slots__ = ("_debounce", "_poll_interval", "_sleep", "_snapshot")

    def __init__(
        self,
        paths: Iterable[str | os.PathLike[str]] = (),
        poll_interval: float = POLL_INTERVAL,
        debounce: float = DEBOUNCE,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._poll_interval = poll_interval
        self._debounce = debounce
        self._sleep = sleep
        self._snapshot: dict[Path, Stamp] = {}
        self.replace(paths)

    @property
    def paths(self) -> frozenset[Path]:
        return frozenset(self._snapshot)

    def replace(self, paths: Iterable[str | os.PathLike[str]]) -> None:
        """Watch exactly ``paths`` from now on."""
        self._snapshot = {Path(p): _stamp(Path(p)) for p in paths}

    def changed(self) -> set[Path]:
        """Return the watched files that changed since the last check."""
        changed = set()
        for path, previous in self._snapshot.items():
            current = _stamp(path)
            if current != previous:
                self._snapshot[path] = current
                changed.add(path)
        return changed

    def wait_for_change(self, timeout: float | None = None) -> set[Path]:
        """Block until a watched file changes.

        Returns:
            The changed files, or an empty set if ``timeout`` seconds passed
            without a change.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            changed = self.changed()
            if changed:
                self._sleep(self._debounce)
                return changed | self.changed()
            if deadline is not None and time.monotonic() >= deadline:
                return set()
            self._sleep(self._poll_interval)
