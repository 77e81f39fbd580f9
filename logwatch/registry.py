"""
Watch registry for LogWatch.

Maps inotify watch descriptors to the absolute directory paths they observe.
The registry holds at most ``capacity`` live watches; once full, new
directories are refused with WatchLimitExceeded and callers leave them
unmonitored.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterator, List

from logwatch.events import WATCH_MASK

DEFAULT_MAX_WATCHES = 1024

logger = logging.getLogger(__name__)


class WatchError(Exception):
    """Base class for watch registry errors."""

    pass


class WatchLimitExceeded(WatchError):
    """Raised when the registry already holds its maximum number of watches."""

    pass


class WatchRegistrationFailed(WatchError):
    """Raised when the notification facility refuses a new watch."""

    pass


class UnknownHandle(WatchError, KeyError):
    """Raised when resolving a handle that is not live."""

    pass


@dataclass(frozen=True)
class WatchEntry:
    handle: int
    path: str


class WatchRegistry:
    """
    Bidirectional handle <-> path table backed by an inotify instance.

    Attributes:
        inotify: Object providing add_watch(path, mask) and rm_watch(wd).
        mask: Event mask used for every watch.
        capacity: Maximum number of simultaneously live watches.
    """

    def __init__(self, inotify, mask: int = WATCH_MASK, capacity: int = DEFAULT_MAX_WATCHES):
        self.inotify = inotify
        self.mask = mask
        self.capacity = capacity
        self._entries: Dict[int, WatchEntry] = {}
        self._handles: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path) -> bool:
        return os.path.abspath(path) in self._handles

    def __iter__(self) -> Iterator[WatchEntry]:
        return iter(list(self._entries.values()))

    @property
    def is_full(self) -> bool:
        return len(self._entries) >= self.capacity

    def add(self, path: str) -> int:
        """
        Register a directory with the notification facility.

        The facility is asked every time, even for a path already in the
        table: the directory behind a known path may have been renamed away
        and replaced by a new one.

        Args:
            path: Directory to watch.

        Returns:
            int: The watch handle.

        Raises:
            WatchLimitExceeded: If the registry is at capacity.
            WatchRegistrationFailed: If the facility refuses the watch.
        """
        path = os.path.abspath(path)
        if self.is_full and path not in self._handles:
            raise WatchLimitExceeded(
                f"Watch limit of {self.capacity} reached, not watching {path}"
            )
        try:
            handle = self.inotify.add_watch(path, self.mask)
        except OSError as e:
            raise WatchRegistrationFailed(f"Cannot watch {path}: {e}") from e

        # Same handle under an old name: the directory was moved to ``path``.
        stale = self._entries.get(handle)
        if stale is not None and stale.path != path:
            self._handles.pop(stale.path, None)

        # Same name under a new handle: the old directory was moved away.
        previous = self._handles.get(path)
        if previous is not None and previous != handle:
            self._entries.pop(previous, None)
            self._release(previous, path)

        self._entries[handle] = WatchEntry(handle, path)
        self._handles[path] = handle
        return handle

    def _release(self, handle: int, path: str) -> bool:
        try:
            self.inotify.rm_watch(handle)
            return True
        except OSError as e:
            # The kernel drops watches on deleted or unmounted directories itself.
            logger.debug(f"Error removing watch {handle} on {path}: {e}")
            return False

    def resolve(self, handle: int) -> str:
        """Return the path watched by ``handle``."""
        try:
            return self._entries[handle].path
        except KeyError:
            raise UnknownHandle(handle) from None

    def handle_for(self, path: str) -> int:
        """Return the handle watching ``path``."""
        try:
            return self._handles[os.path.abspath(path)]
        except KeyError:
            raise UnknownHandle(path) from None

    def discard(self, handle: int) -> None:
        """Forget a handle the kernel has already released. No OS call is made."""
        entry = self._entries.pop(handle, None)
        if entry is not None:
            self._handles.pop(entry.path, None)
            logger.debug(f"Watch {handle} on {entry.path} released by the kernel")

    def paths(self) -> List[str]:
        return [entry.path for entry in self._entries.values()]

    def remove_all(self) -> int:
        """
        Release every live watch and clear the registry.

        Returns:
            int: Number of watches handed back to the facility.
        """
        released = 0
        for entry in list(self._entries.values()):
            if self._release(entry.handle, entry.path):
                released += 1
        self._entries.clear()
        self._handles.clear()
        return released
