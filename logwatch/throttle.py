"""
Per-path throttling of access events.

Access events are the noisiest kind inotify produces; a file being read can
generate dozens of them per second. The cache lets the first access for a
path through and then suppresses further ones until the window has elapsed.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict

DEFAULT_WINDOW_MS = 3000
DEFAULT_CAPACITY = 256


@dataclass
class AccessRecord:
    path: str
    last_logged_at: float


class AccessThrottleCache:
    """
    Fixed-capacity table of the last logged access time per path.

    Records are never evicted. Once the table is full, paths without a record
    are always let through and never recorded; tracked paths keep throttling.
    """

    def __init__(
        self,
        window_ms: float = DEFAULT_WINDOW_MS,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            window_ms: Minimum interval between two logged accesses of one path.
            capacity: Maximum number of paths tracked.
            clock: Returns the current time in seconds.
        """
        self.window_ms = window_ms
        self.capacity = capacity
        self.clock = clock
        self._records: Dict[str, AccessRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, path) -> bool:
        return path in self._records

    @property
    def is_full(self) -> bool:
        return len(self._records) >= self.capacity

    def _now_ms(self) -> float:
        return self.clock() * 1000.0

    def last_logged_at(self, path: str) -> float:
        return self._records[path].last_logged_at

    def should_throttle(self, path: str) -> bool:
        """
        Decide whether an access event for ``path`` should be suppressed.

        Returns:
            bool: True to suppress the event, False to log it.
        """
        now = self._now_ms()
        record = self._records.get(path)
        if record is None:
            if not self.is_full:
                self._records[path] = AccessRecord(path, now)
            return False

        if now - record.last_logged_at < self.window_ms:
            return True

        record.last_logged_at = now
        return False
