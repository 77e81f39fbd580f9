"""
Event dispatch loop for LogWatch.

The dispatcher blocks on the inotify descriptor, decodes every record in the
buffer it reads, resolves each record to a path through the watch registry,
and emits one log action per event kind set on the record. Newly created
directories are added to the registry as they appear, so the watch set
follows the tree as it grows.

Shutdown is cooperative: stop() only sets a flag and wakes the blocking
wait through a pipe, so the registry and throttle cache are never touched
outside the loop.
"""

import logging
import os
import selectors
import threading
from typing import Callable, Optional

from logwatch import events as ev
from logwatch.registry import UnknownHandle, WatchError, WatchLimitExceeded

DEFAULT_READ_SIZE = 1024 * (16 + 16)
MIN_READ_SIZE = 16 + 255 + 1

logger = logging.getLogger(__name__)


class EventDispatcher:
    """
    Read, decode and dispatch inotify events until stopped.

    Attributes:
        inotify: inotify_simple.INotify (anything with fileno()).
        registry: WatchRegistry resolving handles and receiving new watches.
        throttle: AccessThrottleCache consulted for access events.
        emit: Callable taking (description, path) for each log action.
        read_size: Maximum bytes read from the descriptor at once.
        ignored_paths: Absolute paths whose events are never logged.
    """

    def __init__(
        self,
        inotify,
        registry,
        throttle,
        emit: Callable[[str, str], object],
        read_size: int = DEFAULT_READ_SIZE,
        ignored_paths=(),
    ):
        self.inotify = inotify
        self.registry = registry
        self.throttle = throttle
        self.emit = emit
        # Our own log files; logging their writes would feed back forever.
        self.ignored_paths = frozenset(os.path.abspath(p) for p in ignored_paths)
        # A read smaller than one maximal record fails with EINVAL.
        self.read_size = max(read_size, MIN_READ_SIZE)
        self.stop_event = threading.Event()
        self.events_seen = 0
        self.events_logged = 0
        self.events_throttled = 0
        self._wake_r, self._wake_w = os.pipe()
        os.set_blocking(self._wake_w, False)
        self._selector = None

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()

    def _log(self, description: str, path: str) -> None:
        self.emit(description, path)
        self.events_logged += 1

    def _watch_new_directory(self, path: str) -> None:
        try:
            self.registry.add(path)
            logger.info(f"New directory added to watch: {path}")
        except WatchLimitExceeded as e:
            logger.debug(str(e))
        except WatchError as e:
            logger.debug(f"Not watching new directory: {e}")

    def dispatch(self, event: ev.RawEvent) -> int:
        """
        Handle one decoded event.

        Returns:
            int: Number of log actions emitted for the event.
        """
        self.events_seen += 1
        if event.overflow:
            logger.warning("Kernel event queue overflowed; some events were lost")
            return 0

        try:
            base = self.registry.resolve(event.wd)
        except UnknownHandle:
            logger.debug(f"Skipping event for unknown watch {event.wd}")
            return 0

        if event.ignored:
            self.registry.discard(event.wd)
            return 0

        path = ev.full_path(base, event.name)
        if path in self.ignored_paths:
            return 0
        before = self.events_logged

        if event.created:
            if event.is_dir:
                self._watch_new_directory(path)
                self._log(ev.DIRECTORY_CREATED, path)
            else:
                self._log(ev.FILE_CREATED, path)

        if event.deleted:
            self._log(ev.DIRECTORY_DELETED if event.is_dir else ev.FILE_DELETED, path)

        if event.modified:
            self._log(ev.DIRECTORY_MODIFIED if event.is_dir else ev.FILE_MODIFIED, path)

        if event.accessed:
            if self.throttle.should_throttle(path):
                self.events_throttled += 1
            else:
                self._log(
                    ev.DIRECTORY_ACCESSED if event.is_dir else ev.FILE_ACCESSED, path
                )

        return self.events_logged - before

    def process(self, data: bytes) -> int:
        """
        Decode a raw buffer and dispatch every record in it.

        Raises:
            MalformedEventBuffer: If the buffer cannot be decoded.
        """
        logged = 0
        for event in ev.decode_events(data):
            logged += self.dispatch(event)
        return logged

    def _ensure_selector(self):
        if self._selector is None:
            self._selector = selectors.DefaultSelector()
            self._selector.register(self.inotify.fileno(), selectors.EVENT_READ, "inotify")
            self._selector.register(self._wake_r, selectors.EVENT_READ, "wake")
        return self._selector

    def run_once(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for one buffer of events and process it.

        Args:
            timeout: Seconds to wait; None blocks until events or stop().

        Returns:
            bool: False once a stop has been requested, True otherwise.

        Raises:
            OSError: If reading the inotify descriptor fails.
            MalformedEventBuffer: If the buffer cannot be decoded.
        """
        if self.stopped:
            return False
        ready = {key.data for key, _ in self._ensure_selector().select(timeout)}
        if "wake" in ready or self.stopped:
            return False

        if "inotify" in ready:
            data = os.read(self.inotify.fileno(), self.read_size)
            if data:
                self.process(data)
        return True

    def run(self) -> None:
        """
        Dispatch events until stop() is called or the stream fails.

        Read and decode failures end the loop; they are logged and not raised
        so the caller can carry on with its shutdown sequence.
        """
        logger.info("Event dispatcher started")
        while not self.stopped:
            try:
                if not self.run_once():
                    break
            except ev.MalformedEventBuffer as e:
                logger.error(f"Cannot decode inotify events: {e}")
                break
            except OSError as e:
                logger.error(f"read: {e}")
                break
        logger.info(
            f"Event dispatcher stopped: seen={self.events_seen}, "
            f"logged={self.events_logged}, throttled={self.events_throttled}"
        )

    def stop(self) -> None:
        """Request the loop to exit. Safe to call from a signal handler or another thread."""
        self.stop_event.set()
        try:
            os.write(self._wake_w, b"\0")
        except OSError:
            # Pipe already full or closed; the flag alone is enough then.
            pass

    def close(self) -> None:
        if self._selector is not None:
            self._selector.close()
            self._selector = None
        for fd in (self._wake_r, self._wake_w):
            if fd < 0:
                continue
            try:
                os.close(fd)
            except OSError as e:
                logger.debug(f"Error closing wake-up pipe: {e}")
        self._wake_r = self._wake_w = -1
