import errno
import logging
import os
import struct

import pytest

EVENT_FMT = "iIII"


def pack_event(wd, mask, name="", cookie=0):
    """Build one raw inotify record the way the kernel lays it out."""
    raw_name = name.encode() if name else b""
    if raw_name:
        padded = len(raw_name) + 1
        padded += (-padded) % 16
        raw_name = raw_name.ljust(padded, b"\0")
    return struct.pack(EVENT_FMT, wd, mask, cookie, len(raw_name)) + raw_name


class FakeINotify:
    """
    Stand-in for inotify_simple.INotify.

    Handles are issued sequentially from 1. The readable end of a pipe plays
    the inotify descriptor; feed() writes raw records into it.
    """

    def __init__(self, fail_paths=()):
        self.next_wd = 1
        self.watches = {}
        self.added = []
        self.requests = []
        self.removed = []
        self.fail_paths = set(fail_paths)
        self._r, self._w = os.pipe()
        self.closed = False

    def add_watch(self, path, mask):
        self.requests.append(path)
        if path in self.fail_paths:
            raise PermissionError(errno.EACCES, "Permission denied", path)
        for wd, watched in self.watches.items():
            if watched == path:
                return wd
        wd = self.next_wd
        self.next_wd += 1
        self.watches[wd] = path
        self.added.append((path, mask))
        return wd

    def rename(self, old, new):
        """Move a watched directory; the kernel keeps its handle on the inode."""
        for wd, watched in list(self.watches.items()):
            if watched == old:
                self.watches[wd] = new

    def rm_watch(self, wd):
        if wd not in self.watches:
            raise OSError(errno.EINVAL, "Invalid argument")
        del self.watches[wd]
        self.removed.append(wd)

    def fileno(self):
        return self._r

    def feed(self, data):
        os.write(self._w, data)

    def close(self):
        if not self.closed:
            os.close(self._r)
            os.close(self._w)
            self.closed = True


class FakeClock:
    """Monotonic clock in seconds, advanced in whole milliseconds."""

    def __init__(self, start_ms=1000000):
        self.ms = start_ms

    def __call__(self):
        return self.ms / 1000.0

    def advance_ms(self, ms):
        self.ms += ms


@pytest.fixture
def fake_inotify():
    inotify = FakeINotify()
    yield inotify
    inotify.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_logwatch_logger():
    """The CLI attaches handlers to the package logger; drop them between tests."""
    yield
    package_logger = logging.getLogger("logwatch")
    package_logger.handlers = []
    package_logger.setLevel(logging.NOTSET)
