"""
Event decoding and classification for LogWatch.

Raw inotify records are decoded with inotify_simple and turned into
RawEvent objects. Kind bits are not exclusive: one record may be a
creation and a modification at once, and the dispatcher logs each.
"""

import struct
from dataclasses import dataclass
from typing import List

from inotify_simple import flags, parse_events

WATCH_MASK = flags.CREATE | flags.DELETE | flags.MODIFY | flags.ACCESS | flags.ISDIR

FILE_CREATED = "File created"
FILE_DELETED = "File deleted"
FILE_MODIFIED = "File modified"
FILE_ACCESSED = "File accessed"
DIRECTORY_CREATED = "Directory created"
DIRECTORY_DELETED = "Directory deleted"
DIRECTORY_MODIFIED = "Directory modified"
DIRECTORY_ACCESSED = "Directory accessed"


class MalformedEventBuffer(ValueError):
    """Raised when a notification buffer cannot be decoded."""

    pass


@dataclass(frozen=True)
class RawEvent:
    """A single decoded inotify record."""

    wd: int
    mask: int
    cookie: int = 0
    name: str = ""

    @property
    def is_dir(self) -> bool:
        return bool(self.mask & flags.ISDIR)

    @property
    def created(self) -> bool:
        return bool(self.mask & flags.CREATE)

    @property
    def deleted(self) -> bool:
        return bool(self.mask & flags.DELETE)

    @property
    def modified(self) -> bool:
        return bool(self.mask & flags.MODIFY)

    @property
    def accessed(self) -> bool:
        return bool(self.mask & flags.ACCESS)

    @property
    def ignored(self) -> bool:
        """The kernel retired this watch handle."""
        return bool(self.mask & flags.IGNORED)

    @property
    def overflow(self) -> bool:
        """The kernel event queue overflowed and events were lost."""
        return bool(self.mask & flags.Q_OVERFLOW)


def decode_events(data: bytes) -> List[RawEvent]:
    """
    Decode a buffer read from an inotify file descriptor.

    Each record is a fixed-size header followed by a NUL padded name of
    the length given in the header. The scan advances by header size plus
    name length until the buffer is consumed.

    Args:
        data: Bytes returned by a single read of the inotify descriptor.

    Returns:
        List of RawEvent in buffer order.

    Raises:
        MalformedEventBuffer: If a record header is truncated.
    """
    try:
        events = parse_events(data)
    except struct.error as e:
        raise MalformedEventBuffer(
            f"Truncated inotify record in {len(data)} byte buffer: {e}"
        ) from e
    return [RawEvent(ev.wd, ev.mask, ev.cookie, ev.name) for ev in events]


def full_path(base: str, name: str) -> str:
    """Join a watched directory and an event name; an empty name keeps the trailing slash."""
    return f"{base}/{name}"
