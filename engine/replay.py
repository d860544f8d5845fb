"""
Replay Buffer

A bounded, time-ordered cache of historical readings served back
through a wrapping cursor. The buffer is only ever replaced
wholesale: load() swaps in a new sorted, trimmed snapshot and
resets the cursor; it is never partially mutated.
"""

import logging
from typing import Iterable, Optional, Tuple

from core.reading import Reading

logger = logging.getLogger(__name__)

REPLAY_CAPACITY = 1000


class ReplayBuffer:
    """
    Cyclic reader over the most recent stored readings.

    Example:
        buffer = ReplayBuffer()
        buffer.load(await store.get_all())
        reading = buffer.next()   # None when empty
    """

    def __init__(self, capacity: int = REPLAY_CAPACITY):
        self.capacity = capacity
        self._entries: Tuple[Reading, ...] = ()
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> Tuple[Reading, ...]:
        return self._entries

    def load(self, readings: Iterable[Reading]) -> int:
        """
        Replace the contents with the most recent ``capacity`` readings
        in ascending timestamp order, and rewind the cursor.

        Returns:
            Number of readings now buffered
        """
        ordered = sorted(readings, key=lambda r: r.timestamp)
        if len(ordered) > self.capacity:
            ordered = ordered[-self.capacity:]
        self._entries = tuple(ordered)
        self._cursor = 0
        logger.info(f"Loaded {len(self._entries)} readings for replay")
        return len(self._entries)

    def clear(self) -> None:
        self._entries = ()
        self._cursor = 0

    def next(self) -> Optional[Reading]:
        """
        Return the reading at the cursor and advance with wraparound.

        Returns:
            The next reading, or None if the buffer is empty
        """
        if not self._entries:
            return None
        reading = self._entries[self._cursor]
        self._cursor = (self._cursor + 1) % len(self._entries)
        return reading
