"""
LogBuffer for the dashboard log panel.

This module implements a ring buffer holding the most recent diagnostic
records. Uses collections.deque with maxlen for automatic oldest-removal
when the buffer is full; the log panel only ever shows the tail, so older
records are never needed.
"""

from collections import deque
from collections.abc import Iterator
from itertools import islice

from ez_rke.log import LogRecord

DEFAULT_CAPACITY = 1000


class LogBuffer:
    """
    Fixed-size ring buffer of LogRecords, oldest first.

    Only the run loop appends to it, so no locking is needed.

    Example:
        buffer = LogBuffer(capacity=500)
        buffer.append(record)
        visible = buffer.tail(20)
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """
        Initialize buffer with maximum record count.

        Args:
            capacity: Maximum number of records to keep (default 1000)
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._records: deque[LogRecord] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._records.maxlen or 0

    def append(self, record: LogRecord) -> None:
        """
        Add a record. When the buffer is full, the oldest record is dropped.

        Args:
            record: Record to add
        """
        self._records.append(record)

    def window(self, offset: int, count: int) -> list[LogRecord]:
        """
        Get up to `count` records starting at `offset`.

        Args:
            offset: Index of the first record (0 is the oldest kept)
            count: Maximum number of records to return

        Returns:
            Records in insertion order
        """
        if count <= 0:
            return []
        return list(islice(self._records, max(offset, 0), max(offset, 0) + count))

    def tail(self, n: int) -> list[LogRecord]:
        """Get the last n records, oldest first."""
        if n <= 0:
            return []
        return self.window(len(self._records) - n, n)

    def __len__(self) -> int:
        """Return number of records in buffer."""
        return len(self._records)

    def __iter__(self) -> Iterator[LogRecord]:
        """Iterate over records, oldest first."""
        return iter(self._records)

    def clear(self) -> None:
        """Clear all records from buffer."""
        self._records.clear()
