"""
Record Buffer Module - Bounded in-memory storage for parsed log records

Handles:
- Sequence number assignment
- FIFO eviction once the capacity is reached
- Case-insensitive text filter over the raw lines
- Nearest-timestamp lookup for timeline synchronization
"""
from collections import deque
from datetime import datetime
from typing import Deque, Iterable, Iterator, List, Optional

from .log_parser import LogParser, LogRecord

DEFAULT_CAPACITY = 50000


class RecordBuffer:
    """
    Ordered, capacity-bounded sequence of LogRecords

    Not thread-safe on its own: the owning PanelController serializes every
    call through its lock.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, parser: Optional[LogParser] = None):
        """
        Initialize the buffer

        Args:
            capacity: Maximum number of records kept; the oldest is evicted first
            parser: Parser used by append (a new LogParser by default)
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.capacity = capacity
        self.parser = parser or LogParser()
        self._records: Deque[LogRecord] = deque(maxlen=capacity)
        self._sequence = 0
        self._filter_text = ""
        self._filter_key = ""

    def append(self, raw_line: str) -> LogRecord:
        """Parse a line with the next sequence number and store it"""
        self._sequence += 1
        record = self.parser.parse_line(raw_line, self._sequence)
        # deque(maxlen) drops the leftmost record on overflow
        self._records.append(record)
        return record

    def append_lines(self, lines: Iterable[str]) -> List[LogRecord]:
        return [self.append(line) for line in lines]

    def clear(self) -> None:
        """Remove all records and restart numbering"""
        self._records.clear()
        self._sequence = 0

    @property
    def total_lines(self) -> int:
        """Number of lines appended since the last clear, evicted ones included"""
        return self._sequence

    @property
    def first_sequence(self) -> Optional[int]:
        return self._records[0].sequence if self._records else None

    def records(self) -> List[LogRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[LogRecord]:
        return iter(list(self._records))

    # --- filtering -------------------------------------------------------

    @property
    def filter_text(self) -> str:
        return self._filter_text

    def set_filter(self, text: Optional[str]) -> None:
        """Replace the active filter; blank text matches everything"""
        self._filter_text = text or ""
        self._filter_key = self._filter_text.lower() if self._filter_text.strip() else ""

    def matches(self, record: LogRecord) -> bool:
        if not self._filter_key:
            return True
        return self._filter_key in record.raw_text.lower()

    def filtered(self) -> List[LogRecord]:
        """Records passing the current filter, in buffer order"""
        if not self._filter_key:
            return list(self._records)
        return [record for record in self._records if self.matches(record)]

    # --- lookup ----------------------------------------------------------

    def find_closest_by_time(self, target: datetime) -> Optional[LogRecord]:
        """
        Find the timestamped record nearest to target

        Ties go to the earlier record (lower sequence number).

        Returns:
            The closest LogRecord, or None if no record has a timestamp
        """
        best: Optional[LogRecord] = None
        best_distance = None

        for record in self._records:
            if record.timestamp is None:
                continue
            distance = abs(record.timestamp - target)
            if best is None or distance < best_distance:
                best = record
                best_distance = distance

        return best

    def copy_text(self, records: Optional[Iterable[LogRecord]] = None) -> str:
        """Raw text of the given records (all by default), one per line"""
        source = self._records if records is None else records
        return "\n".join(record.raw_text for record in source)
