"""
Log Table Module - DataTable for displaying log records

Handles:
- Record display with color-coded levels
- Rows keyed by sequence number so evicted records can be dropped
- Row lookup for selection and sync scrolling
"""
from typing import Dict, Iterable, List, Optional

from textual.widgets import DataTable
from rich.text import Text

from kitsune.core.log_parser import LogRecord


class LogRecordTable(DataTable):
    """DataTable of LogRecords, one row per record"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.record_map: Dict[str, LogRecord] = {}  # Maps row key to LogRecord
        self.max_message_length = 240

    def on_mount(self) -> None:
        """Initialize table columns when mounted"""
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns("#", "Time", "Level", "Message")

    def _format_record(self, record: LogRecord) -> tuple:
        timestamp = record.short_time or "-"

        message = record.content
        if len(message) > self.max_message_length:
            message = message[:self.max_message_length - 3] + "..."

        style = record.level.color
        return (
            str(record.sequence),
            timestamp,
            Text(record.level.value, style=style),
            Text(message, style=style),
        )

    def add_records(self, records: Iterable[LogRecord]) -> None:
        for record in records:
            key = str(record.sequence)
            if key in self.record_map:
                continue
            self.add_row(*self._format_record(record), key=key)
            self.record_map[key] = record

    def show_records(self, records: Iterable[LogRecord]) -> None:
        """Replace the table content"""
        self.clear()
        self.record_map.clear()
        self.add_records(records)

    def remove_before(self, sequence: Optional[int]) -> None:
        """Drop rows of records older than sequence (evicted from the buffer)"""
        if sequence is None:
            return
        stale: List[str] = []
        # Rows are inserted in sequence order
        for key, record in self.record_map.items():
            if record.sequence >= sequence:
                break
            stale.append(key)
        for key in stale:
            self.remove_row(key)
            del self.record_map[key]

    def get_selected_record(self) -> Optional[LogRecord]:
        if self.row_count == 0:
            return None
        row_key = self.coordinate_to_cell_key(self.cursor_coordinate).row_key
        return self.record_map.get(row_key.value)

    def jump_to_record(self, record: LogRecord) -> bool:
        key = str(record.sequence)
        if key not in self.record_map:
            return False
        row = self.get_row_index(key)
        self.move_cursor(row=row)
        return True

    def jump_to_bottom(self) -> None:
        if self.row_count > 0:
            self.move_cursor(row=self.row_count - 1)
