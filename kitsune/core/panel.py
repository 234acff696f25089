"""
Panel Controller Module - One tailed file, its records and its sync subscription

Handles:
- Loading a file and feeding initial and live content into the record buffer
- Pause / follow / filter / clear / copy commands
- Broadcasting the selected record's time and reacting to other panels' broadcasts
- Status and error reporting for the presentation layer
"""
import itertools
import logging
import re
import threading
from pathlib import Path
from typing import Iterable, List, Optional

from kitsune.sysmon.tail_source import TailSource
from kitsune.events import EventChannel
from .log_parser import LogRecord
from .record_buffer import RecordBuffer, DEFAULT_CAPACITY
from .sync_hub import SyncHub, SyncEvent

_LINE_BREAK = re.compile(r'\r\n|\r|\n')

_panel_ids = itertools.count(1)


def split_lines(text: str) -> List[str]:
    """Split a text block on any line ending, dropping empty lines"""
    return [line for line in _LINE_BREAK.split(text) if line]


class PanelController:
    """
    Controller behind one log panel

    Events:
    - records_appended(records): batch of new records, in order
    - scroll_to_end_requested(): follow mode wants the newest record visible
    - scroll_to_record_requested(record): sync selected a record in this panel
    - error_occurred(message)
    - status_changed(text)
    - filter_changed(text)
    - filter_to_all_requested(text): the user asked to apply this filter everywhere
    """

    def __init__(self, sync_hub: SyncHub, tail_source: Optional[TailSource] = None,
                 capacity: int = DEFAULT_CAPACITY):
        """
        Initialize the panel controller

        Args:
            sync_hub: Shared hub for timeline synchronization
            tail_source: Tail source to drive (a default TailSource if omitted)
            capacity: Record buffer capacity
        """
        self.panel_id = next(_panel_ids)
        self.logger = logging.getLogger(__name__)

        self._sync_hub = sync_hub
        self._tail = tail_source or TailSource()
        self._buffer = RecordBuffer(capacity)
        self._lock = threading.RLock()
        self._is_disposed = False

        self.title = "New Log"
        self.file_path: Optional[Path] = None
        self.is_following = True
        self.is_paused = False
        self.sync_enabled = True
        self.status_text = "Ready"

        self.records_appended = EventChannel("records_appended")
        self.scroll_to_end_requested = EventChannel("scroll_to_end_requested")
        self.scroll_to_record_requested = EventChannel("scroll_to_record_requested")
        self.error_occurred = EventChannel("error_occurred")
        self.status_changed = EventChannel("status_changed")
        self.filter_changed = EventChannel("filter_changed")
        self.filter_to_all_requested = EventChannel("filter_to_all_requested")

        self._tail.new_content.subscribe(self._on_new_content)
        self._tail.error_occurred.subscribe(self._on_tail_error)
        self._sync_hub.subscribe(self._on_sync_time_changed)

        self.logger.debug(f"Created panel {self.panel_id}")

    @property
    def buffer(self) -> RecordBuffer:
        return self._buffer

    @property
    def tail_source(self) -> TailSource:
        return self._tail

    @property
    def filter_text(self) -> str:
        return self._buffer.filter_text

    @property
    def total_lines(self) -> int:
        return self._buffer.total_lines

    def records(self) -> List[LogRecord]:
        with self._lock:
            return self._buffer.records()

    def filtered_records(self) -> List[LogRecord]:
        with self._lock:
            return self._buffer.filtered()

    def _set_status(self, text: str) -> None:
        self.status_text = text
        self.status_changed.emit(text)

    # --- loading ---------------------------------------------------------

    def load_file(self, path) -> None:
        """
        Start tailing a file, replacing whatever this panel showed before

        Raises:
            TailOpenError: If the file cannot be opened
        """
        path = Path(path)
        self.logger.info(f"Loading {path} into panel {self.panel_id}")

        self.file_path = path
        self.title = path.name
        self._set_status("Loading...")

        # Stop outside the panel lock: the old session's threads may be
        # waiting on it to deliver their last read.
        self._tail.stop_monitoring()

        with self._lock:
            self._buffer.clear()
            try:
                initial = self._tail.start_monitoring(path, read_from_start=False)
            except Exception as e:
                self.logger.error(f"Failed to load {path}: {e}")
                self._set_status(f"Error: {e}")
                raise

            if initial:
                self.logger.debug(f"Initial content: {len(initial)} chars")
                self._append_content(initial)

        self._set_status(f"Monitoring: {path.name}")

    def _append_content(self, text: str) -> List[LogRecord]:
        with self._lock:
            records = self._buffer.append_lines(split_lines(text))
        if records:
            self.records_appended.emit(records)
        return records

    def _on_new_content(self, text: str) -> None:
        # Paused panels drop live content; it is not replayed on resume
        if self.is_paused or self._is_disposed:
            return

        records = self._append_content(text)
        if records and self.is_following:
            self.scroll_to_end_requested.emit()

    def _on_tail_error(self, error: Exception) -> None:
        message = str(error)
        self._set_status(f"Error: {message}")
        self.error_occurred.emit(message)

    # --- commands --------------------------------------------------------

    def pause(self) -> None:
        self.is_paused = True
        self._set_status("Paused")

    def resume(self) -> None:
        self.is_paused = False
        self._set_status(f"Monitoring: {self.title}" if self.file_path else "Ready")

    def toggle_pause(self) -> None:
        if self.is_paused:
            self.resume()
        else:
            self.pause()

    def set_follow(self, follow: bool) -> None:
        self.is_following = bool(follow)
        if self.is_following:
            self.scroll_to_end_requested.emit()

    def toggle_follow(self) -> None:
        self.set_follow(not self.is_following)

    def set_filter(self, text: Optional[str]) -> None:
        with self._lock:
            self._buffer.set_filter(text)
        self.filter_changed.emit(self.filter_text)

    def request_filter_for_all(self) -> None:
        self.filter_to_all_requested.emit(self.filter_text)

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
        self.logger.debug(f"Cleared panel {self.panel_id}")

    def set_sync_enabled(self, enabled: bool) -> None:
        self.sync_enabled = bool(enabled)

    def copy_all(self) -> str:
        with self._lock:
            return self._buffer.copy_text()

    def copy_records(self, records: Iterable[LogRecord]) -> str:
        return self._buffer.copy_text(records)

    # --- synchronization -------------------------------------------------

    def select_record(self, record: LogRecord) -> bool:
        """
        Handle a user selection; broadcasts its time when sync is on

        Returns:
            True if a broadcast was sent
        """
        if record.timestamp is None or not self.sync_enabled or self._is_disposed:
            return False

        self.logger.debug(f"Panel {self.panel_id} selected line {record.sequence}")
        return self._sync_hub.broadcast(record.timestamp, self.panel_id)

    def _on_sync_time_changed(self, event: SyncEvent) -> None:
        if not self.sync_enabled or event.source == self.panel_id:
            return

        with self._lock:
            closest = self._buffer.find_closest_by_time(event.timestamp)

        if closest is not None:
            self.logger.debug(f"Panel {self.panel_id} syncing to line {closest.sequence}")
            self.scroll_to_record_requested.emit(closest)

    # --- teardown --------------------------------------------------------

    def dispose(self) -> None:
        if self._is_disposed:
            return
        self._is_disposed = True

        self._tail.new_content.unsubscribe(self._on_new_content)
        self._tail.error_occurred.unsubscribe(self._on_tail_error)
        self._sync_hub.unsubscribe(self._on_sync_time_changed)
        self._tail.dispose()
        self.logger.debug(f"Disposed panel {self.panel_id}")
