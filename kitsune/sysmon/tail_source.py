"""
Tail Source Module - Incremental reading of one growing log file

Handles:
- Initial load (whole file or the last N lines via a backward scan)
- Push change notifications (watchdog) plus a polling fallback thread
- Serialized read-and-advance of the consumed byte offset
- Truncation/rotation detection by a shrinking file length
- Transient I/O errors reported as events without stopping the tail
"""
import logging
import os
from pathlib import Path
from threading import Event, Lock, Thread, current_thread
from typing import List, Optional

from kitsune.events import EventChannel
from .file_watch import FileWatcher

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_INITIAL_LINES = 100
DEFAULT_CHUNK_SIZE = 4096

_BOM = b'\xef\xbb\xbf'


class TailOpenError(Exception):
    """The file could not be opened when monitoring started"""
    pass


class TailSourceDisposedError(RuntimeError):
    pass


def _decode(data: bytes, at_file_start: bool) -> str:
    """Decode UTF-8, dropping a byte-order mark only if the bytes start the file"""
    if at_file_start and data.startswith(_BOM):
        data = data[len(_BOM):]
    return data.decode('utf-8', errors='replace')


class TailSource:
    """
    Follows one file like 'tail -f'

    Events:
    - new_content(text): newly appended text block, may hold several lines
    - error_occurred(exception): open or read failure
    """

    def __init__(self, poll_interval: float = DEFAULT_POLL_INTERVAL,
                 initial_lines: int = DEFAULT_INITIAL_LINES,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 watch_events: bool = True):
        """
        Initialize the tail source

        Args:
            poll_interval: Seconds between fallback polls
            initial_lines: Lines returned by start_monitoring when not reading from start
            chunk_size: Block size of the backward scan
            watch_events: Subscribe to filesystem notifications in addition to polling
        """
        self.poll_interval = poll_interval
        self.initial_lines = initial_lines
        self.chunk_size = chunk_size
        self.watch_events = watch_events

        self.new_content = EventChannel("new_content")
        self.error_occurred = EventChannel("error_occurred")

        self._file_path: Optional[Path] = None
        self._last_read_offset = 0
        self._is_monitoring = False
        self._is_disposed = False

        self._read_lock = Lock()
        self._state_lock = Lock()
        self._stop_event = Event()
        self._poll_thread: Optional[Thread] = None
        self._watcher: Optional[FileWatcher] = None

        self.logger = logging.getLogger(__name__)

    # --- properties ------------------------------------------------------

    @property
    def file_path(self) -> Optional[Path]:
        return self._file_path

    @property
    def file_name(self) -> str:
        return self._file_path.name if self._file_path else ""

    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    @property
    def is_disposed(self) -> bool:
        return self._is_disposed

    @property
    def last_read_offset(self) -> int:
        return self._last_read_offset

    # --- lifecycle -------------------------------------------------------

    def start_monitoring(self, file_path, read_from_start: bool = False) -> str:
        """
        Read the initial content of a file and start following it

        Args:
            file_path: File to tail
            read_from_start: Return the whole file instead of its last lines

        Returns:
            Initial text (lines separated by newlines)

        Raises:
            TailSourceDisposedError: If dispose() was called
            TailOpenError: If the file cannot be opened or read
        """
        self.logger.info(f"Start monitoring: {file_path}")

        if self._is_disposed:
            self.logger.error("TailSource is already disposed")
            raise TailSourceDisposedError("TailSource has been disposed")

        self.stop_monitoring()

        path = Path(file_path)
        try:
            with self._read_lock:
                with open(path, 'rb') as f:
                    if read_from_start:
                        initial = _decode(f.read(), at_file_start=True)
                        offset = f.tell()
                    else:
                        lines = self._read_last_lines(f, self.initial_lines)
                        initial = "\n".join(lines)
                        offset = f.seek(0, os.SEEK_END)

                self._file_path = path
                self._last_read_offset = offset
        except OSError as e:
            self.logger.error(f"Failed to start monitoring {path}: {e}")
            self.error_occurred.emit(e)
            raise TailOpenError(f"Cannot open {path}: {e}") from e

        with self._state_lock:
            self._stop_event = Event()
            self._is_monitoring = True

            if self.watch_events:
                self._watcher = FileWatcher(str(path), callback=self._on_file_changed)
                try:
                    self._watcher.start()
                except OSError as e:
                    # Polling alone keeps the tail alive
                    self.logger.warning(f"Change notifications unavailable for {path}: {e}")
                    self._watcher = None
                    self.error_occurred.emit(e)

            self._poll_thread = Thread(target=self._poll_loop, args=(self._stop_event,),
                                       name=f"tail-{path.name}", daemon=True)
            self._poll_thread.start()

        self.logger.info(f"Now monitoring: {path} (offset {self._last_read_offset})")
        return initial

    def stop_monitoring(self) -> None:
        """Stop both change triggers; an in-flight read is allowed to finish"""
        with self._state_lock:
            was_monitoring = self._is_monitoring
            self._is_monitoring = False
            self._stop_event.set()

            watcher, self._watcher = self._watcher, None
            poll_thread, self._poll_thread = self._poll_thread, None

        if watcher:
            watcher.stop()

        if poll_thread and poll_thread.is_alive() and poll_thread is not current_thread():
            poll_thread.join(timeout=2.0)

        if was_monitoring:
            self.logger.info(f"Stopped monitoring: {self._file_path}")

    def dispose(self) -> None:
        if self._is_disposed:
            return
        self._is_disposed = True
        self.stop_monitoring()

    # --- reading ---------------------------------------------------------

    def _read_last_lines(self, f, line_count: int) -> List[str]:
        """
        Scan backward from the end of an open binary file

        The bytes before the first newline of a chunk are carried over as
        leftover, since they may continue in the preceding chunk.
        """
        position = f.seek(0, os.SEEK_END)
        if position == 0 or line_count <= 0:
            return []

        lines: List[str] = []
        leftover = b''

        while position > 0 and len(lines) < line_count:
            to_read = min(self.chunk_size, position)
            position -= to_read
            f.seek(position)
            chunk = f.read(to_read) + leftover

            parts = chunk.split(b'\n')
            leftover = parts[0]

            for raw in reversed(parts[1:]):
                line = _decode(raw, at_file_start=False).rstrip('\r')
                # Skip the empty tail after the last newline, keep inner blanks
                if line or lines:
                    lines.insert(0, line)
                    if len(lines) >= line_count:
                        break

        if leftover and len(lines) < line_count:
            lines.insert(0, _decode(leftover, at_file_start=position == 0).rstrip('\r'))

        return lines

    def _on_file_changed(self, event_type: str, path: str) -> None:
        self.logger.debug(f"File {event_type}: {path}")
        self.read_new_content()

    def _poll_loop(self, stop_event: Event) -> None:
        """Fallback trigger - runs in background thread"""
        while not stop_event.wait(self.poll_interval):
            self.read_new_content()

    def read_new_content(self) -> None:
        """
        Read bytes appended since the last read and emit them

        Safe to call from the watcher and the poller at the same time.
        Errors are reported through error_occurred and retried on the
        next trigger.
        """
        if self._is_disposed:
            return

        with self._read_lock:
            if not self._is_monitoring or self._file_path is None:
                return

            try:
                with open(self._file_path, 'rb') as f:
                    length = os.fstat(f.fileno()).st_size

                    if length < self._last_read_offset:
                        self.logger.info(
                            f"Rotation detected on {self._file_path}: "
                            f"length {length} < offset {self._last_read_offset}"
                        )
                        self._last_read_offset = 0

                    if length <= self._last_read_offset:
                        return

                    start = self._last_read_offset
                    f.seek(start)
                    data = f.read()
                    self._last_read_offset = start + len(data)

                text = _decode(data, at_file_start=start == 0)
                if text:
                    self.new_content.emit(text)

            except OSError as e:
                self.logger.warning(f"Error reading {self._file_path}: {e}")
                self.error_occurred.emit(e)