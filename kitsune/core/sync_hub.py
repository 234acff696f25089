"""
Sync Hub Module - Timestamp broadcast between log panels

One hub is created at startup and handed to every PanelController. A panel
announces the time the user is looking at; every other subscribed panel
scrolls to its own nearest record.
"""
import logging
import threading
from datetime import datetime
from typing import Callable, NamedTuple, Optional, Tuple

from kitsune.events import EventChannel


class SyncEvent(NamedTuple):
    """A broadcast time and the handle of the panel that sent it"""
    timestamp: datetime
    source: int


class SyncHub:
    """Process-wide broadcast point for timeline synchronization"""

    def __init__(self, enabled: bool = False):
        self._enabled = enabled
        self._current_time: Optional[datetime] = None
        self._current_source: Optional[int] = None
        self._lock = threading.Lock()
        self.sync_time_changed = EventChannel("sync_time_changed")
        self.logger = logging.getLogger(__name__)

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        with self._lock:
            self._enabled = bool(value)
            self._current_time = None
            self._current_source = None
        self.logger.info(f"Time sync {'enabled' if value else 'disabled'}")

    @property
    def current_time(self) -> Optional[datetime]:
        with self._lock:
            return self._current_time

    @property
    def current_source(self) -> Optional[int]:
        with self._lock:
            return self._current_source

    def state(self) -> Tuple[Optional[datetime], Optional[int]]:
        """Current time and source read together"""
        with self._lock:
            return self._current_time, self._current_source

    def subscribe(self, callback: Callable[[SyncEvent], None]) -> None:
        self.sync_time_changed.subscribe(callback)

    def unsubscribe(self, callback: Callable[[SyncEvent], None]) -> None:
        self.sync_time_changed.unsubscribe(callback)

    def broadcast(self, timestamp: datetime, source: int) -> bool:
        """
        Announce a time of interest

        Args:
            timestamp: Time the source panel is looking at
            source: Handle of the broadcasting panel

        Returns:
            False if sync is disabled and nothing was sent
        """
        with self._lock:
            if not self._enabled:
                self.logger.debug("Broadcast ignored: sync disabled")
                return False
            self._current_time = timestamp
            self._current_source = source

        self.logger.debug(f"Broadcast {timestamp:%H:%M:%S.%f} from panel {source}")
        self.sync_time_changed.emit(SyncEvent(timestamp, source))
        return True

    def is_current_source(self, source: int) -> bool:
        with self._lock:
            return self._current_source is not None and self._current_source == source

    def reset(self) -> None:
        with self._lock:
            self._current_time = None
            self._current_source = None
