"""
Event channel - callback based publish/subscribe used by every engine component
"""
import logging
import threading
from typing import Callable, List


class EventChannel:
    """
    Thread-safe list of subscriber callbacks.

    Delivery holds a re-entrant lock, so once unsubscribe() returns the
    removed callback is never invoked again. Callbacks may unsubscribe
    themselves from inside a delivery.
    """

    def __init__(self, name: str = "event"):
        self.name = name
        self._subscribers: List[Callable] = []
        self._lock = threading.RLock()
        self.logger = logging.getLogger(__name__)

    def subscribe(self, callback: Callable) -> None:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def emit(self, *args) -> None:
        """Deliver to every current subscriber; one failing subscriber does not stop the others"""
        with self._lock:
            for callback in list(self._subscribers):
                # Skip callbacks removed by an earlier subscriber in this delivery
                if callback not in self._subscribers:
                    continue
                try:
                    callback(*args)
                except Exception:
                    self.logger.exception(f"Subscriber of '{self.name}' failed")

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)
