from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
import logging
import os
import threading


def _normalize(path: str) -> str:
    return os.path.normcase(os.path.abspath(path))


class FileChangeHandler(FileSystemEventHandler):
    """Forwards size/write changes of a single file, ignoring its siblings"""

    def __init__(self, file_path: str, callback=None):
        super().__init__()
        self.file_path = _normalize(file_path)
        self.callback = callback

    def _process_event(self, event_type, path):
        if self.callback and _normalize(os.fsdecode(path)) == self.file_path:
            self.callback(event_type, self.file_path)

    def on_created(self, event):
        if not event.is_directory:
            self._process_event("created", event.src_path)

    def on_modified(self, event):
        if not event.is_directory:
            self._process_event("modified", event.src_path)

    def on_moved(self, event):
        # A rotated file moved into place under the watched name
        if not event.is_directory:
            self._process_event("moved", event.dest_path)


class FileWatcher:
    """Watches the directory of one file and reports changes to that file only"""

    def __init__(self, file_path: str, callback=None):
        self.file_path = os.path.abspath(file_path)
        self.directory = os.path.dirname(self.file_path) or "."
        self.event_handler = FileChangeHandler(self.file_path, callback)
        self.observer = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_running(self) -> bool:
        return self.observer is not None and self.observer.is_alive()

    def start(self):
        if self.is_running:
            return

        if not os.path.isdir(self.directory):
            raise FileNotFoundError(f"Directory not found: {self.directory}")

        self.observer = Observer()
        self.observer.schedule(self.event_handler, self.directory, recursive=False)
        self.observer.daemon = True
        self.observer.start()
        self.logger.debug(f"Started watching {self.file_path}")

    def stop(self):
        observer, self.observer = self.observer, None
        if observer is None:
            return

        self.event_handler.callback = None
        observer.unschedule_all()
        observer.stop()
        # Stopping from inside a watchdog callback must not join its own thread
        if observer.is_alive() and observer is not threading.current_thread():
            observer.join(timeout=2.0)
        self.logger.debug(f"Stopped watching {self.file_path}")