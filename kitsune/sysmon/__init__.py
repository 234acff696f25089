"""
Kitsune file monitoring - change notifications and incremental tailing
"""

from .file_watch import FileChangeHandler, FileWatcher
from .tail_source import TailSource, TailOpenError, TailSourceDisposedError

__all__ = [
    'FileChangeHandler',
    'FileWatcher',
    'TailSource',
    'TailOpenError',
    'TailSourceDisposedError',
]
