"""
Kitsune Core Package - parsing, buffering and synchronization of log records

Package Structure:
- log_parser: Timestamp and level extraction (LogParser, LogRecord, LogLevel)
- record_buffer: Bounded record storage with live filtering (RecordBuffer)
- sync_hub: Timeline broadcast between panels (SyncHub, SyncEvent)
- panel: One tailed file with its buffer and sync subscription (PanelController)
- session: Persistence of open file lists (SessionStore, Session)
- workspace: Multi-panel orchestration (Workspace)
"""

from .log_parser import LogParser, LogRecord, LogLevel, parse_line
from .record_buffer import RecordBuffer
from .sync_hub import SyncHub, SyncEvent
from .panel import PanelController
from .session import Session, SessionData, SessionStore
from .workspace import Workspace, FileAlreadyOpenError

__all__ = [
    'LogParser',
    'LogRecord',
    'LogLevel',
    'parse_line',
    'RecordBuffer',
    'SyncHub',
    'SyncEvent',
    'PanelController',
    'Session',
    'SessionData',
    'SessionStore',
    'Workspace',
    'FileAlreadyOpenError',
]
