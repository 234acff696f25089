"""
Log Panel Package - terminal view over one PanelController

Package Structure:
- view: Panel layout and event batching (LogPanelView)
- log_table: Record table widget (LogRecordTable)
"""

from .view import LogPanelView
from .log_table import LogRecordTable

__all__ = [
    'LogPanelView',
    'LogRecordTable',
]
