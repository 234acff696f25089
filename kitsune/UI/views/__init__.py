"""
Kitsune UI Views Package
"""

from .log_panel import LogPanelView

__all__ = [
    'LogPanelView'
]
