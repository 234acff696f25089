"""
Kitsune terminal UI
"""

from .app import KitsuneApp, run_app

__all__ = ['KitsuneApp', 'run_app']
