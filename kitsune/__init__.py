"""
Kitsune - real-time log tailing with timestamp synchronization across panels
"""

__version__ = "1.0.0"
