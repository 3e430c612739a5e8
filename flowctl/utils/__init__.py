"""
Utilities package - Helper functions and classes.

Contains implementations for:
- Engine event stream
- Metrics calculation (efficiency, retransmissions)
- Logging utilities
"""

from .events import Event, EventKind, EventBus
from .metrics import MetricsCollector
from .logger import SimulationLogger, LogLevel

__all__ = [
    'Event',
    'EventKind',
    'EventBus',
    'MetricsCollector',
    'SimulationLogger',
    'LogLevel'
]
