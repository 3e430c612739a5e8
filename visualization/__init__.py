"""
Visualization package - Plotting tools.

Contains:
- Sender/receiver timeline of one run
"""

from .timeline import TimelinePlot

__all__ = [
    'TimelinePlot'
]
