"""
Simulation package - Protocol driver and runners.

Contains:
- Protocol driver (start, reset, loss injection, clock)
- Batch runner for protocol comparison sweeps
"""

from .simulator import Simulator, RunResult
from .runner import BatchRunner, SweepPoint, run_single_simulation

__all__ = [
    'Simulator',
    'RunResult',
    'BatchRunner',
    'SweepPoint',
    'run_single_simulation'
]
