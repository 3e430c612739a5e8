"""
Flow control and ARQ simulation engine.

Contains implementations for:
- ARQ building blocks (frames, windows, receiver state, timers)
- Lossy channel with operator-injected loss faults
- Stop-and-Wait, Sliding Window, Go-Back-N and Selective Repeat
- Event stream, metrics and logging
"""

from .context import (
    ConfigurationError, ProtocolVariant, RunStatus, TimingConfig,
    RunConfig, RunContext
)
from .protocols import PROTOCOLS, protocol_for

__all__ = [
    'ConfigurationError',
    'ProtocolVariant',
    'RunStatus',
    'TimingConfig',
    'RunConfig',
    'RunContext',
    'PROTOCOLS',
    'protocol_for'
]
