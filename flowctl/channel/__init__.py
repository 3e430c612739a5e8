"""
Channel package - lossy point-to-point channel.

Contains implementations for:
- Operator-injected loss table
- Fixed-delay channel with loss
"""

from .loss_table import LossTable, random_loss_pattern
from .channel import Channel, TransmitOutcome

__all__ = [
    'LossTable',
    'random_loss_pattern',
    'Channel',
    'TransmitOutcome'
]
