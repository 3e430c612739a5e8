"""
ARQ package - protocol-independent ARQ components.

Contains implementations for:
- Frame and acknowledgment units
- Sender window and acknowledgment record
- Receiver acceptance and out-of-order buffering
- Timer service and cooperative frame tasks
"""

from .frame import Frame, Ack, FrameType, AckMode
from .sender import SendWindow, AckRecord
from .receiver import ReceiverState, ReceiveDecision, ReceiveResult
from .timer import TimerService, TimerHandle, FrameTask, TaskGroup

__all__ = [
    'Frame',
    'Ack',
    'FrameType',
    'AckMode',
    'SendWindow',
    'AckRecord',
    'ReceiverState',
    'ReceiveDecision',
    'ReceiveResult',
    'TimerService',
    'TimerHandle',
    'FrameTask',
    'TaskGroup'
]
