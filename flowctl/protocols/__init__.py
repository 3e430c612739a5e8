"""
Protocols package - ARQ variants.

Contains implementations for:
- Stop-and-Wait
- Sliding Window (flow control only)
- Go-Back-N
- Selective Repeat
"""

from typing import Dict, Type

from ..context import ProtocolVariant
from .base import ArqProtocol
from .stop_and_wait import StopAndWait
from .sliding_window import SlidingWindow, LOSS_IGNORED_NOTICE
from .go_back_n import GoBackN
from .selective_repeat import SelectiveRepeat

PROTOCOLS: Dict[ProtocolVariant, Type[ArqProtocol]] = {
    ProtocolVariant.STOP_AND_WAIT: StopAndWait,
    ProtocolVariant.SLIDING_WINDOW: SlidingWindow,
    ProtocolVariant.GO_BACK_N: GoBackN,
    ProtocolVariant.SELECTIVE_REPEAT: SelectiveRepeat,
}


def protocol_for(variant) -> Type[ArqProtocol]:
    """Protocol class for a variant or variant name."""
    return PROTOCOLS[ProtocolVariant.from_name(variant)]


__all__ = [
    'ArqProtocol',
    'StopAndWait',
    'SlidingWindow',
    'GoBackN',
    'SelectiveRepeat',
    'LOSS_IGNORED_NOTICE',
    'PROTOCOLS',
    'protocol_for'
]
