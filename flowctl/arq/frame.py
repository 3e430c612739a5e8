"""
Frame and Acknowledgment Units for the ARQ Protocols

This module defines the two immutable units the channel carries:
data frames (identified only by sequence number) and acknowledgments,
which are either individual or cumulative depending on the protocol.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FrameType(Enum):
    """Unit type enumeration."""
    DATA = 0x01
    ACK = 0x02


class AckMode(Enum):
    """Acknowledgment semantics."""
    INDIVIDUAL = "individual"    # acks exactly one frame
    CUMULATIVE = "cumulative"    # acks frame K and every frame before it


@dataclass(frozen=True)
class Frame:
    """
    Data frame.

    Attributes:
        seq_num: Sequence number (0-based, dense 0..N-1)
        payload: Opaque payload, only its identity matters
    """
    seq_num: int
    payload: Any = None

    frame_type = FrameType.DATA

    def __post_init__(self):
        """Validate frame after initialization."""
        if self.seq_num < 0:
            raise ValueError("Sequence number must be non-negative")

    @classmethod
    def create(cls, seq_num: int) -> "Frame":
        """Create the frame for a sequence number with a default payload."""
        return cls(seq_num=seq_num, payload=f"MSG_{seq_num}")

    @property
    def label(self) -> int:
        """1-based number shown to the operator."""
        return self.seq_num + 1

    def __str__(self) -> str:
        return f"Frame {self.label}"


@dataclass(frozen=True)
class Ack:
    """
    Acknowledgment.

    Attributes:
        seq_num: Acknowledged sequence number
        mode: Individual or cumulative semantics
    """
    seq_num: int
    mode: AckMode = AckMode.INDIVIDUAL

    frame_type = FrameType.ACK

    def __post_init__(self):
        if self.seq_num < 0:
            raise ValueError("ACK number must be non-negative")

    @property
    def label(self) -> int:
        return self.seq_num + 1

    def __str__(self) -> str:
        prefix = "Cumulative ACK" if self.mode == AckMode.CUMULATIVE else "ACK"
        return f"{prefix} {self.label}"
