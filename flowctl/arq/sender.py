"""
Sender-Side Window State

This module holds the sender bookkeeping shared by all protocol variants:
the send window (base / next sequence number) and, for Selective Repeat,
the per-frame acknowledgment record.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class SendWindow:
    """
    Sliding window for the sender.

    Invariant: base <= next_seq <= base + size, and next_seq <= total.

    Attributes:
        base: Oldest unacknowledged sequence number
        next_seq: Next sequence number to transmit
        size: Window size
        total: Total number of frames in the run
    """
    size: int
    total: int
    base: int = 0
    next_seq: int = 0

    @property
    def in_flight(self) -> int:
        """Number of frames sent but not yet acknowledged."""
        return self.next_seq - self.base

    @property
    def upper_bound(self) -> int:
        """Exclusive end of the window, clipped to the frame count."""
        return min(self.base + self.size, self.total)

    @property
    def can_send(self) -> bool:
        """Check if a new sequence number may be transmitted."""
        return self.next_seq < self.upper_bound

    @property
    def complete(self) -> bool:
        """Check if every frame has been acknowledged."""
        return self.base >= self.total

    def take_next_seq(self) -> int:
        """Get next sequence number and increment counter."""
        seq = self.next_seq
        self.next_seq += 1
        return seq

    def advance_base(self, new_base: int) -> bool:
        """
        Advance window base to a new position.

        Args:
            new_base: Proposed base, ignored unless it moves forward

        Returns:
            True if the base moved
        """
        new_base = min(new_base, self.total)
        if new_base <= self.base:
            return False
        self.base = new_base
        if self.next_seq < self.base:
            self.next_seq = self.base
        return True

    def go_back(self) -> int:
        """
        Rewind the next-send pointer to the base.

        Returns:
            Number of frames that will be resent
        """
        rewound = self.in_flight
        self.next_seq = self.base
        return rewound

    def describe(self) -> str:
        """Window text as shown to the operator, 1-based."""
        if self.complete:
            return "[]"
        return f"[{self.base + 1} .. {self.upper_bound}]"


@dataclass
class AckRecord:
    """
    Per-frame acknowledgment flags (Selective Repeat).

    Attributes:
        total: Total number of frames
        acked: acked[seq] is True once an ACK for seq has arrived
    """
    total: int
    acked: List[bool] = field(default_factory=list)

    def __post_init__(self):
        if not self.acked:
            self.acked = [False] * self.total

    def mark(self, seq_num: int) -> bool:
        """
        Record an ACK.

        Returns:
            True if the frame was not acknowledged before
        """
        first = not self.acked[seq_num]
        self.acked[seq_num] = True
        return first

    def is_acked(self, seq_num: int) -> bool:
        """Check a sequence number; anything past the end counts as unacked."""
        return 0 <= seq_num < self.total and self.acked[seq_num]

    def slide(self, base: int) -> int:
        """
        Find the new base past the consecutively acknowledged prefix.

        Args:
            base: Current window base

        Returns:
            First unacknowledged sequence number at or after base
        """
        while base < self.total and self.acked[base]:
            base += 1
        return base

    def get_acked(self) -> List[int]:
        """Sequence numbers acknowledged so far."""
        return [seq for seq, flag in enumerate(self.acked) if flag]
