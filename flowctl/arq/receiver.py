"""
Receiver-Side State

This module implements the receiver's acceptance rules: strict in-order
acceptance (Stop-and-Wait, Sliding Window, Go-Back-N) and out-of-order
buffering with contiguous drain (Selective Repeat).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ReceiveDecision(Enum):
    """What the receiver did with an arriving frame."""
    DELIVERED = "delivered"    # in order, handed to the layer above
    BUFFERED = "buffered"      # ahead of expected, held back
    DUPLICATE = "duplicate"    # already delivered or already buffered
    DISCARDED = "discarded"    # out of order and not buffered


@dataclass
class ReceiveResult:
    """
    Outcome of one frame arrival.

    Attributes:
        seq_num: Arriving sequence number
        decision: Receiver decision
        expected: Expected sequence number when the frame arrived
        delivered: Sequence numbers delivered by this arrival, in order
        acknowledge: Whether the receiver emits an ACK for seq_num
    """
    seq_num: int
    decision: ReceiveDecision
    expected: int
    delivered: List[int] = field(default_factory=list)
    acknowledge: bool = True


class ReceiverState:
    """
    Receiver bookkeeping.

    Attributes:
        total: Total number of frames in the run
        expected_seq: Next in-order sequence number (only increases)
        buffered: buffered[seq] is True while seq is received but undelivered
        delivered_order: Every delivery in the order it happened
    """

    def __init__(self, total: int, selective: bool = False):
        """
        Initialize receiver state.

        Args:
            total: Total number of frames
            selective: Keep an out-of-order buffer (Selective Repeat)
        """
        self.total = total
        self.selective = selective
        self.expected_seq = 0
        self.buffered: Optional[List[bool]] = [False] * total if selective else None
        self.delivered_order: List[int] = []

        # Statistics
        self.frames_received = 0
        self.duplicate_frames = 0
        self.out_of_order_frames = 0
        self.discarded_frames = 0

    def accept_in_order(self, seq_num: int, ack_duplicates: bool = True) -> ReceiveResult:
        """
        Accept only the next expected frame.

        Args:
            seq_num: Arriving sequence number
            ack_duplicates: Re-ACK frames that were already delivered

        Returns:
            ReceiveResult; frames ahead of expected are discarded unacked
        """
        self.frames_received += 1
        expected = self.expected_seq

        if seq_num == expected:
            self._deliver(seq_num)
            return ReceiveResult(seq_num, ReceiveDecision.DELIVERED, expected, [seq_num])

        if seq_num < expected:
            self.duplicate_frames += 1
            return ReceiveResult(seq_num, ReceiveDecision.DUPLICATE, expected,
                                 acknowledge=ack_duplicates)

        self.discarded_frames += 1
        return ReceiveResult(seq_num, ReceiveDecision.DISCARDED, expected, acknowledge=False)

    def accept_selective(self, seq_num: int) -> ReceiveResult:
        """
        Accept a frame with out-of-order buffering.

        Every arrival is acknowledged individually, duplicates included.

        Args:
            seq_num: Arriving sequence number

        Returns:
            ReceiveResult listing every frame delivered by this arrival
        """
        if self.buffered is None:
            raise RuntimeError("Receiver was created without an out-of-order buffer")

        self.frames_received += 1
        expected = self.expected_seq

        if seq_num == expected:
            delivered = [seq_num]
            self._deliver(seq_num)
            # Drain the contiguous run of buffered frames
            while self.expected_seq < self.total and self.buffered[self.expected_seq]:
                seq = self.expected_seq
                self.buffered[seq] = False
                self._deliver(seq)
                delivered.append(seq)
            return ReceiveResult(seq_num, ReceiveDecision.DELIVERED, expected, delivered)

        if seq_num > expected:
            if self.buffered[seq_num]:
                self.duplicate_frames += 1
                return ReceiveResult(seq_num, ReceiveDecision.DUPLICATE, expected)
            self.buffered[seq_num] = True
            self.out_of_order_frames += 1
            return ReceiveResult(seq_num, ReceiveDecision.BUFFERED, expected)

        self.duplicate_frames += 1
        return ReceiveResult(seq_num, ReceiveDecision.DUPLICATE, expected)

    def _deliver(self, seq_num: int):
        self.delivered_order.append(seq_num)
        self.expected_seq = seq_num + 1

    @property
    def complete(self) -> bool:
        """Check if every frame has been delivered."""
        return self.expected_seq >= self.total

    def get_buffered(self) -> List[int]:
        """Sequence numbers currently held out of order."""
        if self.buffered is None:
            return []
        return [seq for seq, flag in enumerate(self.buffered) if flag]

    def get_statistics(self) -> dict:
        """Get receiver statistics."""
        return {
            'expected_seq': self.expected_seq,
            'frames_received': self.frames_received,
            'frames_delivered': len(self.delivered_order),
            'duplicate_frames': self.duplicate_frames,
            'out_of_order_frames': self.out_of_order_frames,
            'discarded_frames': self.discarded_frames,
            'buffered_frames': self.get_buffered()
        }
