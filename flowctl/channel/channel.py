"""
Point-to-Point Channel

Carries frames from sender to receiver and ACKs back, after a fixed
propagation delay. Data frames scheduled in the loss table vanish partway.
"""

from enum import Enum
from typing import Generator, Union

from config import TRANSIT_DELAY, PARTIAL_TRANSIT_DELAY
from ..arq.frame import Frame, Ack, FrameType
from .loss_table import LossTable


class TransmitOutcome(Enum):
    """Result of one transmission."""
    DELIVERED = "delivered"
    DROPPED = "dropped"


class Channel:
    """
    Lossy channel between exactly one sender and one receiver.

    Attributes:
        loss_table: Authoritative loss schedule
        transit_delay: Full one-way delay in simulated seconds
        partial_delay: Travel time of a dropped frame before it vanishes
    """

    def __init__(
        self,
        loss_table: LossTable,
        transit_delay: float = TRANSIT_DELAY,
        partial_delay: float = PARTIAL_TRANSIT_DELAY
    ):
        """
        Initialize channel.

        Args:
            loss_table: Loss schedule consulted for every data frame
            transit_delay: One-way delay
            partial_delay: Delay before a drop is reported
        """
        if transit_delay <= 0 or partial_delay < 0:
            raise ValueError("Channel delays must be positive")

        self.loss_table = loss_table
        self.transit_delay = transit_delay
        self.partial_delay = partial_delay

        # Statistics
        self.frames_transmitted = 0
        self.frames_dropped = 0
        self.acks_transmitted = 0

    def transmit(self, unit: Union[Frame, Ack]) -> Generator[float, None, TransmitOutcome]:
        """
        Carry one unit across the channel.

        Meant to be driven by a FrameTask (``yield from channel.transmit(f)``).
        The loss entry is consumed when the frame is placed on the channel,
        before any delay elapses. ACKs are never lost.

        Args:
            unit: Frame or Ack

        Returns:
            TransmitOutcome once the transit (or partial transit) elapsed
        """
        if unit.frame_type == FrameType.ACK:
            self.acks_transmitted += 1
            yield self.transit_delay
            return TransmitOutcome.DELIVERED

        self.frames_transmitted += 1
        if self.loss_table.consume_if_scheduled(unit.seq_num):
            self.frames_dropped += 1
            yield self.partial_delay
            return TransmitOutcome.DROPPED

        yield self.transit_delay
        return TransmitOutcome.DELIVERED

    def get_statistics(self) -> dict:
        """Get channel statistics."""
        return {
            'frames_transmitted': self.frames_transmitted,
            'frames_dropped': self.frames_dropped,
            'acks_transmitted': self.acks_transmitted,
            'pending_losses': self.loss_table.snapshot()
        }
