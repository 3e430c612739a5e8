"""
Stop-and-Wait Protocol

Exactly one frame is outstanding at a time. A frame the channel drops is
retransmitted with the same sequence number; the sender moves on only
after the receiver delivered the frame and its ACK came back.
"""

from typing import Generator

from ..arq.frame import Ack
from ..context import ProtocolVariant
from ..utils.events import EventKind
from .base import ArqProtocol


class StopAndWait(ArqProtocol):
    """Stop-and-Wait sender/receiver (window size fixed at 1)."""

    variant = ProtocolVariant.STOP_AND_WAIT

    def run(self) -> Generator:
        ctx = self.ctx
        window = self.window

        while not window.complete:
            seq = window.base
            if window.next_seq == seq:
                window.take_next_seq()

            ctx.set_status(f"Sending Frame {seq + 1}")
            acked = yield self.send_frame(seq)
            if not ctx.running:
                return

            if not acked:
                ctx.emit(EventKind.TIMEOUT, seq=seq)
                ctx.set_status(f"Timeout. Retransmitting Frame {seq + 1}...")

    def on_ack(self, ack: Ack):
        self.slide_if_base(ack)
