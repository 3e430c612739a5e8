"""
Sliding Window Protocol (flow control only)

Pure flow control: up to ``window_size`` frames are pipelined, and the
window slides as ACKs return. There is no loss recovery, so loss faults
are cleared at start and refused during the run.
"""

from typing import Generator

from ..arq.frame import Ack
from ..context import ProtocolVariant
from .base import ArqProtocol

LOSS_IGNORED_NOTICE = "Loss simulation ignored for Pure Sliding Window (Flow Control Only)"


class SlidingWindow(ArqProtocol):
    """Sliding-window flow control over an ideal channel."""

    variant = ProtocolVariant.SLIDING_WINDOW
    supports_loss = False

    def prepare(self):
        if len(self.ctx.loss_table) > 0:
            self.ctx.loss_table.clear()
            self.ctx.set_status(f"Warning: {LOSS_IGNORED_NOTICE}")

    def run(self) -> Generator:
        ctx = self.ctx
        window = self.window
        timing = ctx.timing

        while not window.complete:
            while window.can_send:
                self.send_frame(window.take_next_seq())
                yield timing.send_stagger
                if not ctx.running:
                    return
            yield timing.poll_interval
            if not ctx.running:
                return

    def on_ack(self, ack: Ack):
        # Frames always arrive in order here, so only the base ACK slides
        if self.slide_if_base(ack):
            self.ctx.set_status(f"Window {self.window.describe()}")
