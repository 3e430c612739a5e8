"""
Selective Repeat Protocol

Individual ACKs with out-of-order buffering at the receiver. The sender
keeps an ACK flag per frame, slides its base over the acknowledged prefix,
and on timeout retransmits only the base frame.
"""

from typing import Generator, List, Optional

from ..arq.frame import Ack, Frame
from ..arq.sender import AckRecord
from ..arq.timer import FrameTask, TimerHandle
from ..context import ProtocolVariant, RunContext
from ..utils.events import EventKind
from .base import ArqProtocol


class SelectiveRepeat(ArqProtocol):
    """
    Selective Repeat sender/receiver.

    The base timer is armed only when the sender can neither send a new
    frame nor slide, and expires ``selective_repeat_timeout`` after the base
    frame's latest transmission.

    Attributes:
        base_timer: Timer guarding the current base frame, if armed
        last_sent: Latest transmission time per sequence number
    """

    variant = ProtocolVariant.SELECTIVE_REPEAT

    def __init__(self, ctx: RunContext):
        super().__init__(ctx)
        self.base_timer: Optional[TimerHandle] = None
        self.last_sent: List[Optional[float]] = [None] * ctx.config.total_frames

    @property
    def acked(self) -> AckRecord:
        return self.ctx.acked

    def run(self) -> Generator:
        ctx = self.ctx
        window = self.window
        timing = ctx.timing

        while not window.complete:
            acted = False

            if window.can_send:
                self.send_frame(window.take_next_seq())
                acted = True
                yield timing.send_stagger
                if not ctx.running:
                    return

            if self.acked.is_acked(window.base):
                self._slide()
                acted = True

            if not acted:
                if self.base_timer is None:
                    self._arm_timer()
                yield timing.poll_interval
                if not ctx.running:
                    return

    def send_frame(self, seq_num: int) -> FrameTask:
        self.last_sent[seq_num] = self.ctx.now
        return super().send_frame(seq_num)

    def receive(self, frame: Frame) -> Optional[Ack]:
        result = self.receiver.accept_selective(frame.seq_num)
        self.report(result)
        return Ack(frame.seq_num, self.ack_mode)

    def on_ack(self, ack: Ack):
        self.acked.mark(ack.seq_num)

    def _slide(self):
        window = self.window
        window.advance_base(self.acked.slide(window.base))
        self._cancel_timer()
        self.ctx.set_status(f"Window slides to Frame {window.base + 1}, window {window.describe()}")
        self.ctx.window_changed()

    def _arm_timer(self):
        seq = self.window.base
        deadline = self.last_sent[seq] + self.ctx.timing.selective_repeat_timeout
        self.base_timer = self.ctx.timers.after(
            max(0.0, deadline - self.ctx.now),
            lambda: self._on_timeout(seq),
            name=f"selective-repeat-timer-{seq}"
        )

    def _cancel_timer(self):
        if self.base_timer is not None:
            self.base_timer.cancel()
            self.base_timer = None

    def _on_timeout(self, seq: int):
        self.base_timer = None
        ctx = self.ctx
        # Re-check authoritative state: the base may have moved or been acked
        if not ctx.running or seq != self.window.base or self.acked.is_acked(seq):
            return

        ctx.emit(EventKind.TIMEOUT, seq=seq)
        ctx.set_status(f"Timeout for Frame {seq + 1}! Retransmitting ONLY Frame {seq + 1}")
        self.send_frame(seq)
