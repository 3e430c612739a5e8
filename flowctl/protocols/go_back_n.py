"""
Go-Back-N Protocol

Cumulative ACKs and discard-on-mismatch: the receiver accepts only the
next expected frame and silently drops everything else. The sender runs a
single retransmission timer for its base frame; when it expires with
frames outstanding, the sender goes back to the base and resends the
whole unacknowledged window.
"""

from typing import Generator, Optional

from ..arq.frame import Ack, AckMode, Frame
from ..arq.timer import TimerHandle
from ..context import ProtocolVariant, RunContext
from ..utils.events import EventKind
from .base import ArqProtocol


class GoBackN(ArqProtocol):
    """
    Go-Back-N sender/receiver.

    Attributes:
        retransmit_timer: Timer guarding the base frame, if armed
        go_backs: Number of go-back events so far
    """

    variant = ProtocolVariant.GO_BACK_N
    ack_mode = AckMode.CUMULATIVE

    def __init__(self, ctx: RunContext):
        super().__init__(ctx)
        self.retransmit_timer: Optional[TimerHandle] = None
        self.go_backs = 0

    def run(self) -> Generator:
        ctx = self.ctx
        window = self.window
        timing = ctx.timing

        while not window.complete:
            if window.can_send:
                seq = window.take_next_seq()
                self.send_frame(seq)
                if seq == window.base and not self._timer_armed():
                    self._arm_timer()
                yield timing.go_back_n_stagger
            else:
                yield timing.poll_interval
            if not ctx.running:
                return

    def receive(self, frame: Frame) -> Optional[Ack]:
        # Old frames are discarded like any other mismatch: no ACK either way
        result = self.receiver.accept_in_order(frame.seq_num, ack_duplicates=False)
        if result.acknowledge:
            self.report(result)
            return Ack(frame.seq_num, AckMode.CUMULATIVE)

        self.ctx.emit(EventKind.FRAME_DISCARDED, seq=frame.seq_num, expected=result.expected)
        return None

    def on_ack(self, ack: Ack):
        window = self.window
        if not window.advance_base(ack.seq_num + 1):
            return  # stale cumulative ACK

        self._cancel_timer()
        if window.in_flight > 0:
            self._arm_timer()
        self.ctx.window_changed()

    def _timer_armed(self) -> bool:
        return self.retransmit_timer is not None and self.retransmit_timer.pending

    def _arm_timer(self):
        self.retransmit_timer = self.ctx.timers.after(
            self.ctx.timing.go_back_n_timeout, self._on_timeout, name="go-back-n-timer"
        )

    def _cancel_timer(self):
        if self.retransmit_timer is not None:
            self.retransmit_timer.cancel()
            self.retransmit_timer = None

    def _on_timeout(self):
        self.retransmit_timer = None
        ctx = self.ctx
        window = self.window
        if not ctx.running or window.in_flight == 0:
            return

        base = window.base
        ctx.emit(EventKind.TIMEOUT, seq=base)
        ctx.set_status(f"Timeout! No Cumulative ACK for Frame {base + 1}. "
                       f"Retransmitting Window starting from Frame {base + 1}...")
        window.go_back()
        self.go_backs += 1
        ctx.window_changed()
