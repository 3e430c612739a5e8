"""
Common Protocol Machinery

Every variant shares the same frame journey: send, transit (or loss),
receiver decision, ACK transit, sender reaction. Subclasses supply the
sender loop, the receiver rule and the ACK handling.
"""

from typing import Generator, Optional

from ..arq.frame import Frame, Ack, AckMode
from ..arq.receiver import ReceiveDecision, ReceiveResult, ReceiverState
from ..arq.sender import SendWindow
from ..arq.timer import FrameTask
from ..channel.channel import TransmitOutcome
from ..context import RunContext, ProtocolVariant
from ..utils.events import EventKind


class ArqProtocol:
    """
    Base class of the sender/receiver state machines.

    Attributes:
        ctx: Run context holding all shared state
        variant: Protocol variant implemented by the subclass
        ack_mode: Acknowledgment semantics
        supports_loss: Whether loss faults are honoured during the run
    """

    variant: ProtocolVariant = None
    ack_mode = AckMode.INDIVIDUAL
    supports_loss = True

    def __init__(self, ctx: RunContext):
        self.ctx = ctx

    @property
    def window(self) -> SendWindow:
        return self.ctx.window

    @property
    def receiver(self) -> ReceiverState:
        return self.ctx.receiver

    def prepare(self):
        """Hook run once before the sender starts."""

    def start(self) -> FrameTask:
        """Prepare and spawn the sender task."""
        self.prepare()
        return self.ctx.spawn(self._main(), name="sender")

    def _main(self) -> Generator:
        self.ctx.set_status(f"Starting {self.variant.value}...")
        self.ctx.window_changed()
        yield from self.run()
        if self.ctx.running and self.window.complete:
            self.ctx.finish()

    def run(self) -> Generator:
        """Sender loop; returns once every frame is acknowledged."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Frame journey
    # ------------------------------------------------------------------

    def send_frame(self, seq_num: int) -> FrameTask:
        """
        Place a frame on the channel as its own task.

        Args:
            seq_num: Sequence number to (re)transmit

        Returns:
            Journey task; its result is True once the frame's ACK arrived
        """
        retransmission = self.ctx.transmissions[seq_num] > 0
        self.ctx.transmissions[seq_num] += 1
        self.ctx.emit(EventKind.FRAME_SENT, seq=seq_num, retransmission=retransmission)
        return self.ctx.spawn(self.journey(Frame.create(seq_num)), name=f"frame-{seq_num}")

    def journey(self, frame: Frame) -> Generator:
        """
        Send -> transit/loss -> receive -> ACK -> transit -> ACK received.

        Returns:
            True if the frame was acknowledged
        """
        ctx = self.ctx
        outcome = yield from ctx.channel.transmit(frame)
        if not ctx.running:
            return False

        if outcome == TransmitOutcome.DROPPED:
            ctx.emit(EventKind.FRAME_LOST, seq=frame.seq_num)
            return False

        ctx.emit(EventKind.FRAME_DELIVERED_TO_RECEIVER, seq=frame.seq_num)
        ack = self.receive(frame)
        if ack is None:
            return False

        ctx.emit(EventKind.ACK_SENT, seq=ack.seq_num)
        yield from ctx.channel.transmit(ack)
        if not ctx.running:
            return False

        ctx.emit(EventKind.ACK_RECEIVED, seq=ack.seq_num)
        self.on_ack(ack)
        return True

    # ------------------------------------------------------------------
    # Receiver side
    # ------------------------------------------------------------------

    def receive(self, frame: Frame) -> Optional[Ack]:
        """
        Receiver rule for an arriving frame (strict in-order by default).

        Returns:
            ACK to send back, or None
        """
        result = self.receiver.accept_in_order(frame.seq_num)
        self.report(result)
        if not result.acknowledge:
            return None
        return Ack(frame.seq_num, self.ack_mode)

    def report(self, result: ReceiveResult):
        """Emit the events describing a receiver decision."""
        if result.decision == ReceiveDecision.DELIVERED:
            for seq in result.delivered:
                self.ctx.emit(EventKind.FRAME_DELIVERED, seq=seq)
        elif result.decision == ReceiveDecision.BUFFERED:
            self.ctx.emit(EventKind.FRAME_BUFFERED, seq=result.seq_num)
        elif result.decision == ReceiveDecision.DUPLICATE:
            self.ctx.emit(EventKind.FRAME_DUPLICATE, seq=result.seq_num)
        else:
            self.ctx.emit(EventKind.FRAME_DISCARDED, seq=result.seq_num,
                          expected=result.expected)

    # ------------------------------------------------------------------
    # Sender side
    # ------------------------------------------------------------------

    def on_ack(self, ack: Ack):
        """React to an ACK reaching the sender."""
        raise NotImplementedError

    def slide_if_base(self, ack: Ack) -> bool:
        """Advance the base by one when the ACK is for the base frame."""
        if ack.seq_num != self.window.base:
            return False
        self.window.advance_base(self.window.base + 1)
        self.ctx.window_changed()
        return True
