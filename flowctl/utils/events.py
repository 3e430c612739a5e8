"""
Simulation Event Stream

Events are the only thing the engine exposes to presentation layers
(animation, event log, plots). Every event carries its kind and the
simulated time it happened at.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Callable, Iterable, List, Optional


class EventKind(Enum):
    """Event kinds emitted by the engine."""
    FRAME_SENT = "frame-sent"
    FRAME_DELIVERED = "frame-delivered"                          # delivered in order by the receiver
    FRAME_LOST = "frame-lost"
    FRAME_DISCARDED = "frame-discarded"
    FRAME_BUFFERED = "frame-buffered"
    FRAME_DUPLICATE = "frame-duplicate"
    FRAME_DELIVERED_TO_RECEIVER = "frame-delivered-to-receiver"  # channel handed it over
    ACK_SENT = "ack-sent"
    ACK_RECEIVED = "ack-received"
    TIMEOUT = "timeout"
    WINDOW_CHANGED = "window-changed"
    STATUS_CHANGED = "status-changed"
    RUN_FINISHED = "run-finished"
    RUN_ABORTED = "run-aborted"


@dataclass(frozen=True)
class Event:
    """
    One engine event.

    Attributes:
        kind: Event kind
        time: Simulated time in seconds
        seq: Frame or ACK sequence number, if any
        expected: Receiver's expected sequence number (frame-discarded)
        base: Window base (window-changed)
        upper_bound: Exclusive window end (window-changed)
        text: Status text (status-changed, run-aborted)
        retransmission: True for frame-sent of an already sent frame
    """
    kind: EventKind
    time: float
    seq: Optional[int] = None
    expected: Optional[int] = None
    base: Optional[int] = None
    upper_bound: Optional[int] = None
    text: Optional[str] = None
    retransmission: bool = False

    def to_dict(self) -> dict:
        """Flat dictionary, kind as its string value."""
        row = asdict(self)
        row['kind'] = self.kind.value
        return row


EventCallback = Callable[[Event], None]


class EventBus:
    """
    Ordered event history with subscribers.

    Subscribers are called synchronously, in subscription order, as each
    event is emitted.
    """

    def __init__(self):
        self.history: List[Event] = []
        self._subscribers: List[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """
        Register a subscriber.

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, event: Event):
        self.history.append(event)
        for callback in list(self._subscribers):
            callback(event)

    def of_kind(self, *kinds: EventKind) -> List[Event]:
        """Events of the given kinds, in emission order."""
        return [e for e in self.history if e.kind in kinds]

    def seqs(self, kind: EventKind) -> List[int]:
        """Sequence numbers of every event of one kind."""
        return [e.seq for e in self.history if e.kind == kind]

    def clear(self):
        self.history.clear()

    def __len__(self) -> int:
        return len(self.history)

    def __iter__(self) -> Iterable[Event]:
        return iter(self.history)
