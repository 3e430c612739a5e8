"""
Run Configuration and Run Context

A RunContext is created for every run and owns all of its mutable state:
the clock, the task set, the channel, the sender window, the receiver
state and the event stream. Nothing survives a reset.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from config import (
    TRANSIT_DELAY, PARTIAL_TRANSIT_DELAY, SEND_STAGGER, GO_BACK_N_STAGGER,
    POLL_INTERVAL, GO_BACK_N_TIMEOUT, SELECTIVE_REPEAT_TIMEOUT,
    MAX_SIMULATION_TIME, STOP_AND_WAIT, SLIDING_WINDOW, GO_BACK_N,
    SELECTIVE_REPEAT
)
from .arq.sender import SendWindow, AckRecord
from .arq.receiver import ReceiverState
from .arq.timer import TimerService, TaskGroup, FrameTask, TaskRoutine
from .channel.channel import Channel
from .channel.loss_table import LossTable
from .utils.events import Event, EventBus, EventKind


class ConfigurationError(ValueError):
    """Invalid run configuration, rejected before any state changes."""


class ProtocolVariant(Enum):
    """Supported ARQ variants."""
    STOP_AND_WAIT = STOP_AND_WAIT
    SLIDING_WINDOW = SLIDING_WINDOW
    GO_BACK_N = GO_BACK_N
    SELECTIVE_REPEAT = SELECTIVE_REPEAT

    @classmethod
    def from_name(cls, name) -> "ProtocolVariant":
        """
        Resolve a protocol name.

        Args:
            name: Variant or its string value (e.g. "go-back-n")

        Returns:
            ProtocolVariant

        Raises:
            ConfigurationError: Unknown protocol name
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            valid = ", ".join(v.value for v in cls)
            raise ConfigurationError(
                f"Unknown protocol {name!r} (expected one of: {valid})"
            ) from None


class RunStatus(Enum):
    """Lifecycle of a run."""
    READY = "ready"
    RUNNING = "running"
    FINISHED = "finished"
    ABORTED = "aborted"


@dataclass(frozen=True)
class TimingConfig:
    """
    Simulated-time parameters, in seconds.

    Attributes:
        transit_delay: One-way channel delay
        partial_delay: Travel time of a dropped frame
        send_stagger: Spacing between sends (Sliding Window, Selective Repeat)
        go_back_n_stagger: Spacing between sends (Go-Back-N)
        poll_interval: Idle re-check interval of sender loops
        go_back_n_timeout: Go-Back-N retransmission timeout
        selective_repeat_timeout: Selective Repeat per-frame timeout
    """
    transit_delay: float = TRANSIT_DELAY
    partial_delay: float = PARTIAL_TRANSIT_DELAY
    send_stagger: float = SEND_STAGGER
    go_back_n_stagger: float = GO_BACK_N_STAGGER
    poll_interval: float = POLL_INTERVAL
    go_back_n_timeout: float = GO_BACK_N_TIMEOUT
    selective_repeat_timeout: float = SELECTIVE_REPEAT_TIMEOUT

    def validate(self):
        """Raise ConfigurationError on non-positive or inconsistent delays."""
        for name in ('transit_delay', 'send_stagger', 'go_back_n_stagger',
                     'poll_interval', 'go_back_n_timeout', 'selective_repeat_timeout'):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if not 0 <= self.partial_delay <= self.transit_delay:
            raise ConfigurationError("partial_delay must be within [0, transit_delay]")


def _require_positive_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class RunConfig:
    """
    Immutable configuration of one run.

    Attributes:
        total_frames: Number of frames to deliver
        window_size: Sender window (always 1 for Stop-and-Wait)
        protocol: ARQ variant
        timing: Simulated-time parameters
        max_time: Simulated time limit before the run is aborted
    """
    total_frames: int
    window_size: int
    protocol: ProtocolVariant
    timing: TimingConfig = field(default_factory=TimingConfig)
    max_time: float = MAX_SIMULATION_TIME

    @classmethod
    def create(
        cls,
        total_frames,
        window_size,
        protocol,
        timing: Optional[TimingConfig] = None,
        max_time: float = MAX_SIMULATION_TIME
    ) -> "RunConfig":
        """
        Validate operator input and build a config.

        Raises:
            ConfigurationError: Non-positive counts, unknown protocol,
                bad timing or time limit
        """
        total_frames = _require_positive_int("total_frames", total_frames)
        window_size = _require_positive_int("window_size", window_size)
        variant = ProtocolVariant.from_name(protocol)
        timing = timing or TimingConfig()
        timing.validate()
        if max_time <= 0:
            raise ConfigurationError("max_time must be positive")

        if variant == ProtocolVariant.STOP_AND_WAIT:
            window_size = 1

        return cls(total_frames=total_frames, window_size=window_size,
                   protocol=variant, timing=timing, max_time=max_time)

    def to_dict(self) -> dict:
        return {
            'protocol': self.protocol.value,
            'total_frames': self.total_frames,
            'window_size': self.window_size,
            'max_time': self.max_time
        }


class RunContext:
    """
    All state of one run.

    Every task reads and writes the window, ack record and receiver state
    through this object; none keeps a private copy. Tasks must check
    ``running`` after each suspension before touching state.

    Attributes:
        config: Run configuration
        timers: Simulated clock of the run
        tasks: Live frame tasks
        channel: Channel bound to the engine's loss table
        window: Sender window
        acked: Per-frame ACK record (Selective Repeat only)
        receiver: Receiver state
        events: Event stream
        status: Run lifecycle status
    """

    def __init__(self, config: RunConfig, loss_table: LossTable, events: EventBus):
        self.config = config
        self.timers = TimerService()
        self.tasks = TaskGroup(self.timers)
        self.loss_table = loss_table
        self.channel = Channel(
            loss_table,
            transit_delay=config.timing.transit_delay,
            partial_delay=config.timing.partial_delay
        )
        self.events = events

        selective = config.protocol == ProtocolVariant.SELECTIVE_REPEAT
        self.window = SendWindow(size=config.window_size, total=config.total_frames)
        self.acked: Optional[AckRecord] = AckRecord(config.total_frames) if selective else None
        self.receiver = ReceiverState(config.total_frames, selective=selective)

        # Transmission count per sequence number
        self.transmissions: List[int] = [0] * config.total_frames

        self.status = RunStatus.READY
        self.status_text = "Ready"

    @property
    def now(self) -> float:
        return self.timers.now

    @property
    def running(self) -> bool:
        return self.status == RunStatus.RUNNING

    @property
    def timing(self) -> TimingConfig:
        return self.config.timing

    def emit(self, kind: EventKind, **fields):
        """Emit an event stamped with the current simulated time."""
        self.events.emit(Event(kind=kind, time=self.now, **fields))

    def set_status(self, text: str):
        self.status_text = text
        self.emit(EventKind.STATUS_CHANGED, text=text)

    def window_changed(self):
        self.emit(EventKind.WINDOW_CHANGED, base=self.window.base,
                  upper_bound=self.window.upper_bound)

    def spawn(self, routine: TaskRoutine, name: str) -> FrameTask:
        """Start a task owned by this run."""
        return self.tasks.spawn(routine, name)

    def begin(self):
        self.status = RunStatus.RUNNING

    def finish(self):
        """
        Mark the run finished and discard anything still in flight.

        Late duplicates (e.g. a retransmitted frame whose original was
        acknowledged meanwhile) are dropped with the run.
        """
        if not self.running:
            return
        self.set_status("Finished")
        self.emit(EventKind.RUN_FINISHED)
        self.status = RunStatus.FINISHED
        self.tasks.cancel_all()
        self.timers.cancel_all()

    def abort(self, reason: str) -> bool:
        """
        Abort the run: cancel every task and timer, then report it.

        Returns:
            True if the run was active
        """
        if not self.running:
            return False
        self.status = RunStatus.ABORTED
        self.tasks.cancel_all()
        self.timers.cancel_all()
        self.status_text = reason
        self.emit(EventKind.RUN_ABORTED, text=reason)
        return True
