"""
Main Simulator - Protocol Driver

This module implements the driver that the operator talks to: it starts a
run of one ARQ variant, accepts loss injections at any time, resets the
engine, and steps the simulated clock until the run finishes or is aborted.
"""

from typing import Callable, List, Optional
from dataclasses import dataclass, field
import sys
import os

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import MAX_SIMULATION_TIME
from flowctl.context import RunConfig, RunContext, RunStatus, TimingConfig
from flowctl.channel.loss_table import LossTable
from flowctl.protocols import ArqProtocol, protocol_for
from flowctl.utils.events import Event, EventBus
from flowctl.utils.metrics import MetricsCollector
from flowctl.utils.logger import SimulationLogger, LogLevel


@dataclass
class RunResult:
    """Outcome of one complete run."""
    config: dict
    status: str
    delivered_order: List[int]
    events: List[Event] = field(repr=False)
    metrics: dict
    simulation_time: float
    complete: bool
    ignored_losses: List[int] = field(default_factory=list)
    diagnostics: dict = field(default_factory=dict, repr=False)


class Simulator:
    """
    Protocol driver.

    One Simulator holds at most one run at a time. The loss table belongs
    to the driver so that losses can be scheduled before ``start``; every
    other piece of state lives in the run's RunContext and is dropped on
    reset.

    Attributes:
        loss_table: Operator-injected loss faults
        events: Event stream of the current (or last) run
        metrics: Metrics of the current (or last) run
        ctx: Current run context, None before the first start and after reset
    """

    def __init__(self, log_level: int = LogLevel.WARNING, log_file: Optional[str] = None):
        """
        Initialize simulator.

        Args:
            log_level: Minimum log level
            log_file: Optional file path for logging
        """
        self.logger = SimulationLogger(name="Sim", level=log_level, log_file=log_file)
        self.loss_table = LossTable()
        self.events = EventBus()
        self.metrics = MetricsCollector()

        self.ctx: Optional[RunContext] = None
        self.protocol: Optional[ArqProtocol] = None
        self.ignored_losses: List[int] = []
        self._subscriptions: List[Callable[[], None]] = []

    @property
    def running(self) -> bool:
        return self.ctx is not None and self.ctx.running

    @property
    def now(self) -> float:
        return self.ctx.now if self.ctx is not None else 0.0

    # ------------------------------------------------------------------
    # Operator commands
    # ------------------------------------------------------------------

    def start(
        self,
        total_frames: int,
        window_size: int,
        protocol: str,
        timing: Optional[TimingConfig] = None,
        max_time: float = MAX_SIMULATION_TIME
    ) -> RunContext:
        """
        Start a run.

        Args:
            total_frames: Number of frames to deliver
            window_size: Sender window (forced to 1 for Stop-and-Wait)
            protocol: Protocol name, e.g. "selective-repeat"
            timing: Optional simulated-time overrides
            max_time: Simulated time limit

        Returns:
            Context of the new run

        Raises:
            ConfigurationError: Invalid input; nothing is changed
            RuntimeError: A run is already active
        """
        config = RunConfig.create(total_frames, window_size, protocol,
                                  timing=timing, max_time=max_time)
        if self.running:
            raise RuntimeError("A run is already active; reset() it first")

        if self.ctx is not None:
            # Anything left was scheduled for the previous run
            stale = self.loss_table.snapshot()
            if stale:
                self.loss_table.clear()
                frames = ", ".join(str(seq + 1) for seq in stale)
                self.logger.debug(f"Unused loss for Frame(s) {frames} discarded", "LOSS")
        self._detach()
        self.events = EventBus()
        self.metrics.reset()
        self.loss_table.consumed.clear()

        ctx = RunContext(config, self.loss_table, self.events)
        self._subscriptions = [
            self.events.subscribe(self.logger.log_event),
            self.events.subscribe(self.metrics.record),
        ]
        self.ctx = ctx
        self.protocol = protocol_for(config.protocol)(ctx)

        self.logger.set_sim_time(ctx.now)
        self.logger.simulation_start(config.to_dict())
        ctx.begin()
        self.metrics.start(ctx.now)

        self.ignored_losses = self.loss_table.discard_out_of_range(config.total_frames)
        if self.ignored_losses:
            frames = ", ".join(str(seq + 1) for seq in self.ignored_losses)
            ctx.set_status(f"Warning: Loss ignored for Frame(s) {frames} (out of range)")

        self.protocol.start()
        return ctx

    def reset(self):
        """
        Abort any active run and return to the clean initial state.

        Safe to call repeatedly, and before any run was started.
        """
        if self.ctx is not None:
            if self.ctx.abort("Reset"):
                self.metrics.finish(self.ctx.now)
        self._detach()
        self.loss_table.reset()
        self.ctx = None
        self.protocol = None
        self.ignored_losses = []

    def schedule_loss(self, seq_num: int) -> bool:
        """
        Schedule loss of a frame's next transmission.

        Before a run the frame count is unknown, so only negative targets
        are refused here; ``start`` drops entries beyond the run's frames.
        Entries scheduled once a run has started belong to that run and are
        discarded when the next run starts; call ``reset`` first to prepare
        losses for a new run.

        Args:
            seq_num: 0-based sequence number

        Returns:
            True if the loss is (or already was) scheduled
        """
        if isinstance(seq_num, bool) or not isinstance(seq_num, int) or seq_num < 0:
            self.logger.warning(f"Invalid loss target {seq_num!r}", "LOSS")
            return False

        if self.running:
            if not self.protocol.supports_loss:
                self.logger.warning(
                    f"Loss for Frame {seq_num + 1} ignored by {self.ctx.config.protocol.value}",
                    "LOSS"
                )
                return False
            total = self.ctx.config.total_frames
            if seq_num >= total:
                self.logger.warning(
                    f"Invalid loss target Frame {seq_num + 1} (run has {total} frames)",
                    "LOSS"
                )
                return False

        self.loss_table.schedule(seq_num)
        self.logger.debug(f"Loss scheduled for Frame {seq_num + 1}", "LOSS")
        return True

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def run_until(self, time: float) -> int:
        """
        Advance the clock to ``time``, firing every timer due by then.

        Useful for injecting faults part-way through a run.

        Returns:
            Number of timers fired
        """
        if self.ctx is None:
            return 0
        limit = min(time, self.ctx.config.max_time)
        fired = self.ctx.timers.run(until=limit)
        if self.running and time > self.ctx.config.max_time:
            self._abort_time_limit()
        self._record_end()
        return fired

    def run_until_complete(self, max_time: Optional[float] = None) -> RunStatus:
        """
        Step the clock until the run finishes or is aborted.

        Args:
            max_time: Simulated time limit (default: the run's max_time)

        Returns:
            Final run status
        """
        if self.ctx is None:
            raise RuntimeError("No run started")

        ctx = self.ctx
        limit = ctx.config.max_time if max_time is None else max_time

        while ctx.running:
            next_expiry = ctx.timers.get_next_expiry()
            if next_expiry is None:
                ctx.abort("Stalled: no pending work")
                break
            if next_expiry > limit:
                self._abort_time_limit(limit)
                break
            ctx.timers.run_next()

        self._record_end()
        return ctx.status

    def _abort_time_limit(self, limit: Optional[float] = None):
        limit = self.ctx.config.max_time if limit is None else limit
        self.ctx.abort(f"Time limit of {limit:.1f}s exceeded")

    def _record_end(self):
        if self.ctx is not None and not self.ctx.running:
            self.metrics.finish(self.ctx.now)

    def _detach(self):
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions = []

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def run(
        self,
        total_frames: int,
        window_size: int,
        protocol: str,
        losses: Optional[List[int]] = None,
        timing: Optional[TimingConfig] = None,
        max_time: float = MAX_SIMULATION_TIME
    ) -> RunResult:
        """
        Start a run, schedule the given losses and run it to the end.

        Returns:
            RunResult of the completed (or aborted) run
        """
        if self.running:
            raise RuntimeError("A run is already active; reset() it first")
        self.reset()
        for seq_num in losses or []:
            self.schedule_loss(seq_num)

        ctx = self.start(total_frames, window_size, protocol,
                         timing=timing, max_time=max_time)
        status = self.run_until_complete()

        return RunResult(
            config=ctx.config.to_dict(),
            status=status.value,
            delivered_order=list(ctx.receiver.delivered_order),
            events=list(self.events.history),
            metrics=self.metrics.get_summary(),
            simulation_time=ctx.now,
            complete=status == RunStatus.FINISHED,
            ignored_losses=list(self.ignored_losses),
            diagnostics={
                'timers': ctx.timers.get_statistics(),
                'channel': ctx.channel.get_statistics(),
                'receiver': ctx.receiver.get_statistics(),
                'acked': ctx.acked.get_acked() if ctx.acked is not None else None,
                'log': self.logger.get_summary()
            }
        )

    def snapshot(self) -> dict:
        """
        Current engine state.

        Returns:
            Dictionary with base, next_seq, expected_seq, loss_table,
            buffered, status and status_text
        """
        if self.ctx is None:
            return {
                'base': 0,
                'next_seq': 0,
                'expected_seq': 0,
                'loss_table': self.loss_table.snapshot(),
                'buffered': [],
                'status': RunStatus.READY.value,
                'status_text': "Ready"
            }

        ctx = self.ctx
        return {
            'base': ctx.window.base,
            'next_seq': ctx.window.next_seq,
            'expected_seq': ctx.receiver.expected_seq,
            'loss_table': self.loss_table.snapshot(),
            'buffered': ctx.receiver.get_buffered(),
            'status': ctx.status.value,
            'status_text': ctx.status_text
        }


if __name__ == "__main__":
    print("=" * 60)
    print("SIMULATOR TEST")
    print("=" * 60)

    sim = Simulator(log_level=LogLevel.INFO)
    result = sim.run(total_frames=4, window_size=2, protocol="go-back-n", losses=[0])

    print("\nResults:")
    print(f"  Status: {result.status}")
    print(f"  Delivered order: {result.delivered_order}")
    print(f"  Simulation time: {result.simulation_time:.2f} s")

    metrics = result.metrics
    print(f"\nMetrics:")
    print(f"  Efficiency: {metrics['efficiency']*100:.2f}%")
    print(f"  Retransmissions: {metrics['retransmissions']}")
    print(f"  Frames discarded: {metrics['frames_discarded']}")
