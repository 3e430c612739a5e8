"""
Unit tests for the protocol driver: configuration, loss injection, reset
and run limits.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import STOP_AND_WAIT, SLIDING_WINDOW, GO_BACK_N, SELECTIVE_REPEAT
from flowctl.context import ConfigurationError, RunStatus, TimingConfig
from flowctl.utils.events import EventKind
from flowctl.utils.logger import LogLevel
from simulation.simulator import Simulator

CLEAN_STATE = {
    'base': 0,
    'next_seq': 0,
    'expected_seq': 0,
    'loss_table': [],
    'buffered': [],
    'status': 'ready',
    'status_text': 'Ready'
}


@pytest.fixture
def sim():
    return Simulator(log_level=LogLevel.CRITICAL)


class TestConfiguration:
    """Tests for start() validation."""

    @pytest.mark.parametrize("total_frames,window_size,protocol", [
        (0, 2, GO_BACK_N),
        (4, 0, GO_BACK_N),
        (-3, 2, SELECTIVE_REPEAT),
        (4, 2, "token-ring"),
        (True, 2, GO_BACK_N),
        ("4", 2, GO_BACK_N),
    ])
    def test_invalid_config_rejected(self, sim, total_frames, window_size, protocol):
        """Test invalid input raises without touching state."""
        sim.schedule_loss(1)

        with pytest.raises(ConfigurationError):
            sim.start(total_frames, window_size, protocol)

        assert sim.ctx is None
        assert sim.snapshot()['loss_table'] == [1]

    def test_configuration_error_is_value_error(self):
        """Test ConfigurationError can be caught as ValueError."""
        assert issubclass(ConfigurationError, ValueError)

    def test_protocol_name_case_insensitive(self, sim):
        """Test protocol names are normalised."""
        ctx = sim.start(3, 2, " Go-Back-N ")
        assert ctx.config.protocol.value == GO_BACK_N

    def test_stop_and_wait_forces_window_one(self, sim):
        """Test Stop-and-Wait ignores the requested window size."""
        ctx = sim.start(3, 5, STOP_AND_WAIT)
        assert ctx.config.window_size == 1

    def test_invalid_timing_rejected(self, sim):
        """Test non-positive timing values are rejected."""
        with pytest.raises(ConfigurationError):
            sim.start(3, 2, GO_BACK_N, timing=TimingConfig(transit_delay=0))

    def test_start_while_running(self, sim):
        """Test a second start during an active run is refused."""
        sim.start(3, 2, GO_BACK_N)

        with pytest.raises(RuntimeError):
            sim.start(3, 2, GO_BACK_N)

    def test_restart_after_finish(self, sim):
        """Test a finished run can be followed by a new one."""
        first = sim.run(2, 1, STOP_AND_WAIT)
        second = sim.run(3, 2, SELECTIVE_REPEAT)

        assert first.complete and second.complete
        assert second.delivered_order == [0, 1, 2]
        assert sim.metrics.frames_delivered == 3


class TestLossInjection:
    """Tests for schedule_loss()."""

    def test_negative_rejected(self, sim):
        """Test negative targets are refused before a run."""
        assert not sim.schedule_loss(-1)
        assert sim.snapshot()['loss_table'] == []

    def test_non_integer_rejected(self, sim):
        """Test non-integer targets are refused."""
        assert not sim.schedule_loss(1.5)
        assert not sim.schedule_loss(True)

    def test_duplicate_collapses(self, sim):
        """Test scheduling the same frame twice keeps one entry."""
        assert sim.schedule_loss(2)
        assert sim.schedule_loss(2)
        assert sim.snapshot()['loss_table'] == [2]

    def test_out_of_range_dropped_at_start(self, sim):
        """Test entries beyond the frame count are dropped and reported."""
        sim.schedule_loss(1)
        sim.schedule_loss(10)
        sim.start(3, 1, STOP_AND_WAIT)

        assert sim.ignored_losses == [10]
        statuses = [e.text for e in sim.events.of_kind(EventKind.STATUS_CHANGED)]
        assert any("out of range" in text for text in statuses)

    def test_out_of_range_rejected_mid_run(self, sim):
        """Test targets outside the run are refused during a run."""
        sim.start(3, 2, GO_BACK_N)

        assert not sim.schedule_loss(3)
        assert sim.snapshot()['loss_table'] == []

    def test_mid_run_injection(self, sim):
        """Test a loss scheduled during the run drops the next transmission."""
        sim.start(3, 1, STOP_AND_WAIT)
        sim.run_until(1.0)

        assert sim.schedule_loss(1)
        assert sim.run_until_complete() == RunStatus.FINISHED
        assert sim.events.seqs(EventKind.FRAME_SENT) == [0, 1, 1, 2]
        assert sim.events.seqs(EventKind.FRAME_LOST) == [1]

    def test_unused_mid_run_loss_not_carried_over(self, sim):
        """Test a loss left unused by one run never drops frames in the next."""
        sim.start(3, 2, GO_BACK_N)
        sim.run_until(8.0)
        assert sim.ctx.window.base == 1
        assert sim.schedule_loss(0)
        sim.run_until_complete()

        sim.start(3, 2, GO_BACK_N)
        assert sim.snapshot()['loss_table'] == []
        assert sim.run_until_complete() == RunStatus.FINISHED
        assert sim.events.seqs(EventKind.FRAME_LOST) == []

    def test_loss_after_finish_not_carried_over(self, sim):
        """Test a loss scheduled after a run ended is dropped at the next start."""
        sim.start(3, 2, GO_BACK_N)
        sim.run_until(30.0)
        sim.schedule_loss(0)
        sim.run_until_complete()

        sim.start(3, 2, GO_BACK_N)
        sim.run_until_complete()

        assert sim.events.seqs(EventKind.FRAME_LOST) == []

    def test_loss_scheduled_after_reset_applies(self, sim):
        """Test losses scheduled after reset target the next run."""
        sim.run(3, 1, STOP_AND_WAIT)
        sim.reset()
        sim.schedule_loss(2)
        sim.start(3, 1, STOP_AND_WAIT)
        sim.run_until_complete()

        assert sim.events.seqs(EventKind.FRAME_LOST) == [2]

    def test_sliding_window_refuses_mid_run_loss(self, sim):
        """Test Sliding Window refuses losses during its run."""
        sim.start(4, 2, SLIDING_WINDOW)

        assert not sim.schedule_loss(2)
        assert sim.run_until_complete() == RunStatus.FINISHED
        assert sim.events.seqs(EventKind.FRAME_LOST) == []


class TestReset:
    """Tests for reset()."""

    def test_reset_before_start(self, sim):
        """Test reset on a fresh engine leaves the clean state."""
        sim.reset()
        assert sim.snapshot() == CLEAN_STATE

    def test_reset_is_idempotent(self, sim):
        """Test two resets in a row equal one."""
        sim.schedule_loss(0)
        sim.start(4, 2, GO_BACK_N)
        sim.run_until(4.0)

        sim.reset()
        first = sim.snapshot()
        sim.reset()

        assert first == CLEAN_STATE
        assert sim.snapshot() == CLEAN_STATE

    def test_reset_mid_run_aborts(self, sim):
        """Test reset cancels every task and timer of the active run."""
        ctx = sim.start(6, 3, SELECTIVE_REPEAT)
        sim.run_until(5.0)
        events = sim.events

        sim.reset()

        assert ctx.status == RunStatus.ABORTED
        assert events.history[-1].kind == EventKind.RUN_ABORTED
        assert events.history[-1].text == "Reset"
        assert len(ctx.tasks) == 0
        assert ctx.timers.pending_count == 0

        count = len(events)
        ctx.timers.run()
        assert len(events) == count

    def test_reset_clears_buffers(self, sim):
        """Test receiver buffers are dropped on reset."""
        sim.schedule_loss(0)
        sim.start(4, 4, SELECTIVE_REPEAT)
        sim.run_until(6.0)
        assert sim.snapshot()['buffered'] == [1, 2, 3]

        sim.reset()
        assert sim.snapshot()['buffered'] == []

    def test_run_after_reset(self, sim):
        """Test a new run after a mid-run reset completes normally."""
        sim.start(4, 2, GO_BACK_N)
        sim.run_until(3.0)
        sim.reset()

        result = sim.run(4, 2, GO_BACK_N)
        assert result.complete
        assert result.delivered_order == [0, 1, 2, 3]


class TestRunLimits:
    """Tests for the simulated time limit."""

    def test_time_limit_aborts(self, sim):
        """Test exceeding max_time aborts the run."""
        result = sim.run(5, 1, STOP_AND_WAIT, max_time=10.0)

        assert result.status == RunStatus.ABORTED.value
        assert not result.complete
        aborted = sim.events.of_kind(EventKind.RUN_ABORTED)
        assert len(aborted) == 1
        assert "Time limit" in aborted[0].text

    def test_run_until_complete_override(self, sim):
        """Test the limit can be overridden per call."""
        sim.start(5, 1, STOP_AND_WAIT)

        assert sim.run_until_complete(max_time=8.0) == RunStatus.ABORTED
        assert sim.ctx.receiver.delivered_order == [0]

    def test_run_until_complete_requires_run(self, sim):
        """Test driving the clock without a run is an error."""
        with pytest.raises(RuntimeError):
            sim.run_until_complete()


class TestObservability:
    """Tests for snapshot, metrics and the log file."""

    def test_snapshot_mid_run(self, sim):
        """Test snapshot reflects the live window."""
        sim.start(5, 2, GO_BACK_N)
        sim.run_until(2.0)

        state = sim.snapshot()
        assert state['base'] == 0
        assert state['next_seq'] == 2
        assert state['status'] == 'running'

    def test_metrics_summary(self, sim):
        """Test metrics are collected from the event stream."""
        result = sim.run(4, 2, GO_BACK_N, losses=[0])
        metrics = result.metrics

        assert metrics['frames_sent'] == 6
        assert metrics['retransmissions'] == 2
        assert metrics['frames_lost'] == 1
        assert metrics['frames_delivered'] == 4
        assert metrics['total_time'] == pytest.approx(result.simulation_time)

    def test_component_statistics(self, sim):
        """Test timers, channel and receiver statistics are attached to the result."""
        result = sim.run(4, 2, GO_BACK_N, losses=[0])
        diagnostics = result.diagnostics

        assert diagnostics['channel']['frames_transmitted'] == 6
        assert diagnostics['channel']['frames_dropped'] == 1
        assert diagnostics['receiver']['frames_delivered'] == 4
        assert diagnostics['receiver']['discarded_frames'] == 1
        assert diagnostics['timers']['pending_timers'] == 0
        assert diagnostics['acked'] is None
        assert 'total_messages' in diagnostics['log']

    def test_selective_repeat_ack_flags(self, sim):
        """Test the per-frame ACK record is reported for Selective Repeat."""
        result = sim.run(3, 3, SELECTIVE_REPEAT, losses=[0])

        assert result.diagnostics['acked'] == [0, 1, 2]

    def test_log_file(self, tmp_path):
        """Test events are written to the log file without colours."""
        log_file = tmp_path / "logs" / "sim.log"
        sim = Simulator(log_level=LogLevel.DEBUG, log_file=str(log_file))
        sim.run(2, 1, STOP_AND_WAIT, losses=[0])
        sim.logger.close()

        text = log_file.read_text()
        assert "Frame 1 LOST!" in text
        assert "ACK Received for Frame 2" in text
        assert "\033[" not in text
