"""
Unit tests for the loss table and the lossy channel.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flowctl.arq.frame import Frame, Ack
from flowctl.arq.timer import TimerService, FrameTask
from flowctl.channel.loss_table import LossTable, random_loss_pattern
from flowctl.channel.channel import Channel, TransmitOutcome


def drive(channel, unit):
    """Transmit one unit on a fresh clock; return (outcome, elapsed)."""
    timers = TimerService()

    def routine():
        outcome = yield from channel.transmit(unit)
        return outcome

    task = FrameTask(timers, routine(), "transmit").start()
    timers.run()
    return task.result, timers.now


class TestLossTable:
    """Tests for LossTable class."""

    def test_set_semantics(self):
        """Test duplicate entries collapse."""
        table = LossTable()

        assert table.schedule(2)
        assert not table.schedule(2)
        assert len(table) == 1

    def test_single_use(self):
        """Test an entry is consumed exactly once."""
        table = LossTable([1])

        assert table.consume_if_scheduled(1)
        assert not table.consume_if_scheduled(1)
        assert table.consumed == [1]

    def test_negative_rejected(self):
        """Test negative sequence numbers are rejected."""
        table = LossTable()

        with pytest.raises(ValueError):
            table.schedule(-1)

    def test_discard_out_of_range(self):
        """Test entries beyond the frame count are removed."""
        table = LossTable([0, 5, 9])

        assert table.discard_out_of_range(5) == [5, 9]
        assert table.snapshot() == [0]

    def test_clear_and_reset(self):
        """Test clearing entries and history."""
        table = LossTable([0, 1])
        table.consume_if_scheduled(0)

        assert table.clear() == 1
        assert 1 not in table
        assert table.consumed == [0]

        table.reset()
        assert table.consumed == []


class TestRandomLossPattern:
    """Tests for seeded loss patterns."""

    def test_reproducible(self):
        """Test the same seed gives the same pattern."""
        first = random_loss_pattern(50, 0.3, seed=7)
        second = random_loss_pattern(50, 0.3, seed=7)

        assert first == second
        assert all(0 <= seq < 50 for seq in first)
        assert first == sorted(first)

    def test_extremes(self):
        """Test loss rates 0 and 1."""
        assert random_loss_pattern(10, 0.0, seed=1) == []
        assert random_loss_pattern(10, 1.0, seed=1) == list(range(10))

    def test_invalid_rate(self):
        """Test loss rate outside [0, 1] is rejected."""
        with pytest.raises(ValueError):
            random_loss_pattern(10, 1.5)


class TestChannel:
    """Tests for Channel class."""

    def test_delivery_after_transit(self):
        """Test frames are delivered after the full transit delay."""
        channel = Channel(LossTable(), transit_delay=3.5, partial_delay=1.75)

        outcome, elapsed = drive(channel, Frame.create(0))

        assert outcome == TransmitOutcome.DELIVERED
        assert elapsed == pytest.approx(3.5)

    def test_drop_after_partial_transit(self):
        """Test scheduled frames are dropped after the partial delay."""
        table = LossTable([0])
        channel = Channel(table, transit_delay=3.5, partial_delay=1.75)

        outcome, elapsed = drive(channel, Frame.create(0))

        assert outcome == TransmitOutcome.DROPPED
        assert elapsed == pytest.approx(1.75)
        assert channel.frames_dropped == 1

    def test_loss_consumed_on_placement(self):
        """Test the loss entry is removed as soon as the frame is sent."""
        table = LossTable([0])
        channel = Channel(table)
        timers = TimerService()

        def routine():
            outcome = yield from channel.transmit(Frame.create(0))
            return outcome

        FrameTask(timers, routine(), "transmit").start()

        assert 0 not in table
        assert timers.now == 0.0

    def test_acks_never_lost(self):
        """Test ACKs ignore the loss table."""
        table = LossTable([1])
        channel = Channel(table)

        outcome, _ = drive(channel, Ack(1))

        assert outcome == TransmitOutcome.DELIVERED
        assert 1 in table
        assert channel.acks_transmitted == 1

    def test_invalid_delays(self):
        """Test non-positive transit delay is rejected."""
        with pytest.raises(ValueError):
            Channel(LossTable(), transit_delay=0.0)
