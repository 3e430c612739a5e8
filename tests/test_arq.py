"""
Unit tests for the ARQ building blocks: frames, windows and receiver state.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flowctl.arq.frame import Frame, Ack, FrameType, AckMode
from flowctl.arq.sender import SendWindow, AckRecord
from flowctl.arq.receiver import ReceiverState, ReceiveDecision


class TestFrame:
    """Tests for Frame and Ack units."""

    def test_data_frame_creation(self):
        """Test creating a data frame."""
        frame = Frame.create(3)

        assert frame.frame_type == FrameType.DATA
        assert frame.seq_num == 3
        assert frame.payload == "MSG_3"
        assert str(frame) == "Frame 4"

    def test_negative_sequence_rejected(self):
        """Test that negative sequence numbers are rejected."""
        with pytest.raises(ValueError):
            Frame(seq_num=-1)
        with pytest.raises(ValueError):
            Ack(seq_num=-1)

    def test_individual_ack_label(self):
        """Test individual ACK text."""
        ack = Ack(2)

        assert ack.frame_type == FrameType.ACK
        assert str(ack) == "ACK 3"

    def test_cumulative_ack_label(self):
        """Test cumulative ACK text."""
        ack = Ack(2, AckMode.CUMULATIVE)

        assert ack.mode == AckMode.CUMULATIVE
        assert str(ack) == "Cumulative ACK 3"


class TestSendWindow:
    """Tests for SendWindow class."""

    def test_window_initialization(self):
        """Test window initialization."""
        window = SendWindow(size=4, total=10)

        assert window.base == 0
        assert window.next_seq == 0
        assert window.upper_bound == 4
        assert window.can_send
        assert window.describe() == "[1 .. 4]"

    def test_window_fills(self):
        """Test window becomes full after size sends."""
        window = SendWindow(size=2, total=10)

        assert window.take_next_seq() == 0
        assert window.take_next_seq() == 1
        assert not window.can_send
        assert window.in_flight == 2
        assert window.describe() == "[1 .. 2]"

    def test_upper_bound_clipped_to_total(self):
        """Test the window never extends past the last frame."""
        window = SendWindow(size=8, total=3)

        assert window.upper_bound == 3
        assert window.describe() == "[1 .. 3]"

    def test_advance_base_ignores_stale(self):
        """Test stale base updates are ignored."""
        window = SendWindow(size=4, total=10)
        window.take_next_seq()
        window.take_next_seq()

        assert window.advance_base(2)
        assert not window.advance_base(1)
        assert window.base == 2

    def test_advance_base_drags_next_seq(self):
        """Test next_seq never falls behind base."""
        window = SendWindow(size=4, total=10)
        window.take_next_seq()
        window.go_back()

        window.advance_base(3)
        assert window.next_seq == 3

    def test_advance_base_clamped(self):
        """Test base never passes the frame count."""
        window = SendWindow(size=4, total=3)

        window.advance_base(10)
        assert window.base == 3
        assert window.complete

    def test_go_back(self):
        """Test go-back rewinds next_seq to base."""
        window = SendWindow(size=4, total=10)
        for _ in range(3):
            window.take_next_seq()
        window.advance_base(1)

        assert window.go_back() == 2
        assert window.next_seq == 1


class TestAckRecord:
    """Tests for AckRecord class."""

    def test_slide_over_prefix(self):
        """Test slide stops at first unacknowledged frame."""
        record = AckRecord(5)
        record.mark(0)
        record.mark(1)
        record.mark(3)

        assert record.slide(0) == 2
        assert record.get_acked() == [0, 1, 3]

    def test_mark_reports_first_ack(self):
        """Test duplicate ACKs are detected."""
        record = AckRecord(3)

        assert record.mark(1)
        assert not record.mark(1)
        assert record.get_acked() == [1]

    def test_out_of_range_is_unacked(self):
        """Test sequence numbers past the end count as unacknowledged."""
        record = AckRecord(2)
        record.mark(0)
        record.mark(1)

        assert not record.is_acked(2)
        assert record.slide(0) == 2


class TestReceiverInOrder:
    """Tests for strict in-order acceptance."""

    def test_in_order_delivery(self):
        """Test in-order frames are delivered."""
        receiver = ReceiverState(3)

        for seq in range(3):
            result = receiver.accept_in_order(seq)
            assert result.decision == ReceiveDecision.DELIVERED
            assert result.acknowledge

        assert receiver.delivered_order == [0, 1, 2]
        assert receiver.complete

    def test_out_of_order_discarded(self):
        """Test frame ahead of expected is discarded without ACK."""
        receiver = ReceiverState(3)

        result = receiver.accept_in_order(1)

        assert result.decision == ReceiveDecision.DISCARDED
        assert result.expected == 0
        assert not result.acknowledge
        assert receiver.delivered_order == []

    def test_duplicate_reacked_by_default(self):
        """Test old frame is a re-ACKed duplicate."""
        receiver = ReceiverState(3)
        receiver.accept_in_order(0)

        result = receiver.accept_in_order(0)

        assert result.decision == ReceiveDecision.DUPLICATE
        assert result.acknowledge
        assert receiver.delivered_order == [0]

    def test_duplicate_without_ack(self):
        """Test duplicates can be dropped silently."""
        receiver = ReceiverState(3)
        receiver.accept_in_order(0)

        result = receiver.accept_in_order(0, ack_duplicates=False)

        assert not result.acknowledge


class TestReceiverSelective:
    """Tests for out-of-order buffering."""

    def test_out_of_order_buffering(self):
        """Test out-of-order frames are buffered."""
        receiver = ReceiverState(4, selective=True)

        result = receiver.accept_selective(2)

        assert result.decision == ReceiveDecision.BUFFERED
        assert result.acknowledge
        assert receiver.get_buffered() == [2]
        assert receiver.expected_seq == 0

    def test_contiguous_drain(self):
        """Test arrival of the missing frame drains the buffered run."""
        receiver = ReceiverState(4, selective=True)
        receiver.accept_selective(1)
        receiver.accept_selective(2)

        result = receiver.accept_selective(0)

        assert result.decision == ReceiveDecision.DELIVERED
        assert result.delivered == [0, 1, 2]
        assert receiver.expected_seq == 3
        assert receiver.get_buffered() == []

    def test_drain_stops_at_gap(self):
        """Test draining stops at the next missing frame."""
        receiver = ReceiverState(5, selective=True)
        receiver.accept_selective(1)
        receiver.accept_selective(3)

        result = receiver.accept_selective(0)

        assert result.delivered == [0, 1]
        assert receiver.get_buffered() == [3]

    def test_duplicates(self):
        """Test already delivered and already buffered frames are duplicates."""
        receiver = ReceiverState(4, selective=True)
        receiver.accept_selective(0)
        receiver.accept_selective(2)

        old = receiver.accept_selective(0)
        held = receiver.accept_selective(2)

        assert old.decision == ReceiveDecision.DUPLICATE
        assert held.decision == ReceiveDecision.DUPLICATE
        assert old.acknowledge and held.acknowledge
        assert receiver.duplicate_frames == 2

    def test_selective_requires_buffer(self):
        """Test selective acceptance needs a buffer."""
        receiver = ReceiverState(3)

        with pytest.raises(RuntimeError):
            receiver.accept_selective(0)
