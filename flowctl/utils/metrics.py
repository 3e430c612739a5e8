"""
Metrics Collection and Calculation

This module tracks per-run protocol counters from the event stream and
derives efficiency figures used to compare the ARQ variants.
"""

from typing import Dict, List, Optional

from .events import Event, EventKind


class MetricsCollector:
    """
    Collects and calculates performance metrics for one run.

    Primary metric: Efficiency = Frames Delivered / Frame Transmissions

    Attributes:
        start_time: Simulation start time
        end_time: Simulation end time
    """

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset every counter."""
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

        # Frame counters
        self.frames_sent = 0
        self.retransmissions = 0
        self.frames_lost = 0
        self.frames_arrived = 0
        self.frames_delivered = 0
        self.frames_discarded = 0
        self.frames_buffered = 0
        self.duplicate_frames = 0

        # ACK counters
        self.acks_sent = 0
        self.acks_received = 0

        self.timeouts = 0
        self.window_changes = 0

        # Completion time of each delivery, by sequence number
        self.delivery_times: Dict[int, float] = {}
        self.first_send_times: Dict[int, float] = {}

    def start(self, time: float):
        """Mark simulation start."""
        self.start_time = time

    def finish(self, time: float):
        """Mark simulation end."""
        self.end_time = time

    def record(self, event: Event):
        """
        Update counters from one engine event.

        Meant to be subscribed to an EventBus.
        """
        kind = event.kind

        if kind == EventKind.FRAME_SENT:
            self.frames_sent += 1
            if event.retransmission:
                self.retransmissions += 1
            self.first_send_times.setdefault(event.seq, event.time)
        elif kind == EventKind.FRAME_LOST:
            self.frames_lost += 1
        elif kind == EventKind.FRAME_DELIVERED_TO_RECEIVER:
            self.frames_arrived += 1
        elif kind == EventKind.FRAME_DELIVERED:
            self.frames_delivered += 1
            self.delivery_times[event.seq] = event.time
        elif kind == EventKind.FRAME_DISCARDED:
            self.frames_discarded += 1
        elif kind == EventKind.FRAME_BUFFERED:
            self.frames_buffered += 1
        elif kind == EventKind.FRAME_DUPLICATE:
            self.duplicate_frames += 1
        elif kind == EventKind.ACK_SENT:
            self.acks_sent += 1
        elif kind == EventKind.ACK_RECEIVED:
            self.acks_received += 1
        elif kind == EventKind.TIMEOUT:
            self.timeouts += 1
        elif kind == EventKind.WINDOW_CHANGED:
            self.window_changes += 1

    @property
    def total_time(self) -> float:
        """Elapsed simulated time of the run."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        return max(0.0, self.end_time - self.start_time)

    def calculate_efficiency(self) -> float:
        """
        Calculate transmission efficiency.

        Efficiency = Frames Delivered / Frame Transmissions

        Returns:
            Efficiency in [0, 1]
        """
        if self.frames_sent == 0:
            return 0.0
        return self.frames_delivered / self.frames_sent

    def calculate_retransmission_rate(self) -> float:
        """Retransmissions per frame transmission."""
        if self.frames_sent == 0:
            return 0.0
        return self.retransmissions / self.frames_sent

    def calculate_throughput(self) -> float:
        """
        Calculate delivered frames per simulated second.

        Returns:
            Frames per second (0 if no time elapsed)
        """
        if self.total_time <= 0:
            return 0.0
        return self.frames_delivered / self.total_time

    def get_latencies(self) -> List[float]:
        """First transmission to in-order delivery, per delivered frame."""
        return [
            self.delivery_times[seq] - self.first_send_times[seq]
            for seq in sorted(self.delivery_times)
            if seq in self.first_send_times
        ]

    def get_summary(self) -> dict:
        """
        Get comprehensive metrics summary.

        Returns:
            Dictionary with all metrics
        """
        latencies = self.get_latencies()
        return {
            'total_time': self.total_time,
            'frames_sent': self.frames_sent,
            'retransmissions': self.retransmissions,
            'frames_lost': self.frames_lost,
            'frames_arrived': self.frames_arrived,
            'frames_delivered': self.frames_delivered,
            'frames_discarded': self.frames_discarded,
            'frames_buffered': self.frames_buffered,
            'duplicate_frames': self.duplicate_frames,
            'acks_sent': self.acks_sent,
            'acks_received': self.acks_received,
            'timeouts': self.timeouts,
            'efficiency': self.calculate_efficiency(),
            'retransmission_rate': self.calculate_retransmission_rate(),
            'throughput': self.calculate_throughput(),
            'mean_latency': sum(latencies) / len(latencies) if latencies else 0.0,
            'max_latency': max(latencies) if latencies else 0.0
        }
