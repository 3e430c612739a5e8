"""
Unit tests for the timeline plot.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import GO_BACK_N
from flowctl.utils.events import EventKind
from flowctl.utils.logger import LogLevel
from simulation.simulator import Simulator
from visualization.timeline import TimelinePlot


class TestTimelinePlot:
    """Tests for TimelinePlot class."""

    def test_points_grouped_by_kind(self):
        """Test events are grouped into plotted series."""
        sim = Simulator(log_level=LogLevel.CRITICAL)
        result = sim.run(4, 2, GO_BACK_N, losses=[0])

        points = TimelinePlot(result.events).points()

        assert [seq for _, seq in points[EventKind.FRAME_LOST]] == [0]
        assert [seq for _, seq in points[EventKind.FRAME_DISCARDED]] == [1]
        assert len(points[EventKind.FRAME_SENT]) == 6

    def test_plot_writes_png(self, tmp_path):
        """Test the figure is saved."""
        sim = Simulator(log_level=LogLevel.CRITICAL)
        result = sim.run(4, 2, GO_BACK_N, losses=[0])
        output = tmp_path / "plots" / "timeline.png"

        path = TimelinePlot(result.events).plot(output_file=str(output))

        assert path == str(output)
        assert output.exists()
        assert output.stat().st_size > 0

    def test_empty_events_rejected(self, tmp_path):
        """Test plotting without frame events is an error."""
        with pytest.raises(ValueError):
            TimelinePlot([]).plot(output_file=str(tmp_path / "empty.png"))
