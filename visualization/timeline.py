"""
Sender/Receiver Timeline

Draws a static timeline of one run from its event stream: simulated time
on the x axis, sequence number on the y axis, one marker per frame event.
"""

import os
import sys
from typing import Dict, Iterable, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import PLOTS_DIR
from flowctl.utils.events import Event, EventKind


class TimelinePlot:
    """
    Timeline of frame and ACK events of one run.

    Attributes:
        events: Events of the run, in emission order
    """

    # (marker, colour, legend label) per plotted event kind
    STYLES = {
        EventKind.FRAME_SENT: ('>', 'tab:blue', 'Frame sent'),
        EventKind.FRAME_LOST: ('x', 'tab:red', 'Frame lost'),
        EventKind.FRAME_DISCARDED: ('s', 'tab:orange', 'Frame discarded'),
        EventKind.FRAME_BUFFERED: ('D', 'tab:purple', 'Frame buffered'),
        EventKind.FRAME_DELIVERED: ('o', 'tab:green', 'Frame delivered'),
        EventKind.ACK_RECEIVED: ('<', 'tab:gray', 'ACK received'),
        EventKind.TIMEOUT: ('*', 'black', 'Timeout'),
    }

    def __init__(self, events: Iterable[Event]):
        self.events: List[Event] = list(events)

    def points(self) -> Dict[EventKind, List[Tuple[float, int]]]:
        """(time, seq) pairs per plotted event kind."""
        grouped: Dict[EventKind, List[Tuple[float, int]]] = {kind: [] for kind in self.STYLES}
        for event in self.events:
            if event.kind in grouped and event.seq is not None:
                grouped[event.kind].append((event.time, event.seq))
        return grouped

    def plot(
        self,
        output_file: Optional[str] = None,
        title: str = "ARQ Timeline",
        figsize: Tuple[int, int] = (12, 6)
    ) -> str:
        """
        Generate and save the timeline.

        Args:
            output_file: Output file path (auto-generated if None)
            title: Plot title
            figsize: Figure size (width, height)

        Returns:
            Path to saved figure
        """
        grouped = self.points()
        if not any(grouped.values()):
            raise ValueError("No frame events to plot")

        fig, ax = plt.subplots(figsize=figsize)

        # Journeys: sent -> lost or sent -> delivered to receiver
        arrivals = {EventKind.FRAME_LOST, EventKind.FRAME_DELIVERED_TO_RECEIVER}
        pending: Dict[int, List[float]] = {}
        for event in self.events:
            if event.kind == EventKind.FRAME_SENT:
                pending.setdefault(event.seq, []).append(event.time)
            elif event.kind in arrivals and pending.get(event.seq):
                sent_at = pending[event.seq].pop(0)
                style = ':' if event.kind == EventKind.FRAME_LOST else '-'
                ax.plot([sent_at, event.time], [event.seq + 1, event.seq + 1],
                        linestyle=style, color='lightgray', linewidth=1, zorder=1)

        for kind, (marker, colour, label) in self.STYLES.items():
            if not grouped[kind]:
                continue
            times, seqs = zip(*grouped[kind])
            ax.scatter(times, [s + 1 for s in seqs], marker=marker, color=colour,
                       label=label, zorder=2)

        max_seq = max(seq for pts in grouped.values() for _, seq in pts)
        ax.set_yticks(range(1, max_seq + 2))
        ax.set_xlabel('Simulated time (s)', fontsize=12)
        ax.set_ylabel('Frame', fontsize=12)
        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.grid(True, alpha=0.3)
        ax.legend(loc='upper left', fontsize=9)

        plt.tight_layout()

        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            output_file = os.path.join(PLOTS_DIR, 'timeline.png')
        else:
            directory = os.path.dirname(output_file)
            if directory:
                os.makedirs(directory, exist_ok=True)

        plt.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        return output_file
