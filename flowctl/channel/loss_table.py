"""
Loss Table

Operator-injected loss faults. Each entry drops exactly one transmission of
its sequence number and is consumed the moment that frame is placed on the
channel.
"""

from typing import Iterable, List, Optional, Set

import numpy as np


class LossTable:
    """
    Set of sequence numbers scheduled to be dropped on next transmission.

    Attributes:
        consumed: Sequence numbers consumed so far, in order
    """

    def __init__(self, entries: Iterable[int] = ()):
        self._entries: Set[int] = set()
        self.consumed: List[int] = []
        for seq_num in entries:
            self.schedule(seq_num)

    def schedule(self, seq_num: int) -> bool:
        """
        Schedule a loss.

        Args:
            seq_num: Sequence number to drop on its next transmission

        Returns:
            True if the entry is new (duplicates collapse)
        """
        if seq_num < 0:
            raise ValueError(f"Sequence number must be non-negative, got {seq_num}")
        if seq_num in self._entries:
            return False
        self._entries.add(seq_num)
        return True

    def consume_if_scheduled(self, seq_num: int) -> bool:
        """
        Consume the entry for a frame being transmitted.

        Args:
            seq_num: Sequence number placed on the channel

        Returns:
            True if the frame must be dropped
        """
        if seq_num not in self._entries:
            return False
        self._entries.discard(seq_num)
        self.consumed.append(seq_num)
        return True

    def discard(self, seq_num: int) -> bool:
        """Remove an entry without consuming it."""
        if seq_num in self._entries:
            self._entries.discard(seq_num)
            return True
        return False

    def discard_out_of_range(self, total_frames: int) -> List[int]:
        """
        Remove entries that cannot match any frame of a run.

        Args:
            total_frames: Frame count of the run

        Returns:
            Removed sequence numbers, sorted
        """
        invalid = sorted(seq for seq in self._entries if seq >= total_frames)
        for seq_num in invalid:
            self._entries.discard(seq_num)
        return invalid

    def clear(self) -> int:
        """
        Remove every entry.

        Returns:
            Number of entries removed
        """
        removed = len(self._entries)
        self._entries.clear()
        return removed

    def reset(self):
        """Clear entries and consumption history."""
        self._entries.clear()
        self.consumed.clear()

    def snapshot(self) -> List[int]:
        """Scheduled sequence numbers, sorted."""
        return sorted(self._entries)

    def __contains__(self, seq_num: int) -> bool:
        return seq_num in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"LossTable({self.snapshot()})"


def random_loss_pattern(
    total_frames: int,
    loss_rate: float,
    seed: Optional[int] = None
) -> List[int]:
    """
    Draw a reproducible set of frames to drop on first transmission.

    Each sequence number is selected independently with probability
    ``loss_rate``.

    Args:
        total_frames: Frame count of the run
        loss_rate: Per-frame loss probability in [0, 1]
        seed: Random seed for reproducibility

    Returns:
        Sorted list of sequence numbers
    """
    if not 0.0 <= loss_rate <= 1.0:
        raise ValueError(f"Loss rate must be within [0, 1], got {loss_rate}")
    if total_frames <= 0:
        return []

    rng = np.random.default_rng(seed)
    draws = rng.random(total_frames)
    return [int(seq) for seq in np.flatnonzero(draws < loss_rate)]
