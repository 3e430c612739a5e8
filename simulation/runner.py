"""
Batch Runner for Protocol Comparison Sweeps

This module runs every ARQ variant over a grid of window sizes and loss
rates, several seeded runs each, and collects one result row per run into
a pandas DataFrame.
"""

import os
import time
from typing import Optional, Callable, List, Dict
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing
import sys

import pandas as pd

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import (
    PROTOCOLS, WINDOW_SIZES, LOSS_RATES, SWEEP_TOTAL_FRAMES,
    RUNS_PER_CONFIGURATION, RNG_SEED_BASE, RESULTS_CSV
)
from flowctl.channel.loss_table import random_loss_pattern
from simulation.simulator import Simulator
from flowctl.utils.logger import LogLevel


@dataclass
class SweepPoint:
    """Configuration for a single simulation run."""
    protocol: str
    window_size: int
    loss_rate: float
    run_id: int
    seed: int
    total_frames: int


def run_single_simulation(point: SweepPoint) -> Dict:
    """
    Run a single simulation with given configuration.

    This function is designed to be called in a separate process.

    Args:
        point: Configuration for this run

    Returns:
        Dictionary with results
    """
    row = {
        'protocol': point.protocol,
        'window_size': point.window_size,
        'loss_rate': point.loss_rate,
        'run_id': point.run_id,
        'seed': point.seed,
    }
    losses = random_loss_pattern(point.total_frames, point.loss_rate, seed=point.seed)

    sim = Simulator(log_level=LogLevel.ERROR)  # Minimal logging for batch runs
    result = sim.run(point.total_frames, point.window_size, point.protocol, losses=losses)
    metrics = result.metrics

    row.update({
        'scheduled_losses': len(losses),
        'status': result.status,
        'complete': result.complete,
        'in_order': result.delivered_order == list(range(point.total_frames)),
        'total_time': result.simulation_time,
        'frames_sent': metrics['frames_sent'],
        'retransmissions': metrics['retransmissions'],
        'frames_lost': metrics['frames_lost'],
        'frames_discarded': metrics['frames_discarded'],
        'frames_buffered': metrics['frames_buffered'],
        'timeouts': metrics['timeouts'],
        'efficiency': metrics['efficiency'],
        'retransmission_rate': metrics['retransmission_rate'],
        'throughput': metrics['throughput'],
        'mean_latency': metrics['mean_latency'],
    })
    return row


class BatchRunner:
    """
    Batch Runner for protocol comparison sweeps.

    Executes all (protocol, W, loss rate) combinations with multiple runs
    each. Runs that share a window size, loss rate and run id use the same
    seed, so every protocol faces the same loss pattern.

    Attributes:
        protocols: Protocol names to compare
        window_sizes: List of window sizes to test
        loss_rates: List of per-frame loss probabilities
        runs_per_config: Number of runs per configuration
        total_frames: Frames per run
    """

    def __init__(
        self,
        protocols: List[str] = None,
        window_sizes: List[int] = None,
        loss_rates: List[float] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION,
        total_frames: int = SWEEP_TOTAL_FRAMES,
        output_file: str = RESULTS_CSV,
        on_progress: Optional[Callable[[int, int, dict], None]] = None
    ):
        """
        Initialize batch runner.

        Args:
            protocols: Protocol names (default: all)
            window_sizes: List of window sizes (default from config)
            loss_rates: List of loss rates (default from config)
            runs_per_config: Number of seeded runs per configuration
            total_frames: Frames per run
            output_file: Path to output CSV file
            on_progress: Callback for progress updates
        """
        self.protocols = protocols or PROTOCOLS
        self.window_sizes = window_sizes or WINDOW_SIZES
        self.loss_rates = loss_rates if loss_rates is not None else LOSS_RATES
        self.runs_per_config = runs_per_config
        self.total_frames = total_frames
        self.output_file = output_file
        self.on_progress = on_progress

        # Results storage
        self.results = pd.DataFrame()

        self.total_runs = (len(self.protocols) *
                           len(self.window_sizes) *
                           len(self.loss_rates) *
                           self.runs_per_config)
        self.completed_runs = 0
        self.start_time = 0.0

    def _generate_points(self) -> List[SweepPoint]:
        """Generate all run configurations."""
        points = []

        for protocol in self.protocols:
            for window_size in self.window_sizes:
                for loss_rate in self.loss_rates:
                    for run_id in range(self.runs_per_config):
                        # Same seed for every protocol
                        seed = (RNG_SEED_BASE +
                                window_size * 1000 +
                                int(round(loss_rate * 100)) +
                                run_id * 10000)

                        points.append(SweepPoint(
                            protocol=protocol,
                            window_size=window_size,
                            loss_rate=loss_rate,
                            run_id=run_id,
                            seed=seed,
                            total_frames=self.total_frames
                        ))

        return points

    def _record(self, row: Dict):
        self.completed_runs += 1
        if self.on_progress:
            self.on_progress(self.completed_runs, self.total_runs, row)

    def run(self) -> pd.DataFrame:
        """
        Run all simulations sequentially.

        Returns:
            DataFrame with one row per run
        """
        rows = []
        self.completed_runs = 0
        self.start_time = time.time()

        for point in self._generate_points():
            row = run_single_simulation(point)
            rows.append(row)
            self._record(row)

        self.results = pd.DataFrame(rows)
        return self.results

    def run_parallel(self, max_workers: Optional[int] = None) -> pd.DataFrame:
        """
        Run simulations in parallel using multiprocessing.

        Args:
            max_workers: Number of parallel workers (default: CPU count)

        Returns:
            DataFrame with one row per run, in grid order
        """
        if max_workers is None:
            max_workers = multiprocessing.cpu_count()

        points = self._generate_points()
        rows: List[Optional[Dict]] = [None] * len(points)
        self.completed_runs = 0
        self.start_time = time.time()

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(run_single_simulation, point): index
                for index, point in enumerate(points)
            }
            for future in as_completed(futures):
                row = future.result()
                rows[futures[future]] = row
                self._record(row)

        self.results = pd.DataFrame(rows)
        return self.results

    @property
    def elapsed(self) -> float:
        """Wall-clock seconds since the last sweep started."""
        return time.time() - self.start_time if self.start_time else 0.0

    def save_results(self, filepath: Optional[str] = None) -> Optional[str]:
        """
        Save results to CSV file.

        Args:
            filepath: Output file path (default: self.output_file)

        Returns:
            Path written, or None if there is nothing to save
        """
        filepath = filepath or self.output_file
        if self.results.empty:
            return None

        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.results.to_csv(filepath, index=False)
        return filepath

    def summarize(self) -> pd.DataFrame:
        """
        Mean metrics per (protocol, window size, loss rate).

        Returns:
            Aggregated DataFrame
        """
        if self.results.empty:
            return pd.DataFrame()

        return self.results.groupby(
            ['protocol', 'window_size', 'loss_rate']
        ).agg(
            runs=('run_id', 'count'),
            completed=('complete', 'mean'),
            total_time=('total_time', 'mean'),
            frames_sent=('frames_sent', 'mean'),
            retransmissions=('retransmissions', 'mean'),
            efficiency=('efficiency', 'mean'),
            throughput=('throughput', 'mean'),
        ).reset_index()

    def get_best_configuration(self, loss_rate: Optional[float] = None) -> Dict:
        """
        Find the configuration with the highest mean throughput.

        Args:
            loss_rate: Restrict the search to one loss rate

        Returns:
            Dictionary with the best configuration and its means
        """
        summary = self.summarize()
        if loss_rate is not None and not summary.empty:
            summary = summary[summary['loss_rate'] == loss_rate]
        if summary.empty:
            return {'error': 'No results available'}

        best = summary.loc[summary['throughput'].idxmax()]
        return {
            'protocol': best['protocol'],
            'window_size': int(best['window_size']),
            'loss_rate': float(best['loss_rate']),
            'mean_throughput': float(best['throughput']),
            'mean_efficiency': float(best['efficiency']),
            'mean_total_time': float(best['total_time']),
            'mean_retransmissions': float(best['retransmissions'])
        }


if __name__ == "__main__":
    print("=" * 60)
    print("BATCH RUNNER TEST")
    print("=" * 60)

    runner = BatchRunner(
        window_sizes=[2, 4],
        loss_rates=[0.0, 0.2],
        runs_per_config=2,
        total_frames=8
    )

    print(f"\nTotal runs: {runner.total_runs}")
    runner.run()
    print(runner.summarize().to_string(index=False))

    best = runner.get_best_configuration()
    print(f"\nBest configuration: {best['protocol']} W={best['window_size']} "
          f"loss={best['loss_rate']:.0%} ({best['mean_throughput']:.3f} frames/s)")
