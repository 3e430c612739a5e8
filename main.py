#!/usr/bin/env python3
"""
Flow Control ARQ Simulator - Main Entry Point

This is the main CLI interface for the ARQ protocol simulator.
It provides options for:
- Single simulation runs
- Side-by-side comparison of all protocols
- Protocol comparison sweep (protocols x window sizes x loss rates)
- Timeline plot of one run

Usage:
    python main.py --single --protocol go-back-n --frames 4 --window 2 --loss 0
    python main.py --compare --frames 10 --window 4 --loss-rate 0.2
    python main.py --sweep --runs 5
    python main.py --visualize --protocol selective-repeat --loss 0
"""

import argparse
import os
import sys
import time

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    PROTOCOLS, DEFAULT_PROTOCOL, DEFAULT_TOTAL_FRAMES, DEFAULT_WINDOW_SIZE,
    RUNS_PER_CONFIGURATION, RNG_SEED_BASE, RESULTS_CSV, PLOTS_DIR
)


def resolve_losses(args):
    """Explicit --loss entries plus a seeded --loss-rate pattern."""
    from flowctl.channel.loss_table import random_loss_pattern

    losses = set(args.loss or [])
    if args.loss_rate:
        losses.update(random_loss_pattern(args.frames, args.loss_rate, seed=args.seed))
    return sorted(losses)


def run_single_simulation(args):
    """Run a single simulation with specified parameters."""
    from simulation.simulator import Simulator
    from flowctl.utils.logger import LogLevel

    losses = resolve_losses(args)

    print("=" * 60)
    print("FLOW CONTROL ARQ SIMULATOR")
    print("=" * 60)
    print(f"\nConfiguration:")
    print(f"  Protocol: {args.protocol}")
    print(f"  Frames: {args.frames}")
    print(f"  Window size: {args.window}")
    print(f"  Scheduled losses: {[seq + 1 for seq in losses] or 'none'}")

    sim = Simulator(log_level=LogLevel.INFO if args.verbose else LogLevel.WARNING)
    start_time = time.time()
    result = sim.run(args.frames, args.window, args.protocol, losses=losses)
    elapsed = time.time() - start_time

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)

    print(f"\nRun Status:")
    print(f"  Status: {result.status}")
    print(f"  Delivered order: {[seq + 1 for seq in result.delivered_order]}")
    print(f"  Simulation Time: {result.simulation_time:.2f} s")
    print(f"  Real Time: {elapsed:.3f} s")
    if result.ignored_losses:
        print(f"  Ignored losses: {[seq + 1 for seq in result.ignored_losses]}")

    metrics = result.metrics
    print(f"\nFrame Statistics:")
    print(f"  Frames Sent: {metrics['frames_sent']}")
    print(f"  Retransmissions: {metrics['retransmissions']}")
    print(f"  Frames Lost: {metrics['frames_lost']}")
    print(f"  Frames Discarded: {metrics['frames_discarded']}")
    print(f"  Frames Buffered: {metrics['frames_buffered']}")
    print(f"  Timeouts: {metrics['timeouts']}")

    print(f"\nPerformance Metrics:")
    print(f"  Efficiency: {metrics['efficiency'] * 100:.2f}%")
    print(f"  Throughput: {metrics['throughput']:.3f} frames/s")
    print(f"  Mean Latency: {metrics['mean_latency']:.2f} s")

    return result


def run_comparison(args):
    """Run every protocol on the same configuration and loss pattern."""
    from simulation.simulator import Simulator
    from flowctl.utils.logger import LogLevel

    losses = resolve_losses(args)

    print("=" * 60)
    print("PROTOCOL COMPARISON")
    print("=" * 60)
    print(f"\n  Frames: {args.frames}, Window: {args.window}, "
          f"Losses: {[seq + 1 for seq in losses] or 'none'}\n")
    print(f"  {'Protocol':<18}{'Status':<10}{'Time (s)':>10}{'Sent':>7}"
          f"{'Retx':>7}{'Efficiency':>12}")

    results = {}
    for protocol in PROTOCOLS:
        sim = Simulator(log_level=LogLevel.DEBUG if args.verbose else LogLevel.ERROR)
        result = sim.run(args.frames, args.window, protocol, losses=losses)
        metrics = result.metrics
        print(f"  {protocol:<18}{result.status:<10}{result.simulation_time:>10.2f}"
              f"{metrics['frames_sent']:>7}{metrics['retransmissions']:>7}"
              f"{metrics['efficiency'] * 100:>11.1f}%")
        results[protocol] = result

    return results


def run_protocol_sweep(args):
    """Run the protocol comparison sweep."""
    from simulation.runner import BatchRunner

    print("=" * 60)
    print("PROTOCOL SWEEP")
    print("=" * 60)

    if args.quick:
        runner = BatchRunner(window_sizes=[2, 4], loss_rates=[0.0, 0.2],
                             runs_per_config=2, total_frames=8,
                             output_file=args.output or RESULTS_CSV)
    else:
        runner = BatchRunner(runs_per_config=args.runs,
                             output_file=args.output or RESULTS_CSV)

    print(f"\nConfiguration:")
    print(f"  Protocols: {runner.protocols}")
    print(f"  Window sizes: {runner.window_sizes}")
    print(f"  Loss rates: {runner.loss_rates}")
    print(f"  Runs per config: {runner.runs_per_config}")
    print(f"  Total simulations: {runner.total_runs}")

    print("\nStarting sweep...")
    if args.parallel:
        runner.run_parallel(max_workers=args.workers)
    else:
        runner.run()
    print(f"Completed {runner.total_runs} simulations in {runner.elapsed:.1f}s")

    path = runner.save_results()
    if path:
        print(f"Results saved to: {path}")

    print("\n" + runner.summarize().to_string(index=False))

    best = runner.get_best_configuration()
    print("\n" + "=" * 60)
    print("BEST CONFIGURATION")
    print("=" * 60)
    print(f"  Protocol: {best['protocol']}")
    print(f"  Window Size: {best['window_size']}")
    print(f"  Loss Rate: {best['loss_rate']:.0%}")
    print(f"  Mean Throughput: {best['mean_throughput']:.3f} frames/s")
    print(f"  Mean Efficiency: {best['mean_efficiency'] * 100:.2f}%")

    return runner.results


def generate_timeline(args):
    """Run one simulation and plot its timeline."""
    from simulation.simulator import Simulator
    from visualization.timeline import TimelinePlot

    losses = resolve_losses(args)
    sim = Simulator()
    result = sim.run(args.frames, args.window, args.protocol, losses=losses)

    output = args.output or os.path.join(PLOTS_DIR, f"timeline_{args.protocol}.png")
    path = TimelinePlot(result.events).plot(
        output_file=output,
        title=f"{args.protocol} (N={args.frames}, W={result.config['window_size']})"
    )
    print(f"Timeline saved to: {path}")
    return path


def show_config(args):
    """Display current configuration."""
    print("=" * 60)
    print("SIMULATOR CONFIGURATION")
    print("=" * 60)

    import config as cfg

    print(f"\nTiming (simulated seconds):")
    print(f"  Transit Delay: {cfg.TRANSIT_DELAY}")
    print(f"  Partial Transit Delay: {cfg.PARTIAL_TRANSIT_DELAY}")
    print(f"  Round Trip: {cfg.calculate_round_trip_time()}")
    print(f"  Lossless Stop-and-Wait, {cfg.DEFAULT_TOTAL_FRAMES} frames: "
          f"{cfg.minimum_completion_time(cfg.DEFAULT_TOTAL_FRAMES)}")
    print(f"  Send Stagger: {cfg.SEND_STAGGER} (Go-Back-N: {cfg.GO_BACK_N_STAGGER})")
    print(f"  Poll Interval: {cfg.POLL_INTERVAL}")
    print(f"  Go-Back-N Timeout: {cfg.GO_BACK_N_TIMEOUT}")
    print(f"  Selective Repeat Timeout: {cfg.SELECTIVE_REPEAT_TIMEOUT}")
    print(f"  Time Limit: {cfg.MAX_SIMULATION_TIME}")

    print(f"\nDefaults:")
    print(f"  Protocol: {cfg.DEFAULT_PROTOCOL}")
    print(f"  Frames: {cfg.DEFAULT_TOTAL_FRAMES}")
    print(f"  Window Size: {cfg.DEFAULT_WINDOW_SIZE}")

    print(f"\nProtocol Sweep:")
    print(f"  Protocols: {cfg.PROTOCOLS}")
    print(f"  Window Sizes: {cfg.WINDOW_SIZES}")
    print(f"  Loss Rates: {cfg.LOSS_RATES}")
    print(f"  Runs per config: {cfg.RUNS_PER_CONFIGURATION}")
    print(f"  Total simulations: {len(cfg.PROTOCOLS) * len(cfg.WINDOW_SIZES) * len(cfg.LOSS_RATES) * cfg.RUNS_PER_CONFIGURATION}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Flow Control ARQ Protocol Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Go-Back-N with the first frame lost:
    python main.py --single --protocol go-back-n --frames 4 --window 2 --loss 0

  All protocols, 20% random loss:
    python main.py --compare --frames 10 --window 4 --loss-rate 0.2 --seed 7

  Quick protocol sweep (for testing):
    python main.py --sweep --quick

  Timeline plot:
    python main.py --visualize --protocol selective-repeat --frames 3 --window 3 --loss 0

  Show configuration:
    python main.py --config
        """
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--single', action='store_true',
                      help='Run single simulation')
    mode.add_argument('--compare', action='store_true',
                      help='Run all protocols on the same configuration')
    mode.add_argument('--sweep', action='store_true',
                      help='Run protocol comparison sweep')
    mode.add_argument('--visualize', action='store_true',
                      help='Plot the timeline of one run')
    mode.add_argument('--config', action='store_true',
                      help='Show configuration')

    # Run options
    parser.add_argument('--protocol', choices=PROTOCOLS, default=DEFAULT_PROTOCOL,
                        help=f'ARQ protocol (default: {DEFAULT_PROTOCOL})')
    parser.add_argument('--frames', '-n', type=int, default=DEFAULT_TOTAL_FRAMES,
                        help=f'Number of frames (default: {DEFAULT_TOTAL_FRAMES})')
    parser.add_argument('--window', '-w', type=int, default=DEFAULT_WINDOW_SIZE,
                        help=f'Window size (default: {DEFAULT_WINDOW_SIZE})')
    parser.add_argument('--loss', '-l', type=int, action='append',
                        help='0-based frame to drop on its next transmission (repeatable)')
    parser.add_argument('--loss-rate', type=float, default=0.0,
                        help='Random per-frame loss probability (default: 0)')
    parser.add_argument('--seed', '-s', type=int, default=RNG_SEED_BASE,
                        help=f'Random seed (default: {RNG_SEED_BASE})')

    # Sweep options
    parser.add_argument('--runs', '-r', type=int,
                        default=RUNS_PER_CONFIGURATION,
                        help=f'Runs per configuration (default: {RUNS_PER_CONFIGURATION})')
    parser.add_argument('--parallel', action='store_true',
                        help='Run simulations in parallel')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel workers')
    parser.add_argument('--quick', action='store_true',
                        help='Quick test with reduced parameters')

    # Output options
    parser.add_argument('--output', '-o', type=str,
                        help='Output file path')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args(argv)

    try:
        if args.single:
            run_single_simulation(args)
        elif args.compare:
            run_comparison(args)
        elif args.sweep:
            run_protocol_sweep(args)
        elif args.visualize:
            generate_timeline(args)
        elif args.config:
            show_config(args)
    except ValueError as e:
        # ConfigurationError and invalid loss rates
        parser.error(str(e))


if __name__ == "__main__":
    main()
