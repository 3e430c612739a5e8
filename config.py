"""
Configuration file for the Flow Control ARQ Simulator.
Contains the fixed baseline timing and run parameters for all four protocols.
"""

import os

# =============================================================================
# CHANNEL TIMING (simulated seconds)
# =============================================================================

# Full one-way transit of a frame or ACK across the channel
TRANSIT_DELAY = 3.5

# A dropped frame travels partway before it vanishes
PARTIAL_TRANSIT_DELAY = TRANSIT_DELAY / 2

# =============================================================================
# SENDER TIMING (simulated seconds)
# =============================================================================

# Spacing between consecutive transmissions inside one window
SEND_STAGGER = 0.5
GO_BACK_N_STAGGER = TRANSIT_DELAY / 2

# Idle re-check interval of the sender loops
POLL_INTERVAL = 0.1

# Retransmission timeouts, must exceed one round trip (2 x TRANSIT_DELAY)
GO_BACK_N_TIMEOUT = 8.0
SELECTIVE_REPEAT_TIMEOUT = 8.0

# =============================================================================
# PROTOCOLS
# =============================================================================

STOP_AND_WAIT = "stop-and-wait"
SLIDING_WINDOW = "sliding-window"
GO_BACK_N = "go-back-n"
SELECTIVE_REPEAT = "selective-repeat"

PROTOCOLS = [STOP_AND_WAIT, SLIDING_WINDOW, GO_BACK_N, SELECTIVE_REPEAT]

# Defaults offered to the operator
DEFAULT_PROTOCOL = STOP_AND_WAIT
DEFAULT_TOTAL_FRAMES = 10
DEFAULT_WINDOW_SIZE = 4

# =============================================================================
# BATCH COMPARISON CONFIGURATION
# =============================================================================

# Window sizes to evaluate
WINDOW_SIZES = [1, 2, 4, 8]

# Fraction of frames scheduled for loss on first transmission
LOSS_RATES = [0.0, 0.1, 0.2, 0.3]

# Frames per run and runs per (protocol, W, loss rate)
SWEEP_TOTAL_FRAMES = 20
RUNS_PER_CONFIGURATION = 5

# =============================================================================
# SIMULATION SETTINGS
# =============================================================================

# Default RNG seed base (actual seed = base + run_id)
RNG_SEED_BASE = 42

# Simulated time limit (seconds) - failsafe against livelock
MAX_SIMULATION_TIME = 3600.0

# Logging verbosity levels
LOG_LEVEL_DEBUG = 0
LOG_LEVEL_INFO = 1
LOG_LEVEL_WARNING = 2
LOG_LEVEL_ERROR = 3

DEFAULT_LOG_LEVEL = LOG_LEVEL_WARNING

# =============================================================================
# OUTPUT PATHS
# =============================================================================

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
OUTPUT_DIR = os.path.join(BASE_DIR, "data", "output")
PLOTS_DIR = os.path.join(OUTPUT_DIR, "plots")

RESULTS_CSV = os.path.join(OUTPUT_DIR, "results.csv")

# =============================================================================
# DERIVED PARAMETERS
# =============================================================================

def calculate_round_trip_time(transit_delay=TRANSIT_DELAY):
    """Round trip of a delivered frame and its ACK."""
    return 2 * transit_delay


def minimum_completion_time(total_frames, transit_delay=TRANSIT_DELAY):
    """
    Lower bound on a lossless Stop-and-Wait run.

    Every frame costs one full round trip before the next may leave.
    """
    return total_frames * calculate_round_trip_time(transit_delay)


if __name__ == "__main__":
    print("=" * 60)
    print("FLOW CONTROL ARQ SIMULATOR - CONFIGURATION")
    print("=" * 60)
    print(f"\nChannel:")
    print(f"  Transit delay: {TRANSIT_DELAY:.2f} s")
    print(f"  Partial transit (loss): {PARTIAL_TRANSIT_DELAY:.2f} s")
    print(f"  Round trip: {calculate_round_trip_time():.2f} s")

    print(f"\nSender:")
    print(f"  Stagger: {SEND_STAGGER:.2f} s (Go-Back-N {GO_BACK_N_STAGGER:.2f} s)")
    print(f"  Go-Back-N timeout: {GO_BACK_N_TIMEOUT:.2f} s")
    print(f"  Selective Repeat timeout: {SELECTIVE_REPEAT_TIMEOUT:.2f} s")

    print(f"\nBatch comparison:")
    print(f"  Protocols: {PROTOCOLS}")
    print(f"  Window sizes: {WINDOW_SIZES}")
    print(f"  Loss rates: {LOSS_RATES}")
    print(f"  Runs per config: {RUNS_PER_CONFIGURATION}")
