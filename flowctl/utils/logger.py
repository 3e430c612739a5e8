"""
Simulation Logger

This module provides logging utilities for the simulation,
with configurable verbosity levels and structured output.
"""

from typing import Optional, TextIO
from datetime import datetime
from enum import IntEnum
import os

from config import DEFAULT_LOG_LEVEL
from .events import Event, EventKind


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


class SimulationLogger:
    """
    Logger for simulation events.

    Provides structured logging with simulated timestamps and categories.
    Frame numbers in messages are 1-based, as shown to the operator.

    Attributes:
        name: Logger name
        level: Minimum log level
        file: Optional file for logging
    """

    # Color codes for terminal output
    COLORS = {
        LogLevel.DEBUG: '\033[36m',     # Cyan
        LogLevel.INFO: '\033[32m',      # Green
        LogLevel.WARNING: '\033[33m',   # Yellow
        LogLevel.ERROR: '\033[31m',     # Red
        LogLevel.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(
        self,
        name: str = "Simulator",
        level: int = DEFAULT_LOG_LEVEL,
        log_file: Optional[str] = None,
        use_colors: bool = True,
        include_timestamp: bool = True
    ):
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Minimum log level
            log_file: Optional file path for logging
            use_colors: Use ANSI colors in output
            include_timestamp: Include timestamps in log messages
        """
        self.name = name
        self.level = level
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp

        self.file: Optional[TextIO] = None
        if log_file:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self.file = open(log_file, 'w')

        # Simulation time tracking
        self.sim_time: Optional[float] = None

        # Message counts
        self.message_counts = {level: 0 for level in LogLevel}

    def set_sim_time(self, time: float):
        """Set current simulation time for log messages."""
        self.sim_time = time

    def _format_message(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ) -> str:
        """Format a log message."""
        parts = []

        if self.include_timestamp:
            if self.sim_time is not None:
                parts.append(f"[{self.sim_time:10.3f}s]")
            else:
                parts.append(f"[{datetime.now().strftime('%H:%M:%S.%f')[:-3]}]")

        level_str = level.name.ljust(8)
        if self.use_colors:
            level_str = f"{self.COLORS[level]}{level_str}{self.RESET}"
        parts.append(level_str)

        parts.append(f"[{self.name}]")

        if category:
            parts.append(f"[{category}]")

        parts.append(message)

        return " ".join(parts)

    def _log(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ):
        """Log a message."""
        if level < self.level:
            return

        self.message_counts[level] += 1
        formatted = self._format_message(level, message, category)

        print(formatted)

        if self.file:
            # Strip color codes for file
            clean = formatted
            for color in self.COLORS.values():
                clean = clean.replace(color, '')
            clean = clean.replace(self.RESET, '')
            self.file.write(clean + '\n')
            self.file.flush()

    def debug(self, message: str, category: Optional[str] = None):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, category)

    def info(self, message: str, category: Optional[str] = None):
        """Log info message."""
        self._log(LogLevel.INFO, message, category)

    def warning(self, message: str, category: Optional[str] = None):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, category)

    def error(self, message: str, category: Optional[str] = None):
        """Log error message."""
        self._log(LogLevel.ERROR, message, category)

    def critical(self, message: str, category: Optional[str] = None):
        """Log critical message."""
        self._log(LogLevel.CRITICAL, message, category)

    # Convenience methods for protocol events
    def frame_sent(self, seq_num: int, retransmission: bool = False):
        """Log frame sent event."""
        verb = "Retransmitting" if retransmission else "Sending"
        self.info(f"{verb} Frame {seq_num + 1}", "Sender")

    def frame_lost(self, seq_num: int):
        """Log frame dropped by the channel."""
        self.error(f"Frame {seq_num + 1} LOST!", "Channel")

    def frame_arrived(self, seq_num: int):
        self.debug(f"Frame {seq_num + 1} received", "Receiver")

    def frame_delivered(self, seq_num: int):
        """Log in-order delivery."""
        self.info(f"Delivering Frame {seq_num + 1}", "Receiver")

    def frame_discarded(self, seq_num: int, expected: int):
        """Log out-of-order discard (Go-Back-N)."""
        self.warning(f"Discarding Frame {seq_num + 1} (Expected {expected + 1})", "Receiver")

    def frame_buffered(self, seq_num: int):
        self.info(f"Buffering Out-of-Order Frame {seq_num + 1}", "Receiver")

    def frame_duplicate(self, seq_num: int):
        self.info(f"Duplicate Frame {seq_num + 1}. Re-ACKing.", "Receiver")

    def ack_sent(self, ack_num: int):
        """Log ACK sent event."""
        self.debug(f"Sending ACK {ack_num + 1}", "Receiver")

    def ack_received(self, ack_num: int):
        """Log ACK received event."""
        self.info(f"ACK Received for Frame {ack_num + 1}", "Sender")

    def timeout(self, seq_num: int):
        """Log timeout event."""
        self.warning(f"Timeout for Frame {seq_num + 1}", "TIMEOUT")

    def window_update(self, base: int, upper_bound: int):
        """Log window update, 1-based inclusive bounds."""
        self.debug(f"Window: [{base + 1} .. {upper_bound}]", "WINDOW")

    def status(self, text: str):
        if text.startswith("Warning"):
            self.warning(text, "STATUS")
        else:
            self.info(text, "STATUS")

    def simulation_start(self, params: dict):
        """Log simulation start."""
        param_str = ", ".join(f"{k}={v}" for k, v in params.items())
        self.info(f"Simulation started: {param_str}", "SIM")

    def simulation_end(self, status: str, sim_time: float):
        """Log simulation end."""
        self.info(f"Simulation {status} at t={sim_time:.3f}s", "SIM")

    def log_event(self, event: Event):
        """
        Translate one engine event into a log line.

        Meant to be subscribed to an EventBus.
        """
        self.set_sim_time(event.time)
        kind = event.kind

        if kind == EventKind.FRAME_SENT:
            self.frame_sent(event.seq, event.retransmission)
        elif kind == EventKind.FRAME_LOST:
            self.frame_lost(event.seq)
        elif kind == EventKind.FRAME_DELIVERED_TO_RECEIVER:
            self.frame_arrived(event.seq)
        elif kind == EventKind.FRAME_DELIVERED:
            self.frame_delivered(event.seq)
        elif kind == EventKind.FRAME_DISCARDED:
            self.frame_discarded(event.seq, event.expected)
        elif kind == EventKind.FRAME_BUFFERED:
            self.frame_buffered(event.seq)
        elif kind == EventKind.FRAME_DUPLICATE:
            self.frame_duplicate(event.seq)
        elif kind == EventKind.ACK_SENT:
            self.ack_sent(event.seq)
        elif kind == EventKind.ACK_RECEIVED:
            self.ack_received(event.seq)
        elif kind == EventKind.TIMEOUT:
            self.timeout(event.seq)
        elif kind == EventKind.WINDOW_CHANGED:
            self.window_update(event.base, event.upper_bound)
        elif kind == EventKind.STATUS_CHANGED:
            self.status(event.text)
        elif kind == EventKind.RUN_FINISHED:
            self.simulation_end("finished", event.time)
        elif kind == EventKind.RUN_ABORTED:
            self.warning(f"Simulation aborted: {event.text}", "SIM")

    def get_summary(self) -> dict:
        """Get logging summary."""
        return {
            'message_counts': dict(self.message_counts),
            'total_messages': sum(self.message_counts.values())
        }

    def close(self):
        """Close log file if open."""
        if self.file:
            self.file.close()
            self.file = None

    def __del__(self):
        """Cleanup on deletion."""
        self.close()
