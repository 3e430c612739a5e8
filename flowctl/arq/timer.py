"""
Timer Service and Cooperative Frame Tasks

This module provides the single source of simulated time. Every delay in
the simulation (channel transit, send stagger, retransmission timeout) is a
timer registration on a TimerService, and every frame journey runs as a
FrameTask that suspends on those timers.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Generator, List, Optional, Set
from enum import Enum
import heapq
import itertools


class TimerState(Enum):
    """Timer state enumeration."""
    PENDING = 0
    FIRED = 1
    CANCELLED = 2


@dataclass(order=True)
class TimerEvent:
    """Timer event for priority queue management."""
    expiry_time: float
    order: int  # Registration order breaks ties
    handle: "TimerHandle" = field(compare=False)


class TimerHandle:
    """
    Cancellable handle for one timer registration.

    Attributes:
        expiry_time: Absolute simulated time the timer fires at
        name: Optional label used in logs
        state: Current timer state
    """

    def __init__(
        self,
        service: "TimerService",
        expiry_time: float,
        callback: Callable[[], None],
        name: Optional[str] = None
    ):
        self._service = service
        self._callback = callback
        self.expiry_time = expiry_time
        self.name = name
        self.state = TimerState.PENDING

    @property
    def pending(self) -> bool:
        return self.state == TimerState.PENDING

    @property
    def cancelled(self) -> bool:
        return self.state == TimerState.CANCELLED

    @property
    def fired(self) -> bool:
        return self.state == TimerState.FIRED

    def cancel(self) -> bool:
        """
        Cancel the timer.

        Returns:
            True if the timer was pending and will now never fire
        """
        if self.state != TimerState.PENDING:
            return False
        self.state = TimerState.CANCELLED
        self._service.timers_cancelled += 1
        return True

    def _fire(self):
        self.state = TimerState.FIRED
        self._callback()

    def __repr__(self) -> str:
        return (f"TimerHandle(name={self.name!r}, expiry={self.expiry_time:.3f}, "
                f"state={self.state.name})")


class TimerService:
    """
    Discrete-event clock.

    Uses a priority queue (min-heap) of timer events. Cancelled timers are
    left in the heap and filtered when popped.

    Attributes:
        now: Current simulated time in seconds
    """

    def __init__(self, start_time: float = 0.0):
        """
        Initialize timer service.

        Args:
            start_time: Initial simulated time
        """
        self.now = start_time
        self._queue: List[TimerEvent] = []
        self._order = itertools.count()

        # Statistics
        self.timers_started = 0
        self.timers_fired = 0
        self.timers_cancelled = 0

    def after(
        self,
        duration: float,
        callback: Callable[[], None],
        name: Optional[str] = None
    ) -> TimerHandle:
        """
        Register a callback to fire once after a delay.

        Args:
            duration: Delay in simulated seconds (non-negative)
            callback: Called with no arguments when the timer fires
            name: Optional label

        Returns:
            Cancellable timer handle
        """
        if duration < 0:
            raise ValueError(f"Timer duration must be non-negative, got {duration}")

        handle = TimerHandle(self, self.now + duration, callback, name)
        heapq.heappush(
            self._queue,
            TimerEvent(expiry_time=handle.expiry_time, order=next(self._order), handle=handle)
        )
        self.timers_started += 1
        return handle

    def get_next_expiry(self) -> Optional[float]:
        """
        Get the time of the next live timer.

        Returns:
            Next expiry time or None if nothing is pending
        """
        while self._queue:
            event = self._queue[0]
            if event.handle.pending:
                return event.expiry_time
            heapq.heappop(self._queue)
        return None

    def run_next(self) -> bool:
        """
        Fire the next pending timer, advancing the clock to its expiry.

        Returns:
            True if a timer fired, False if the queue is exhausted
        """
        if self.get_next_expiry() is None:
            return False

        event = heapq.heappop(self._queue)
        self.now = event.expiry_time
        self.timers_fired += 1
        event.handle._fire()
        return True

    def run(self, until: Optional[float] = None, max_events: Optional[int] = None) -> int:
        """
        Fire timers in order.

        Args:
            until: Stop before timers expiring after this time; the clock
                is then advanced to exactly this time
            max_events: Stop after this many timers fired

        Returns:
            Number of timers fired
        """
        fired = 0
        while max_events is None or fired < max_events:
            next_expiry = self.get_next_expiry()
            if next_expiry is None:
                break
            if until is not None and next_expiry > until:
                break
            self.run_next()
            fired += 1

        if until is not None and until > self.now:
            self.now = until
        return fired

    def cancel_all(self) -> int:
        """
        Cancel every pending timer.

        Returns:
            Number of timers cancelled
        """
        cancelled = 0
        for event in self._queue:
            if event.handle.cancel():
                cancelled += 1
        self._queue.clear()
        return cancelled

    @property
    def pending_count(self) -> int:
        """Get number of pending timers."""
        return sum(1 for e in self._queue if e.handle.pending)

    def get_statistics(self) -> dict:
        """Get timer statistics."""
        return {
            'now': self.now,
            'timers_started': self.timers_started,
            'timers_fired': self.timers_fired,
            'timers_cancelled': self.timers_cancelled,
            'pending_timers': self.pending_count
        }


# A task routine yields a delay in seconds or another FrameTask to wait on
TaskRoutine = Generator[Any, Any, Any]


class FrameTask:
    """
    Cooperative task driven by a TimerService.

    The wrapped generator runs until its next ``yield``. Yielding a number
    suspends the task for that many simulated seconds; yielding another
    FrameTask suspends it until that task is done and sends back its result.
    A step always runs to its next suspension, so steps of different tasks
    never interleave.

    Attributes:
        name: Task label
        done: True once the routine returned or the task was cancelled
        cancelled: True if the task was cancelled
        result: Return value of the routine
    """

    def __init__(self, timers: TimerService, routine: TaskRoutine, name: str = "task"):
        self.timers = timers
        self.routine = routine
        self.name = name

        self.done = False
        self.cancelled = False
        self.result: Any = None

        self._handle: Optional[TimerHandle] = None
        self._stepping = False
        self._callbacks: List[Callable[["FrameTask"], None]] = []

    def start(self) -> "FrameTask":
        """Run the first step immediately."""
        self._step()
        return self

    def add_done_callback(self, callback: Callable[["FrameTask"], None]):
        """Call ``callback(task)`` once the task is done (now, if already done)."""
        if self.done:
            callback(self)
        else:
            self._callbacks.append(callback)

    def cancel(self) -> bool:
        """
        Cancel the task.

        Its pending timer is cancelled and the routine is closed, so no code
        after the current suspension point ever runs.

        Returns:
            True if the task was still running
        """
        if self.done:
            return False

        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if not self._stepping:
            self.routine.close()
        self._finish(None)
        return True

    def _step(self, value: Any = None):
        self._handle = None
        if self.done:
            return

        self._stepping = True
        try:
            yielded = self.routine.send(value)
        except StopIteration as stop:
            if not self.done:
                self._finish(stop.value)
            return
        finally:
            self._stepping = False

        if self.done:
            # Cancelled from inside its own step
            self.routine.close()
            return

        self._suspend(yielded)

    def _suspend(self, yielded: Any):
        if isinstance(yielded, FrameTask):
            if yielded.done:
                self._handle = self.timers.after(
                    0.0, lambda: self._step(yielded.result), name=self.name
                )
            else:
                yielded.add_done_callback(self._resume_from)
        else:
            self._handle = self.timers.after(float(yielded), self._step, name=self.name)

    def _resume_from(self, task: "FrameTask"):
        if not self.done:
            self._step(task.result)

    def _finish(self, result: Any):
        self.done = True
        self.result = result
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(self)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "done" if self.done else "running"
        return f"FrameTask({self.name!r}, {state})"


class TaskGroup:
    """
    Set of live tasks owned by one run.

    Finished tasks remove themselves; ``cancel_all`` discards everything
    still in flight so no stale task mutates state after a reset.
    """

    def __init__(self, timers: TimerService):
        self.timers = timers
        self.tasks: Set[FrameTask] = set()
        self.total_spawned = 0

    def spawn(self, routine: TaskRoutine, name: str = "task") -> FrameTask:
        """
        Create, register and start a task.

        Args:
            routine: Generator to drive
            name: Task label

        Returns:
            The started task
        """
        task = FrameTask(self.timers, routine, name)
        self.tasks.add(task)
        self.total_spawned += 1
        task.add_done_callback(self.tasks.discard)
        return task.start()

    def cancel_all(self) -> int:
        """
        Cancel every live task.

        Returns:
            Number of tasks cancelled
        """
        cancelled = 0
        for task in list(self.tasks):
            if task.cancel():
                cancelled += 1
        self.tasks.clear()
        return cancelled

    def __len__(self) -> int:
        return len(self.tasks)
