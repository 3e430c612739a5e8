"""
Unit tests for the timer service and cooperative frame tasks.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flowctl.arq.timer import TimerService, FrameTask, TaskGroup


class TestTimerService:
    """Tests for TimerService class."""

    def test_fires_in_time_order(self):
        """Test timers fire in expiry order."""
        timers = TimerService()
        fired = []

        timers.after(3.0, lambda: fired.append("c"))
        timers.after(1.0, lambda: fired.append("a"))
        timers.after(2.0, lambda: fired.append("b"))
        timers.run()

        assert fired == ["a", "b", "c"]
        assert timers.now == 3.0

    def test_ties_fire_in_registration_order(self):
        """Test timers with equal expiry fire in registration order."""
        timers = TimerService()
        fired = []

        for name in "xyz":
            timers.after(1.0, lambda n=name: fired.append(n))
        timers.run()

        assert fired == ["x", "y", "z"]

    def test_cancel(self):
        """Test cancelled timers never fire."""
        timers = TimerService()
        fired = []

        handle = timers.after(1.0, lambda: fired.append(1))
        assert handle.cancel()
        assert not handle.cancel()
        timers.run()

        assert fired == []
        assert handle.cancelled
        assert timers.get_next_expiry() is None

    def test_run_until_advances_clock(self):
        """Test run(until) stops before later timers and moves the clock."""
        timers = TimerService()
        fired = []

        timers.after(1.0, lambda: fired.append(1))
        handle = timers.after(5.0, lambda: fired.append(5))

        assert timers.run(until=2.0) == 1
        assert timers.now == 2.0
        assert handle.pending
        assert timers.get_next_expiry() == pytest.approx(5.0)
        assert fired == [1]

    def test_cancel_all(self):
        """Test cancel_all clears every pending timer."""
        timers = TimerService()
        for delay in (1.0, 2.0, 3.0):
            timers.after(delay, lambda: None)

        assert timers.cancel_all() == 3
        assert timers.pending_count == 0
        assert not timers.run_next()

    def test_negative_duration_rejected(self):
        """Test negative durations are rejected."""
        timers = TimerService()

        with pytest.raises(ValueError):
            timers.after(-1.0, lambda: None)


class TestFrameTask:
    """Tests for FrameTask class."""

    def test_delays(self):
        """Test yielded numbers suspend for that long."""
        timers = TimerService()
        seen = []

        def routine():
            seen.append(timers.now)
            yield 1.0
            seen.append(timers.now)
            yield 2.0
            seen.append(timers.now)
            return "done"

        task = FrameTask(timers, routine(), "t").start()
        timers.run()

        assert seen == [0.0, 1.0, 3.0]
        assert task.done
        assert task.result == "done"

    def test_join(self):
        """Test yielding a task waits for it and returns its result."""
        timers = TimerService()

        def child():
            yield 2.0
            return 42

        def parent():
            value = yield FrameTask(timers, child(), "child").start()
            return (value, timers.now)

        task = FrameTask(timers, parent(), "parent").start()
        timers.run()

        assert task.result == (42, 2.0)

    def test_cancel_stops_routine(self):
        """Test no code after the suspension runs once cancelled."""
        timers = TimerService()
        reached = []

        def routine():
            yield 1.0
            reached.append(True)

        task = FrameTask(timers, routine(), "t").start()
        assert task.cancel()
        timers.run()

        assert reached == []
        assert task.cancelled
        assert not task.cancel()

    def test_done_callback(self):
        """Test done callbacks run once the task finishes."""
        timers = TimerService()
        done = []

        def routine():
            yield 1.0

        task = FrameTask(timers, routine(), "t").start()
        task.add_done_callback(lambda t: done.append(t.name))
        timers.run()
        task.add_done_callback(lambda t: done.append("late"))

        assert done == ["t", "late"]


class TestTaskGroup:
    """Tests for TaskGroup class."""

    def test_finished_tasks_leave_group(self):
        """Test tasks remove themselves when done."""
        timers = TimerService()
        group = TaskGroup(timers)

        def routine(delay):
            yield delay

        group.spawn(routine(1.0), "a")
        group.spawn(routine(2.0), "b")
        assert len(group) == 2

        timers.run(until=1.5)
        assert len(group) == 1
        assert group.total_spawned == 2

    def test_cancel_all(self):
        """Test cancel_all discards every live task and its timers."""
        timers = TimerService()
        group = TaskGroup(timers)
        reached = []

        def routine():
            yield 1.0
            reached.append(True)

        for _ in range(3):
            group.spawn(routine(), "t")

        assert group.cancel_all() == 3
        timers.run()

        assert len(group) == 0
        assert reached == []
