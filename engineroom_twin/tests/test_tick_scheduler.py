"""
Unit tests for the wall-clock tick scheduler and the threaded clock.

These tests use short periods and generous timeouts so they stay
reliable on loaded CI machines: they assert ordering guarantees
(no tick after stop/pause/reset), not exact tick counts.
"""

import random
import threading
import time

import pytest

from engineroom_twin.core.simulation.simulation_clock import ClockConfig, SimulationClock
from engineroom_twin.core.simulation.tick_scheduler import TickScheduler


def wait_for(predicate, timeout: float = 5.0, interval: float = 0.002) -> bool:
    """Poll `predicate` until true or timeout; returns its final value."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class Counter:
    def __init__(self, limit=None, fail_at=None):
        self.count = 0
        self.limit = limit
        self.fail_at = fail_at
        self.lock = threading.Lock()

    def __call__(self) -> bool:
        with self.lock:
            self.count += 1
            if self.fail_at is not None and self.count >= self.fail_at:
                raise RuntimeError("tick failure")
            return self.limit is None or self.count < self.limit


class TestTickScheduler:
    """Test suite for TickScheduler."""

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            TickScheduler(lambda: True, period=0.0)

    def test_ticks_while_active(self):
        counter = Counter()
        scheduler = TickScheduler(counter, period=0.002)
        scheduler.start()
        try:
            assert wait_for(lambda: counter.count >= 5)
            assert scheduler.is_active
        finally:
            scheduler.stop()

    def test_no_tick_after_stop(self):
        """Once stop() returns the callback is never invoked again."""
        counter = Counter()
        scheduler = TickScheduler(counter, period=0.001)
        scheduler.start()
        wait_for(lambda: counter.count >= 3)
        scheduler.stop()

        stopped_at = counter.count
        time.sleep(0.05)

        assert counter.count == stopped_at
        assert not scheduler.is_active

    def test_start_is_idempotent(self):
        """A second start() does not spawn a second loop thread."""
        scheduler = TickScheduler(Counter(), period=0.005, name="idempotent-start")
        scheduler.start()
        scheduler.start()
        try:
            loops = [t for t in threading.enumerate() if t.name == "idempotent-start"]
            assert len(loops) == 1
        finally:
            scheduler.stop()

    def test_callback_false_ends_loop(self):
        counter = Counter(limit=3)
        scheduler = TickScheduler(counter, period=0.001)
        scheduler.start()

        assert wait_for(lambda: not scheduler.is_active)
        assert counter.count == 3
        scheduler.stop()

    def test_restart_after_self_stop(self):
        counter = Counter(limit=2)
        scheduler = TickScheduler(counter, period=0.001)
        scheduler.start()
        assert wait_for(lambda: not scheduler.is_active)

        counter.limit = None
        scheduler.start()
        try:
            assert wait_for(lambda: counter.count >= 5)
        finally:
            scheduler.stop()

    def test_callback_exception_reported(self):
        errors = []
        scheduler = TickScheduler(
            Counter(fail_at=2), period=0.001, on_error=errors.append
        )
        scheduler.start()

        assert wait_for(lambda: len(errors) == 1)
        assert isinstance(errors[0], RuntimeError)
        assert wait_for(lambda: not scheduler.is_active)
        scheduler.stop()

    def test_start_during_final_tick_keeps_loop(self):
        """A start() that lands before the loop acts on a False keeps it alive."""
        calls = []

        def callback():
            calls.append(1)
            if len(calls) == 2:
                scheduler.start()
                return False
            return True

        scheduler = TickScheduler(callback, period=0.001)
        scheduler.start()
        try:
            assert wait_for(lambda: len(calls) >= 5)
            assert scheduler.is_active
        finally:
            scheduler.stop()

    def test_stop_without_start(self):
        scheduler = TickScheduler(Counter(), period=0.01)
        scheduler.stop()
        scheduler.stop()
        assert not scheduler.is_active


class TestThreadedClock:
    """SimulationClock driven by its wall-clock loop."""

    @pytest.fixture
    def fast_clock(self):
        clock = SimulationClock(ClockConfig(real_time_factor=100.0))
        yield clock
        clock.reset()

    def test_play_advances_time(self, fast_clock):
        fast_clock.play()
        assert wait_for(lambda: fast_clock.get_snapshot().time >= 1.0)
        assert fast_clock.is_running()

    def test_pause_stops_ticking(self, fast_clock):
        fast_clock.play()
        wait_for(lambda: fast_clock.get_snapshot().time >= 0.5)
        fast_clock.pause()

        paused = fast_clock.get_snapshot()
        time.sleep(0.05)

        assert not fast_clock.is_running()
        assert fast_clock.get_snapshot() == paused

    def test_resume_after_pause(self, fast_clock):
        fast_clock.play()
        wait_for(lambda: fast_clock.get_snapshot().time >= 0.5)
        fast_clock.pause()
        paused_time = fast_clock.get_snapshot().time

        fast_clock.play()
        assert wait_for(lambda: fast_clock.get_snapshot().time > paused_time + 0.5)

    def test_reset_while_running(self, fast_clock):
        """After reset() returns the loop is gone and time stays at zero."""
        initial = fast_clock.get_snapshot()
        fast_clock.play()
        wait_for(lambda: fast_clock.get_snapshot().time >= 0.5)
        fast_clock.reset()

        time.sleep(0.05)
        assert not fast_clock.is_running()
        assert fast_clock.get_snapshot() == initial

    def test_auto_stop_in_real_time(self):
        clock = SimulationClock(ClockConfig(real_time_factor=1000.0))
        clock.play()
        try:
            assert wait_for(lambda: not clock.is_running(), timeout=30.0)
            assert clock.get_snapshot().time == 60.0
        finally:
            clock.reset()

    def test_run_rejected_while_loop_active(self, fast_clock):
        fast_clock.play()
        with pytest.raises(RuntimeError):
            fast_clock.run(duration=1.0)


def play_while_stopping(clock):
    """
    Make the next scheduler stop() launch a concurrent play() just before
    the real stop runs. Returns (player thread, list of blocked flags).
    """
    scheduler = clock._scheduler
    real_stop = scheduler.stop
    player = threading.Thread(target=clock.play)
    blocked = []

    def stop_with_play_pending(timeout=None):
        del scheduler.stop
        player.start()
        player.join(0.05)
        blocked.append(player.is_alive())
        real_stop(timeout)

    scheduler.stop = stop_with_play_pending
    return player, blocked


class TestLifecycleInterleaving:
    """play/pause/reset issued from several threads at once."""

    @pytest.fixture
    def fast_clock(self):
        clock = SimulationClock(ClockConfig(real_time_factor=100.0))
        yield clock
        clock.reset()

    def assert_running_implies_advancing(self, clock):
        before = clock.get_snapshot()
        if clock.is_running():
            # Either the loop ticks forward or it auto-stops at the end
            assert wait_for(
                lambda: clock.get_snapshot().time > before.time or not clock.is_running()
            )
        else:
            time.sleep(0.05)
            assert not clock.is_running()
            assert clock.get_snapshot() == before

    def test_play_during_pause_waits_and_ticks(self, fast_clock):
        """A play() racing a pause() runs after it and restarts the loop."""
        fast_clock.play()
        wait_for(lambda: fast_clock.get_snapshot().time >= 0.3)

        player, blocked = play_while_stopping(fast_clock)
        fast_clock.pause()
        player.join(5.0)

        assert blocked == [True]
        assert fast_clock.is_running()
        paused_time = fast_clock.get_snapshot().time
        assert wait_for(lambda: fast_clock.get_snapshot().time > paused_time + 0.3)

    def test_play_during_reset_waits_and_ticks(self, fast_clock):
        fast_clock.play()
        wait_for(lambda: fast_clock.get_snapshot().time >= 0.3)

        player, blocked = play_while_stopping(fast_clock)
        fast_clock.reset()
        player.join(5.0)

        assert blocked == [True]
        assert fast_clock.is_running()
        assert wait_for(lambda: fast_clock.get_snapshot().time >= 0.3)

    def test_concurrent_lifecycle_calls(self, fast_clock):
        """After a burst of mixed calls the flag matches the loop."""
        errors = []

        def hammer(seed):
            rng = random.Random(seed)
            operations = (fast_clock.play, fast_clock.pause, fast_clock.reset)
            try:
                for _ in range(40):
                    rng.choice(operations)()
                    time.sleep(rng.uniform(0.0, 0.002))
            except Exception as e:
                errors.append(e)

        workers = [threading.Thread(target=hammer, args=(seed,)) for seed in range(4)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(30.0)

        assert not errors
        self.assert_running_implies_advancing(fast_clock)

        fast_clock.pause()
        fast_clock.play()
        self.assert_running_implies_advancing(fast_clock)

    def test_play_racing_auto_stop(self):
        """play() right as the loop auto-stops never leaves a frozen running clock."""
        for _ in range(5):
            clock = SimulationClock(ClockConfig(real_time_factor=1000.0))
            try:
                clock.play()
                wait_for(lambda: clock.get_snapshot().time >= 59.5, timeout=30.0)
                for _ in range(20):
                    clock.play()
                self.assert_running_implies_advancing(clock)
            finally:
                clock.reset()
