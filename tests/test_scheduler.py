"""
Tests for periodic task scheduling and counters.

Run with: python -m pytest tests/test_scheduler.py -v
"""

import threading
import time

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from hybridopt.core.counters import AtomicCounter
from hybridopt.core.errors import TaskCancelled
from hybridopt.core.scheduler import ManualScheduler, ThreadScheduler
from hybridopt.core.signals import StaticSignals
from hybridopt.evolution.engine import EvolutionaryOptimizer, EvolutionConfig


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestAtomicCounter:
    """Tests for AtomicCounter."""

    def test_increment(self):
        counter = AtomicCounter()
        assert counter.increment() == 1
        assert counter.increment(5) == 6
        assert counter.value == 6
        assert int(counter) == 6

    def test_negative_increment(self):
        with pytest.raises(ValueError):
            AtomicCounter().increment(-1)

    def test_concurrent_increments(self):
        counter = AtomicCounter()

        def bump():
            for _ in range(1000):
                counter.increment()

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert counter.value == 8000


class TestManualScheduler:
    """Tests for the virtual-clock scheduler."""

    def test_runs_at_each_interval(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.schedule('tick', 1.0, lambda: calls.append(scheduler.now))

        executed = scheduler.advance(3.0)

        assert executed == 3
        assert calls == [1.0, 2.0, 3.0]
        assert scheduler.now == 3.0

    def test_initial_delay(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.schedule('now', 10.0, lambda: calls.append(scheduler.now), initial_delay=0.0)

        assert scheduler.run_pending() == 1
        scheduler.advance(25.0)

        assert calls == [0.0, 10.0, 20.0]

    def test_small_intervals_do_not_drift(self):
        scheduler = ManualScheduler()
        task = scheduler.schedule('fast', 0.1, lambda: None)

        for _ in range(10):
            scheduler.advance(1.0)

        assert task.runs == 100

    def test_same_instant_runs_in_registration_order(self):
        scheduler = ManualScheduler()
        order = []
        scheduler.schedule('first', 1.0, lambda: order.append('first'))
        scheduler.schedule('second', 0.5, lambda: order.append('second'))

        scheduler.advance(1.0)

        assert order == ['second', 'first', 'second']

    def test_cancel(self):
        scheduler = ManualScheduler()
        task = scheduler.schedule('tick', 1.0, lambda: None)

        scheduler.advance(2.0)
        task.cancel()
        scheduler.advance(5.0)

        assert task.runs == 2
        assert task.cancelled

    def test_task_cancelled_exception_stops_task(self):
        scheduler = ManualScheduler()

        def stop():
            raise TaskCancelled()

        task = scheduler.schedule('stop', 1.0, stop)
        scheduler.advance(5.0)

        assert task.runs == 1
        assert task.cancelled

    def test_failures_are_logged_and_task_continues(self, caplog):
        scheduler = ManualScheduler()

        def boom():
            raise RuntimeError('boom')

        task = scheduler.schedule('boom', 1.0, boom)
        scheduler.advance(3.0)

        assert task.runs == 3
        assert task.failures == 3
        assert not task.cancelled
        assert 'Periodic task boom failed' in caplog.text

    def test_shutdown_cancels_all(self):
        scheduler = ManualScheduler()
        tasks = [scheduler.schedule(f't{i}', 1.0, lambda: None) for i in range(3)]

        scheduler.shutdown()

        assert scheduler.advance(10.0) == 0
        assert all(task.cancelled for task in tasks)

    def test_negative_advance(self):
        with pytest.raises(ValueError):
            ManualScheduler().advance(-1.0)

    def test_invalid_interval(self):
        scheduler = ManualScheduler()
        with pytest.raises(ValueError):
            scheduler.schedule('bad', 0.0, lambda: None)
        with pytest.raises(ValueError):
            scheduler.schedule('bad', 1.0, lambda: None, initial_delay=-1.0)


class TestThreadScheduler:
    """Tests for the thread-backed scheduler."""

    def test_task_runs_until_shutdown(self):
        scheduler = ThreadScheduler('test')
        counter = AtomicCounter()
        task = scheduler.schedule('count', 0.01, counter.increment)

        assert wait_for(lambda: counter.value >= 3)

        scheduler.shutdown(timeout=1.0)
        runs = task.runs
        time.sleep(0.05)

        assert task.cancelled
        assert task.runs == runs

    def test_evolution_on_background_thread(self):
        config = EvolutionConfig(population_size=8, evolution_interval=0.01, seed=3)
        optimizer = EvolutionaryOptimizer(config, StaticSignals(throughput_rate=12.0))

        optimizer.initialize()
        try:
            assert wait_for(lambda: optimizer.generations >= 3)
        finally:
            optimizer.shutdown()

        assert optimizer.best_fitness > 0.0
        assert optimizer.scheduler is None
