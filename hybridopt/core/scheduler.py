"""
Periodic task scheduling.

Both optimizers run their background work as periodic tasks registered on a
Scheduler owned by whoever embeds them. Two implementations are provided:

- ThreadScheduler: one daemon thread per task, for live use
- ManualScheduler: a virtual clock advanced explicitly, for tests and
  batch runs where no real time should pass

Cancellation is cooperative. A cancelled task finishes its current run and
never starts another; a task body can also stop its own task by raising
TaskCancelled. Any other exception is logged and the task keeps its schedule.
"""

from typing import Callable, List, Optional
import itertools
import logging
import threading

from .errors import TaskCancelled

logger = logging.getLogger(__name__)

# Tolerance for comparing virtual clock times built from float intervals
_CLOCK_EPSILON = 1e-9


class ScheduledTask:
    """A callback registered to run every `interval` seconds."""

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], None],
        initial_delay: float,
    ):
        if interval <= 0:
            raise ValueError(f"Task interval must be positive, got {interval}")
        if initial_delay < 0:
            raise ValueError(f"Initial delay must be non-negative, got {initial_delay}")
        self.name = name
        self.interval = interval
        self.callback = callback
        self.initial_delay = initial_delay
        self.runs = 0
        self.failures = 0
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def run_once(self) -> bool:
        """
        Execute the callback a single time.

        Returns:
            False if the task is (or just became) cancelled, True otherwise
        """
        if self.cancelled:
            return False
        self.runs += 1
        try:
            self.callback()
        except TaskCancelled:
            logger.debug("Task %s cancelled itself", self.name)
            self.cancel()
            return False
        except Exception as e:
            self.failures += 1
            logger.warning("Periodic task %s failed: %s", self.name, e)
        return not self.cancelled

    def __repr__(self) -> str:
        state = 'cancelled' if self.cancelled else 'active'
        return f"ScheduledTask({self.name!r}, every {self.interval}s, runs={self.runs}, {state})"


class Scheduler:
    """Base class for schedulers."""

    def __init__(self):
        self._tasks: List[ScheduledTask] = []
        self._lock = threading.Lock()

    @property
    def tasks(self) -> List[ScheduledTask]:
        with self._lock:
            return list(self._tasks)

    def schedule(
        self,
        name: str,
        interval: float,
        callback: Callable[[], None],
        initial_delay: Optional[float] = None,
    ) -> ScheduledTask:
        """
        Register a periodic task.

        Args:
            name: Task name (used in logs and thread names)
            interval: Seconds between runs
            callback: Zero-argument callable to run
            initial_delay: Seconds before the first run (default: interval)

        Returns:
            The ScheduledTask, which can be cancelled individually
        """
        if initial_delay is None:
            initial_delay = interval
        task = ScheduledTask(name, interval, callback, initial_delay)
        with self._lock:
            self._tasks.append(task)
        self._start(task)
        return task

    def _start(self, task: ScheduledTask) -> None:
        raise NotImplementedError

    def shutdown(self) -> None:
        """Cancel every task registered on this scheduler."""
        for task in self.tasks:
            task.cancel()


class ThreadScheduler(Scheduler):
    """Runs each task on its own daemon thread."""

    def __init__(self, thread_prefix: str = 'hybridopt'):
        super().__init__()
        self.thread_prefix = thread_prefix
        self._threads: List[threading.Thread] = []

    def _start(self, task: ScheduledTask) -> None:
        thread = threading.Thread(
            target=self._loop,
            args=(task,),
            name=f"{self.thread_prefix}-{task.name}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()

    @staticmethod
    def _loop(task: ScheduledTask) -> None:
        # Event.wait returns True as soon as the task is cancelled
        if task._cancelled.wait(task.initial_delay):
            return
        while task.run_once():
            if task._cancelled.wait(task.interval):
                return

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Cancel all tasks and optionally wait up to `timeout` for each thread."""
        super().shutdown()
        if timeout is not None:
            for thread in self._threads:
                if thread is not threading.current_thread():
                    thread.join(timeout)


class ManualScheduler(Scheduler):
    """
    Scheduler driven by a virtual clock.

    Nothing runs until advance() or run_pending() is called. Tasks due at the
    same instant run in registration order.

    Example:
        scheduler = ManualScheduler()
        scheduler.schedule('tick', 1.0, on_tick)
        scheduler.advance(3.0)  # on_tick runs at t=1, 2, 3
    """

    def __init__(self):
        super().__init__()
        self.now = 0.0
        self._first_run = {}
        self._order = itertools.count()
        self._seq = {}

    def _start(self, task: ScheduledTask) -> None:
        self._first_run[id(task)] = self.now + task.initial_delay
        self._seq[id(task)] = next(self._order)

    def _next_run(self, task: ScheduledTask) -> float:
        # Derived from the run count so float intervals do not accumulate drift
        return self._first_run[id(task)] + task.runs * task.interval

    def _next_due(self, until: float) -> Optional[ScheduledTask]:
        due = [
            t for t in self.tasks
            if not t.cancelled and self._next_run(t) <= until + _CLOCK_EPSILON
        ]
        if not due:
            return None
        return min(due, key=lambda t: (self._next_run(t), self._seq[id(t)]))

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running every task that falls due.

        Returns:
            Number of task runs performed
        """
        if seconds < 0:
            raise ValueError(f"Cannot move the clock backwards ({seconds})")
        target = self.now + seconds
        executed = 0
        while True:
            task = self._next_due(target)
            if task is None:
                break
            self.now = max(self.now, self._next_run(task))
            task.run_once()
            executed += 1
        self.now = target
        return executed

    def run_pending(self) -> int:
        """Run tasks that are due at the current time without moving the clock."""
        return self.advance(0.0)
