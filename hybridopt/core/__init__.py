"""Core building blocks shared by both optimizers."""

from .errors import HybridOptError, ConfigError, TaskCancelled
from .counters import AtomicCounter
from .host import HostHandle
from .signals import (
    HostSignals,
    StaticSignals,
    SystemSignals,
    MetricsSnapshot,
    capture_snapshot,
)
from .scheduler import Scheduler, ScheduledTask, ThreadScheduler, ManualScheduler

__all__ = [
    'HybridOptError',
    'ConfigError',
    'TaskCancelled',
    'AtomicCounter',
    'HostHandle',
    'HostSignals',
    'StaticSignals',
    'SystemSignals',
    'MetricsSnapshot',
    'capture_snapshot',
    'Scheduler',
    'ScheduledTask',
    'ThreadScheduler',
    'ManualScheduler',
]
