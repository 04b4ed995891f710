"""Exception types raised by hybridopt."""


class HybridOptError(Exception):
    """Base class for hybridopt errors."""


class ConfigError(HybridOptError, ValueError):
    """Raised when an optimizer configuration is invalid."""


class TaskCancelled(HybridOptError):
    """
    Cancellation signal for periodic tasks.

    Raising this from a task body stops that task. It is the only exception
    that ends a periodic task; everything else is logged and the task keeps
    running.
    """
