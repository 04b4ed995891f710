"""Thread-safe monotonic counters."""

import threading


class AtomicCounter:
    """Monotonically increasing integer counter safe to bump from any thread."""

    def __init__(self, value: int = 0):
        self._value = value
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        """Add amount (must be non-negative) and return the new value."""
        if amount < 0:
            raise ValueError(f"Counter increment must be non-negative, got {amount}")
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        return self._value

    def __int__(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"AtomicCounter({self._value})"
