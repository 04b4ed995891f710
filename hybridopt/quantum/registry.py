"""
Shared table of long-lived named registers.

Periodic ticks age every registered state while callers may register new
ones, so the table is safe for concurrent use: the mapping is guarded by a
short lock and iteration always works on a snapshot. Each state carries its
own lock for amplitude updates.

The table is bounded; registering past capacity evicts the least recently
used entry.
"""

from collections import OrderedDict
from typing import Dict, List, Optional, Tuple
import logging
import threading

from .state import QuantumState

logger = logging.getLogger(__name__)


class StateRegistry:
    """Bounded LRU mapping of name -> QuantumState."""

    def __init__(self, capacity: int = 64):
        if capacity < 1:
            raise ValueError(f"Registry capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.evictions = 0
        self._states: 'OrderedDict[str, QuantumState]' = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, key: str) -> bool:
        return key in self._states

    def get(self, key: str) -> Optional[QuantumState]:
        with self._lock:
            state = self._states.get(key)
            if state is not None:
                self._states.move_to_end(key)
            return state

    def get_or_create(self, key: str, qubit_count: int) -> Tuple[QuantumState, bool]:
        """
        Return the state registered under key, creating it if missing.

        Returns:
            (state, created)
        """
        with self._lock:
            state = self._states.get(key)
            if state is not None:
                self._states.move_to_end(key)
                return state, False

            state = QuantumState(qubit_count)
            self._states[key] = state
            while len(self._states) > self.capacity:
                evicted, _ = self._states.popitem(last=False)
                self.evictions += 1
                logger.debug("Evicted quantum state %s", evicted)
            return state, True

    def remove(self, key: str) -> Optional[QuantumState]:
        with self._lock:
            return self._states.pop(key, None)

    def values(self) -> List[QuantumState]:
        """Snapshot of the registered states."""
        with self._lock:
            return list(self._states.values())

    def items(self) -> List[Tuple[str, QuantumState]]:
        with self._lock:
            return list(self._states.items())

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._states.keys())

    def reset(self) -> None:
        """Drop every state."""
        with self._lock:
            self._states.clear()

    def to_dict(self) -> Dict[str, Dict]:
        return {
            key: {
                'qubits': state.qubit_count,
                'norm': state.norm(),
                'has_errors': state.has_errors,
            }
            for key, state in self.items()
        }
