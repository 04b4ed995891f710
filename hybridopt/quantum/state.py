"""
Simulated multi-qubit register.

The register holds 2^n real amplitudes indexed by basis bitstring; bit q of
an index is the value of qubit q. Signed reals stand in for complex
amplitudes, so phase-like operations are approximations and the state is
not guaranteed to stay normalized.
"""

from typing import Optional
import math
import threading

import numpy as np


class QuantumState:
    """
    Real-valued amplitude vector over 2^qubit_count basis states.

    Starts in the all-zero basis state. Carries an error flag that
    decoherence can set and error correction clears.
    """

    def __init__(self, qubit_count: int):
        if qubit_count < 0:
            raise ValueError(f"Qubit count must be non-negative, got {qubit_count}")
        self.qubit_count = qubit_count
        self.amplitudes = np.zeros(1 << qubit_count, dtype=float)
        self.amplitudes[0] = 1.0
        self._has_errors = False
        self.lock = threading.RLock()

    @property
    def size(self) -> int:
        return int(self.amplitudes.size)

    def check_qubit(self, qubit: int) -> None:
        if not 0 <= qubit < self.qubit_count:
            raise ValueError(f"Qubit {qubit} out of range for {self.qubit_count}-qubit state")

    def bit_mask(self, qubit: int) -> np.ndarray:
        """Boolean mask of basis indices whose bit `qubit` is 1."""
        self.check_qubit(qubit)
        indices = np.arange(self.size)
        return (indices & (1 << qubit)) != 0

    def apply_phase(self, qubit: int, angle: float) -> None:
        """
        Multiply every amplitude with qubit set by cos(angle) + sin(angle).

        Stand-in for a Z rotation. The factor is not unit magnitude, so this
        is not unitary.
        """
        factor = math.cos(angle) + math.sin(angle)
        mask = self.bit_mask(qubit)
        with self.lock:
            self.amplitudes[mask] *= factor

    def probability(self, qubit: int) -> float:
        """Sum of squared amplitudes over basis states where qubit is 1."""
        mask = self.bit_mask(qubit)
        with self.lock:
            return float(np.sum(self.amplitudes[mask] ** 2))

    def norm(self) -> float:
        """Sum of squared amplitudes (1.0 for a normalized state)."""
        with self.lock:
            return float(np.sum(self.amplitudes ** 2))

    def apply_decoherence(self, rate: float, rng: Optional[np.random.Generator] = None) -> None:
        """
        Decay every amplitude by (1 - rate) and set the error flag with probability rate.
        """
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"Decoherence rate must lie in [0, 1], got {rate}")
        rng = rng if rng is not None else np.random.default_rng()
        with self.lock:
            self.amplitudes *= (1.0 - rate)
            if rng.random() < rate:
                self._has_errors = True

    @property
    def has_errors(self) -> bool:
        return self._has_errors

    def correct_errors(self) -> None:
        """Clear the error flag. Amplitudes are left as they are."""
        with self.lock:
            self._has_errors = False

    def copy(self) -> 'QuantumState':
        with self.lock:
            clone = QuantumState(self.qubit_count)
            clone.amplitudes = self.amplitudes.copy()
            clone._has_errors = self._has_errors
        return clone

    def __repr__(self) -> str:
        flag = ', errors' if self._has_errors else ''
        return f"QuantumState(qubits={self.qubit_count}, norm={self.norm():.4f}{flag})"
