"""
Pseudo-measurement of a simulated register.

Each qubit is read independently against its own probability of being 1, so
the result is not one jointly consistent outcome. The read bits are combined
into an integer and scaled into [0, 1].
"""

import numpy as np

from .state import QuantumState


def measure_state(state: QuantumState, rng: np.random.Generator) -> float:
    """
    Read every qubit and return the combined value scaled into [0, 1].

    Qubit q contributes 2^q when its draw succeeds; the total is divided by
    2^qubit_count. The state itself is not collapsed.
    """
    total = 0
    for qubit in range(state.qubit_count):
        if rng.random() < state.probability(qubit):
            total += 1 << qubit
    return total / float(1 << state.qubit_count)
