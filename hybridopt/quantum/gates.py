"""
Gate library.

The gate set is closed: Hadamard, Pauli-X, Pauli-Y, Pauli-Z and controlled-NOT.
Each gate acts in place on a QuantumState at a target qubit; CNOT also takes
a control qubit (default 0).

Indices are paired by the target bit: `zero` holds every basis index with the
target bit clear, `one = zero | target_bit` its partner.
"""

from enum import Enum
import math

import numpy as np

from .state import QuantumState

_SQRT2 = math.sqrt(2.0)


class Gate(str, Enum):
    HADAMARD = 'H'
    PAULI_X = 'X'
    PAULI_Y = 'Y'
    PAULI_Z = 'Z'
    CNOT = 'CNOT'


def _pairs(state: QuantumState, qubit: int):
    state.check_qubit(qubit)
    indices = np.arange(state.size)
    bit = 1 << qubit
    zero = indices[(indices & bit) == 0]
    return zero, zero | bit


def hadamard(state: QuantumState, qubit: int) -> None:
    """|0> -> (|0> + |1>)/sqrt(2), |1> -> (|0> - |1>)/sqrt(2)."""
    zero, one = _pairs(state, qubit)
    with state.lock:
        a0 = state.amplitudes[zero].copy()
        a1 = state.amplitudes[one].copy()
        state.amplitudes[zero] = (a0 + a1) / _SQRT2
        state.amplitudes[one] = (a0 - a1) / _SQRT2


def pauli_x(state: QuantumState, qubit: int) -> None:
    """Bit flip."""
    zero, one = _pairs(state, qubit)
    with state.lock:
        state.amplitudes[zero], state.amplitudes[one] = (
            state.amplitudes[one].copy(),
            state.amplitudes[zero].copy(),
        )


def pauli_y(state: QuantumState, qubit: int) -> None:
    """
    Real-valued stand-in for Pauli-Y.

    The |0> amplitude of each pair moves to |1> and the |0> slot is zeroed.
    The prior |1> amplitude is dropped, so the gate is neither unitary nor
    self-inverse.
    """
    zero, one = _pairs(state, qubit)
    with state.lock:
        state.amplitudes[one] = state.amplitudes[zero]
        state.amplitudes[zero] = 0.0


def pauli_z(state: QuantumState, qubit: int) -> None:
    """Phase flip: negate amplitudes where the qubit is 1."""
    zero, one = _pairs(state, qubit)
    with state.lock:
        state.amplitudes[one] *= -1.0


def cnot(state: QuantumState, target: int, control: int = 0) -> None:
    """
    Flip the target qubit on every basis state whose control qubit is 1.

    A gate whose control equals its target leaves the state unchanged.
    """
    zero, one = _pairs(state, target)
    state.check_qubit(control)
    control_set = (zero & (1 << control)) != 0
    zero, one = zero[control_set], one[control_set]
    with state.lock:
        state.amplitudes[zero], state.amplitudes[one] = (
            state.amplitudes[one].copy(),
            state.amplitudes[zero].copy(),
        )


def apply_gate(gate: Gate, state: QuantumState, target: int, control: int = 0) -> None:
    """
    Apply a gate in place.

    Args:
        gate: Gate to apply (a Gate member or its short name, e.g. 'H')
        state: Register to modify
        target: Target qubit index
        control: Control qubit index (CNOT only)
    """
    gate = Gate(gate)
    if gate is Gate.HADAMARD:
        hadamard(state, target)
    elif gate is Gate.PAULI_X:
        pauli_x(state, target)
    elif gate is Gate.PAULI_Y:
        pauli_y(state, target)
    elif gate is Gate.PAULI_Z:
        pauli_z(state, target)
    else:
        cnot(state, target, control)
