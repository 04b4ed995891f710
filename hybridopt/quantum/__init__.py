"""
Quantum-gate simulation optimizer.

Key components:
- QuantumState: real-valued amplitude vector over 2^n basis states
- Gate / apply_gate: closed set of Hadamard, Pauli-X/Y/Z and CNOT gates
- measure_state: per-qubit pseudo-measurement into [0, 1]
- StateRegistry: bounded table of long-lived named states
- QuantumOptimizer: QAOA-style scoring plus periodic annealing, error
  correction and decoherence ticks

Example usage:
    from hybridopt.core import ManualScheduler
    from hybridopt.quantum import QuantumOptimizer

    scheduler = ManualScheduler()
    optimizer = QuantumOptimizer(scheduler=scheduler)
    score = optimizer.optimize('tick-scheduling', [0.25, 0.5, 0.75])
    scheduler.advance(5.0)
    optimizer.shutdown()
"""

from .state import QuantumState
from .gates import Gate, apply_gate, hadamard, pauli_x, pauli_y, pauli_z, cnot
from .measurement import measure_state
from .registry import StateRegistry
from .optimizer import QuantumOptimizer, QuantumConfig

__all__ = [
    'QuantumState',
    'Gate',
    'apply_gate',
    'hadamard',
    'pauli_x',
    'pauli_y',
    'pauli_z',
    'cnot',
    'measure_state',
    'StateRegistry',
    'QuantumOptimizer',
    'QuantumConfig',
]
