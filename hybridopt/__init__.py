"""
hybridopt - evolutionary and quantum-simulation parameter optimizers.

Two independent optimizers suggest tuning parameters from host performance
signals:
- hybridopt.evolution: genetic algorithm over fixed-length gene vectors
- hybridopt.quantum: QAOA-style scoring on a simulated qubit register

Both run their background work on an injectable scheduler
(hybridopt.core.scheduler).
"""

from .core import HostHandle, ManualScheduler, StaticSignals, SystemSignals, ThreadScheduler
from .evolution import EvolutionaryOptimizer, EvolutionConfig
from .quantum import QuantumOptimizer, QuantumConfig

__version__ = '0.1.0'

__all__ = [
    'HostHandle',
    'ManualScheduler',
    'StaticSignals',
    'SystemSignals',
    'ThreadScheduler',
    'EvolutionaryOptimizer',
    'EvolutionConfig',
    'QuantumOptimizer',
    'QuantumConfig',
]
