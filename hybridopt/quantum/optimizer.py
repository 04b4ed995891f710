"""
Quantum-simulation optimizer.

Scores a parameter vector with a QAOA-style ansatz on a simulated register:
1. Put n qubits (n = number of parameters) in uniform superposition
2. Repeat `layers` times: phase rotation by parameter * pi on each qubit,
   then a Pauli-X mixing gate on each qubit
3. Pseudo-measure the register into a value in [0, 1]

Three periodic tasks run alongside the on-demand entry point:
- optimization tick (1s): annealing sweep, error correction of named
  states, entanglement bookkeeping
- coherence tick (100ms): decoherence of every named state
- metrics tick (5s): logs a counter snapshot every 1000 operations

Every failure inside a scoring call is absorbed and scored 0.0.
"""

from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, List, Optional, Sequence
import logging
import math
import threading

import numpy as np

from ..core.counters import AtomicCounter
from ..core.errors import ConfigError
from ..core.host import HostHandle
from ..core.scheduler import Scheduler, ScheduledTask, ThreadScheduler
from .gates import Gate, apply_gate
from .measurement import measure_state
from .registry import StateRegistry
from .state import QuantumState

logger = logging.getLogger(__name__)


@dataclass
class QuantumConfig:
    """Configuration for the quantum optimizer."""
    # Ansatz
    layers: int = 3
    max_qubits: int = 20

    # Scheduling (seconds)
    optimization_interval: float = 1.0
    coherence_interval: float = 0.1
    metrics_interval: float = 5.0

    # Annealing
    annealing_steps: int = 100
    initial_temperature: float = 1000.0
    cooling_rate: float = 0.95

    # Named states
    decoherence_rate: float = 0.001
    state_capacity: int = 64

    # Safety and reporting
    safe_mode: bool = True
    forbidden_marker: str = 'exploit'
    metrics_log_every: int = 1000
    seed: Optional[int] = None

    def __post_init__(self):
        if self.layers < 0:
            raise ConfigError(f"layers must be >= 0, got {self.layers}")
        if self.max_qubits < 0:
            raise ConfigError(f"max_qubits must be >= 0, got {self.max_qubits}")
        for name in ('optimization_interval', 'coherence_interval', 'metrics_interval'):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be > 0, got {getattr(self, name)}")
        if self.annealing_steps < 0:
            raise ConfigError(f"annealing_steps must be >= 0, got {self.annealing_steps}")
        if self.initial_temperature <= 0:
            raise ConfigError(
                f"initial_temperature must be > 0, got {self.initial_temperature}"
            )
        if not 0.0 < self.cooling_rate <= 1.0:
            raise ConfigError(f"cooling_rate must lie in (0, 1], got {self.cooling_rate}")
        if not 0.0 <= self.decoherence_rate <= 1.0:
            raise ConfigError(
                f"decoherence_rate must lie in [0, 1], got {self.decoherence_rate}"
            )
        if self.state_capacity < 1:
            raise ConfigError(f"state_capacity must be >= 1, got {self.state_capacity}")
        if self.metrics_log_every < 1:
            raise ConfigError(f"metrics_log_every must be >= 1, got {self.metrics_log_every}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QuantumConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown quantum config keys: {sorted(unknown)}")
        return cls(**data)


class QuantumOptimizer:
    """
    Quantum-gate simulation optimizer.

    Periodic tasks are registered on construction and run until shutdown().
    """

    def __init__(
        self,
        host: Optional[HostHandle] = None,
        config: Optional[QuantumConfig] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            host: Plugin handle; only its logger is used
            config: Quantum configuration (defaults if omitted)
            scheduler: Scheduler for the periodic tasks; a private
                ThreadScheduler is created if omitted
            rng: Random generator (seeded from config.seed if omitted)
        """
        self.host = host if host is not None else HostHandle('hybridopt')
        self.logger = getattr(self.host, 'logger', None) or logger
        self.config = config or QuantumConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        # numpy generators are not thread-safe: one per activity, plus a lock
        # for on-demand calls arriving from arbitrary threads
        self._call_lock = threading.Lock()
        self._annealing_rng = np.random.default_rng(self.rng.integers(2 ** 32))
        self._decoherence_rng = np.random.default_rng(self.rng.integers(2 ** 32))

        self.states = StateRegistry(self.config.state_capacity)
        self.gates: Dict[str, Gate] = {gate.value: gate for gate in Gate}
        self._safe_mode = self.config.safe_mode

        self._operations = AtomicCounter()
        self._superpositions = AtomicCounter()
        self._entanglements = AtomicCounter()
        self._optimizations = AtomicCounter()
        self._coherence = AtomicCounter()
        self._advantage = AtomicCounter()

        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler if scheduler is not None else ThreadScheduler('hybridopt-quantum')
        self._tasks: List[ScheduledTask] = [
            self.scheduler.schedule(
                'quantum-optimization',
                self.config.optimization_interval,
                self.run_quantum_optimization,
            ),
            self.scheduler.schedule(
                'quantum-coherence',
                self.config.coherence_interval,
                self.maintain_coherence,
            ),
            self.scheduler.schedule(
                'quantum-metrics',
                self.config.metrics_interval,
                self.update_metrics,
            ),
        ]
        self._running = True
        self.logger.info("Quantum optimizer initialized")

    # -------------------------------------------------------------------------
    # On-demand scoring
    # -------------------------------------------------------------------------

    def is_safe(self, problem_kind: Optional[str]) -> bool:
        return problem_kind is not None and self.config.forbidden_marker not in problem_kind

    def optimize_with_quantum_algorithm(
        self,
        problem_kind: Optional[str],
        parameters: Sequence[float],
    ) -> float:
        """
        Score a parameter vector.

        Args:
            problem_kind: Label of the problem; rejected in safe mode when it
                is None or contains the forbidden marker
            parameters: One angle fraction per qubit (angle = value * pi)

        Returns:
            Measured value in [0, 1]; 0.0 on rejection or any failure
        """
        if self._safe_mode and not self.is_safe(problem_kind):
            return 0.0

        self._operations.increment()
        try:
            params = [float(p) for p in parameters]
            if len(params) > self.config.max_qubits:
                raise ValueError(
                    f"{len(params)} parameters exceed the {self.config.max_qubits}-qubit limit"
                )

            state = self.create_superposition(len(params))
            self._superpositions.increment()

            for _ in range(self.config.layers):
                self._apply_parameterized_gates(state, params)
                self._apply_mixing_gates(state)

            with self._call_lock:
                result = measure_state(state, self.rng)
            self._optimizations.increment()
            return result

        except Exception as e:
            self.logger.debug("Quantum optimization of %r failed: %s", problem_kind, e)
            return 0.0

    optimize = optimize_with_quantum_algorithm

    def create_superposition(self, qubit_count: int) -> QuantumState:
        """Fresh register with a Hadamard applied to every qubit."""
        state = QuantumState(qubit_count)
        hadamard = self.gates['H']
        for qubit in range(qubit_count):
            apply_gate(hadamard, state, qubit)
        return state

    def _apply_parameterized_gates(self, state: QuantumState, params: List[float]) -> None:
        for qubit, value in enumerate(params[:state.qubit_count]):
            state.apply_phase(qubit, value * math.pi)

    def _apply_mixing_gates(self, state: QuantumState) -> None:
        mixer = self.gates['X']
        for qubit in range(state.qubit_count):
            apply_gate(mixer, state, qubit)

    def set_vanilla_safe_mode(self, enabled: bool) -> None:
        self._safe_mode = bool(enabled)

    @property
    def vanilla_safe_mode(self) -> bool:
        return self._safe_mode

    # -------------------------------------------------------------------------
    # Named states
    # -------------------------------------------------------------------------

    def prepare_state(self, key: str, qubit_count: int) -> QuantumState:
        """
        Return the named register, creating it in the ground state if missing.

        The least recently used register is evicted once the table is full.
        """
        if qubit_count > self.config.max_qubits:
            raise ValueError(
                f"{qubit_count} qubits exceed the {self.config.max_qubits}-qubit limit"
            )
        state, created = self.states.get_or_create(key, qubit_count)
        if created:
            self.logger.debug("Prepared %d-qubit state %s", qubit_count, key)
        return state

    # -------------------------------------------------------------------------
    # Periodic ticks
    # -------------------------------------------------------------------------

    def run_quantum_optimization(self) -> None:
        """Optimization tick: annealing, error correction, entanglement."""
        self.simulate_annealing()
        self.perform_error_correction()
        self.generate_entanglement()

    def simulate_annealing(self) -> int:
        """
        Cooling sweep with tunneling draws.

        Each step cools the temperature, then tunnels with probability
        exp(-1 / temperature). Every tunneling event counts as a quantum
        advantage.

        Returns:
            Tunneling events in this sweep
        """
        temperature = self.config.initial_temperature
        events = 0
        for _ in range(self.config.annealing_steps):
            temperature *= self.config.cooling_rate
            tunneling_probability = math.exp(-1.0 / temperature)
            if self._annealing_rng.random() < tunneling_probability:
                self._advantage.increment()
                events += 1
        return events

    def perform_error_correction(self) -> int:
        """Clear the error flag of every flagged named state."""
        corrected = 0
        for state in self.states.values():
            if state.has_errors:
                state.correct_errors()
                self._coherence.increment()
                corrected += 1
        return corrected

    def generate_entanglement(self) -> bool:
        # Bookkeeping only: no state is modified
        if len(self.states) >= 2:
            self._entanglements.increment()
            return True
        return False

    def maintain_coherence(self) -> None:
        """Coherence tick: decay every named state."""
        self._coherence.increment()
        for state in self.states.values():
            state.apply_decoherence(self.config.decoherence_rate, self._decoherence_rng)

    def update_metrics(self) -> bool:
        """
        Log a counter snapshot when the operation count is a positive multiple
        of metrics_log_every.

        Returns:
            True if a snapshot was logged
        """
        operations = self.quantum_operations
        if operations > 0 and operations % self.config.metrics_log_every == 0:
            self.logger.info(
                "Quantum operations: %d, superpositions: %d, entanglements: %d",
                operations,
                self.superposition_states,
                self.entanglement_events,
            )
            return True
        return False

    # -------------------------------------------------------------------------
    # Lifecycle and monitoring
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def shutdown(self) -> None:
        """Cancel periodic tasks and clear the named-state and gate tables."""
        for task in self._tasks:
            task.cancel()
        if self._owns_scheduler:
            self.scheduler.shutdown()
        self.states.reset()
        self.gates.clear()
        self._running = False
        self.logger.info("Quantum optimizer shut down")

    @property
    def quantum_operations(self) -> int:
        return self._operations.value

    @property
    def superposition_states(self) -> int:
        return self._superpositions.value

    @property
    def entanglement_events(self) -> int:
        return self._entanglements.value

    @property
    def quantum_optimizations(self) -> int:
        return self._optimizations.value

    @property
    def coherence_time(self) -> int:
        return self._coherence.value

    @property
    def quantum_advantage(self) -> int:
        return self._advantage.value

    def get_stats(self) -> Dict[str, Any]:
        """Counters and table sizes for monitoring."""
        return {
            'quantum_operations': self.quantum_operations,
            'superposition_states': self.superposition_states,
            'entanglement_events': self.entanglement_events,
            'quantum_optimizations': self.quantum_optimizations,
            'coherence_time': self.coherence_time,
            'quantum_advantage': self.quantum_advantage,
            'named_states': len(self.states),
            'evicted_states': self.states.evictions,
            'safe_mode': self._safe_mode,
            'running': self._running,
        }
