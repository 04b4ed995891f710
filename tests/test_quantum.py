"""
Tests for the quantum-simulation optimizer.

Run with: python -m pytest tests/test_quantum.py -v
"""

import logging
import math
import threading

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from hybridopt.core.errors import ConfigError
from hybridopt.core.host import HostHandle
from hybridopt.core.scheduler import ManualScheduler, ThreadScheduler
from hybridopt.quantum.state import QuantumState
from hybridopt.quantum.gates import Gate, apply_gate, cnot, hadamard, pauli_x, pauli_y, pauli_z
from hybridopt.quantum.measurement import measure_state
from hybridopt.quantum.registry import StateRegistry
from hybridopt.quantum.optimizer import QuantumOptimizer, QuantumConfig

INV_SQRT2 = 1.0 / math.sqrt(2.0)


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def optimizer(scheduler):
    opt = QuantumOptimizer(HostHandle('test'), QuantumConfig(seed=11), scheduler)
    yield opt
    opt.shutdown()


def counters(opt):
    return (
        opt.quantum_operations,
        opt.superposition_states,
        opt.entanglement_events,
        opt.quantum_optimizations,
        opt.coherence_time,
        opt.quantum_advantage,
    )


class TestQuantumState:
    """Tests for the simulated register."""

    def test_ground_state(self):
        state = QuantumState(3)

        assert state.size == 8
        assert state.amplitudes[0] == 1.0
        assert np.count_nonzero(state.amplitudes) == 1
        assert not state.has_errors

    def test_zero_qubits(self):
        state = QuantumState(0)
        assert state.amplitudes.tolist() == [1.0]

    def test_negative_qubits(self):
        with pytest.raises(ValueError):
            QuantumState(-1)

    def test_qubit_range_checked(self):
        state = QuantumState(2)
        with pytest.raises(ValueError):
            state.probability(2)
        with pytest.raises(ValueError):
            pauli_x(state, -1)

    def test_apply_phase(self):
        """Amplitudes with the qubit set are scaled by cos + sin."""
        state = QuantumState(1)
        hadamard(state, 0)

        state.apply_phase(0, math.pi)

        assert state.amplitudes == pytest.approx([INV_SQRT2, -INV_SQRT2])

    def test_phase_is_not_unitary(self):
        state = QuantumState(1)
        pauli_x(state, 0)
        state.apply_phase(0, math.pi / 4)
        assert state.norm() == pytest.approx(2.0)

    def test_decoherence_rate_zero(self, rng):
        state = QuantumState(2)
        hadamard(state, 0)
        before = state.amplitudes.copy()

        for _ in range(100):
            state.apply_decoherence(0.0, rng)

        assert state.amplitudes.tolist() == before.tolist()
        assert not state.has_errors

    def test_decoherence_rate_one(self, rng):
        state = QuantumState(2)
        state.apply_decoherence(1.0, rng)

        assert np.all(state.amplitudes == 0.0)
        assert state.has_errors

    def test_decoherence_decays_amplitudes(self, rng):
        state = QuantumState(1)
        state.apply_decoherence(0.001, rng)
        assert state.amplitudes[0] == pytest.approx(0.999)

    def test_decoherence_rate_validated(self, rng):
        with pytest.raises(ValueError):
            QuantumState(1).apply_decoherence(1.5, rng)

    def test_correct_errors(self, rng):
        """Correction clears the flag and leaves amplitudes alone."""
        state = QuantumState(1)
        state.apply_decoherence(1.0, rng)

        state.correct_errors()

        assert not state.has_errors
        assert state.amplitudes.tolist() == [0.0, 0.0]

    def test_copy(self):
        state = QuantumState(1)
        clone = state.copy()
        pauli_x(clone, 0)
        assert state.amplitudes.tolist() == [1.0, 0.0]


class TestGates:
    """Tests for the gate library."""

    def test_hadamard_creates_equal_superposition(self):
        state = QuantumState(1)
        hadamard(state, 0)

        assert state.amplitudes == pytest.approx([INV_SQRT2, INV_SQRT2])
        assert state.probability(0) == pytest.approx(0.5)

    def test_hadamard_is_self_inverse(self):
        state = QuantumState(1)
        hadamard(state, 0)
        hadamard(state, 0)
        assert state.amplitudes == pytest.approx([1.0, 0.0])

    def test_hadamard_on_every_qubit(self):
        state = QuantumState(3)
        for qubit in range(3):
            hadamard(state, qubit)

        assert state.amplitudes == pytest.approx([1 / math.sqrt(8)] * 8)
        for qubit in range(3):
            assert state.probability(qubit) == pytest.approx(0.5)

    def test_pauli_x_flips(self):
        state = QuantumState(1)
        pauli_x(state, 0)
        assert state.amplitudes.tolist() == [0.0, 1.0]
        pauli_x(state, 0)
        assert state.amplitudes.tolist() == [1.0, 0.0]

    def test_pauli_x_targets_one_qubit(self):
        state = QuantumState(2)
        pauli_x(state, 1)
        assert state.amplitudes.tolist() == [0.0, 0.0, 1.0, 0.0]

    def test_pauli_y_moves_zero_amplitude(self):
        state = QuantumState(1)
        pauli_y(state, 0)
        assert state.amplitudes.tolist() == [0.0, 1.0]

    def test_pauli_y_drops_one_amplitude(self):
        state = QuantumState(1)
        pauli_x(state, 0)
        pauli_y(state, 0)
        assert state.amplitudes.tolist() == [0.0, 0.0]

    def test_pauli_z(self):
        state = QuantumState(1)
        hadamard(state, 0)
        pauli_z(state, 0)
        assert state.amplitudes == pytest.approx([INV_SQRT2, -INV_SQRT2])

    def test_cnot_flips_target_when_control_set(self):
        state = QuantumState(2)
        state.amplitudes[:] = [0.0, 1.0, 0.0, 0.0]

        cnot(state, target=1, control=0)

        assert state.amplitudes.tolist() == [0.0, 0.0, 0.0, 1.0]

    def test_cnot_ignores_clear_control(self):
        state = QuantumState(2)
        cnot(state, target=1, control=0)
        assert state.amplitudes.tolist() == [1.0, 0.0, 0.0, 0.0]

    def test_cnot_control_equals_target(self):
        state = QuantumState(2)
        state.amplitudes[:] = [0.0, 1.0, 0.0, 0.0]
        cnot(state, target=0, control=0)
        assert state.amplitudes.tolist() == [0.0, 1.0, 0.0, 0.0]

    def test_apply_gate_by_name(self):
        state = QuantumState(1)
        apply_gate('X', state, 0)
        assert state.amplitudes.tolist() == [0.0, 1.0]

        apply_gate(Gate.HADAMARD, state, 0)
        assert state.amplitudes == pytest.approx([INV_SQRT2, -INV_SQRT2])

    def test_unknown_gate(self):
        with pytest.raises(ValueError):
            apply_gate('T', QuantumState(1), 0)


class TestMeasurement:
    """Tests for pseudo-measurement."""

    def test_ground_state_measures_zero(self, rng):
        state = QuantumState(4)
        for _ in range(20):
            assert measure_state(state, rng) == 0.0

    def test_all_ones_state(self, rng):
        state = QuantumState(3)
        for qubit in range(3):
            pauli_x(state, qubit)
        assert measure_state(state, rng) == pytest.approx(7 / 8)

    def test_zero_qubits(self, rng):
        assert measure_state(QuantumState(0), rng) == 0.0

    def test_result_in_unit_interval(self, rng):
        state = QuantumState(5)
        for qubit in range(5):
            hadamard(state, qubit)
        for _ in range(50):
            assert 0.0 <= measure_state(state, rng) < 1.0


class TestStateRegistry:
    """Tests for the named-state table."""

    def test_get_or_create(self):
        registry = StateRegistry()
        state, created = registry.get_or_create('a', 2)
        again, created_again = registry.get_or_create('a', 5)

        assert created
        assert not created_again
        assert again is state
        assert again.qubit_count == 2

    def test_lru_eviction(self):
        registry = StateRegistry(capacity=2)
        registry.get_or_create('a', 1)
        registry.get_or_create('b', 1)

        # Touching 'a' makes 'b' the eviction candidate
        registry.get('a')
        registry.get_or_create('c', 1)

        assert 'a' in registry
        assert 'b' not in registry
        assert 'c' in registry
        assert registry.evictions == 1

    def test_reset(self):
        registry = StateRegistry()
        registry.get_or_create('a', 1)
        registry.reset()
        assert len(registry) == 0
        assert registry.get('a') is None

    def test_values_is_snapshot(self):
        registry = StateRegistry()
        registry.get_or_create('a', 1)
        snapshot = registry.values()
        registry.get_or_create('b', 1)
        assert len(snapshot) == 1

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            StateRegistry(capacity=0)

    def test_remove_and_keys(self):
        registry = StateRegistry()
        state, _ = registry.get_or_create('a', 1)
        registry.get_or_create('b', 1)

        assert registry.remove('a') is state
        assert registry.remove('a') is None
        assert registry.keys() == ['b']

    def test_to_dict(self, rng):
        registry = StateRegistry()
        state, _ = registry.get_or_create('cache', 2)
        state.apply_decoherence(1.0, rng)

        assert registry.to_dict() == {
            'cache': {'qubits': 2, 'norm': 0.0, 'has_errors': True},
        }

    def test_concurrent_prepare_with_live_ticks(self):
        """Named states can be added while threaded ticks iterate them."""
        capacity = 16
        scheduler = ThreadScheduler('registry-test')
        opt = QuantumOptimizer(
            config=QuantumConfig(
                state_capacity=capacity,
                optimization_interval=0.001,
                coherence_interval=0.001,
                metrics_interval=0.001,
                annealing_steps=10,
                seed=8,
            ),
            scheduler=scheduler,
        )
        errors = []

        def worker(index):
            try:
                for i in range(2000):
                    opt.prepare_state(f'w{index}-{i % 40}', 2)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        try:
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=30.0)
            assert len(opt.states) <= capacity
        finally:
            opt.shutdown()
            scheduler.shutdown(timeout=1.0)

        assert errors == []
        assert not any(thread.is_alive() for thread in threads)
        assert all(task.failures == 0 for task in scheduler.tasks)
        assert any(task.runs > 0 for task in scheduler.tasks)
        assert opt.states.evictions > 0


class TestQuantumConfig:
    """Tests for quantum configuration."""

    def test_defaults(self):
        config = QuantumConfig()
        assert config.layers == 3
        assert config.optimization_interval == 1.0
        assert config.coherence_interval == 0.1
        assert config.metrics_interval == 5.0
        assert config.safe_mode is True

    @pytest.mark.parametrize('kwargs', [
        {'layers': -1},
        {'coherence_interval': 0},
        {'cooling_rate': 1.5},
        {'decoherence_rate': -0.1},
        {'state_capacity': 0},
        {'initial_temperature': 0},
    ])
    def test_invalid_config(self, kwargs):
        with pytest.raises(ConfigError):
            QuantumConfig(**kwargs)

    def test_unknown_keys(self):
        with pytest.raises(ConfigError):
            QuantumConfig.from_dict({'qubits': 4})


class TestQuantumOptimizer:
    """Tests for scoring and the periodic ticks."""

    def test_safe_mode_rejects_forbidden_problem(self, optimizer):
        assert optimizer.vanilla_safe_mode
        assert optimizer.optimize_with_quantum_algorithm('exploit-search', [0.5, 0.5]) == 0.0
        assert optimizer.optimize_with_quantum_algorithm(None, [0.5]) == 0.0
        assert counters(optimizer) == (0, 0, 0, 0, 0, 0)

    def test_unsafe_mode_accepts_any_problem(self, optimizer):
        optimizer.set_vanilla_safe_mode(False)

        result = optimizer.optimize_with_quantum_algorithm('exploit-search', [0.5, 0.5])

        assert 0.0 <= result <= 1.0
        assert optimizer.quantum_operations == 1
        assert optimizer.quantum_optimizations == 1

    def test_optimize_counts(self, optimizer):
        result = optimizer.optimize_with_quantum_algorithm('tuning', [0.1, 0.5, 0.9])

        assert 0.0 <= result < 1.0
        assert optimizer.quantum_operations == 1
        assert optimizer.superposition_states == 1
        assert optimizer.quantum_optimizations == 1

    def test_results_in_unit_interval(self, optimizer, rng):
        for _ in range(30):
            params = rng.uniform(0, 1, size=int(rng.integers(1, 8)))
            assert 0.0 <= optimizer.optimize('tuning', params) <= 1.0
        assert optimizer.quantum_operations == 30

    def test_empty_parameters(self, optimizer):
        assert optimizer.optimize('tuning', []) == 0.0
        assert optimizer.quantum_operations == 1
        assert optimizer.quantum_optimizations == 1

    def test_too_many_parameters(self, scheduler):
        opt = QuantumOptimizer(config=QuantumConfig(max_qubits=4, seed=1), scheduler=scheduler)

        assert opt.optimize('tuning', [0.5] * 5) == 0.0
        assert opt.quantum_operations == 1
        assert opt.superposition_states == 0
        assert opt.quantum_optimizations == 0
        opt.shutdown()

    def test_bad_parameters_score_zero(self, optimizer):
        assert optimizer.optimize('tuning', ['not a number']) == 0.0
        assert optimizer.quantum_operations == 1
        assert optimizer.quantum_optimizations == 0

    def test_seeded_scores_are_reproducible(self):
        scores = []
        for _ in range(2):
            opt = QuantumOptimizer(config=QuantumConfig(seed=5), scheduler=ManualScheduler())
            scores.append([opt.optimize('tuning', [0.2, 0.4, 0.6, 0.8]) for _ in range(10)])
            opt.shutdown()
        assert scores[0] == scores[1]

    def test_prepare_state(self, optimizer):
        state = optimizer.prepare_state('cache', 3)

        assert optimizer.prepare_state('cache', 3) is state
        assert len(optimizer.states) == 1
        with pytest.raises(ValueError):
            optimizer.prepare_state('huge', optimizer.config.max_qubits + 1)

    def test_coherence_ticks(self, optimizer, scheduler):
        scheduler.advance(1.0)
        assert optimizer.coherence_time == 10

    def test_coherence_tick_decays_states(self, optimizer, scheduler):
        state = optimizer.prepare_state('cache', 1)
        scheduler.advance(0.1)
        assert state.amplitudes[0] == pytest.approx(0.999)

    def test_annealing(self, optimizer):
        events = optimizer.simulate_annealing()

        assert 0 < events <= optimizer.config.annealing_steps
        assert optimizer.quantum_advantage == events

    def test_error_correction(self, optimizer, rng):
        flagged = optimizer.prepare_state('a', 1)
        optimizer.prepare_state('b', 1)
        flagged.apply_decoherence(1.0, rng)

        assert optimizer.perform_error_correction() == 1
        assert not flagged.has_errors
        assert optimizer.coherence_time == 1

    def test_entanglement_needs_two_states(self, optimizer):
        optimizer.prepare_state('a', 1)
        assert optimizer.generate_entanglement() is False

        optimizer.prepare_state('b', 1)
        assert optimizer.generate_entanglement() is True
        assert optimizer.entanglement_events == 1

    def test_optimization_tick(self, optimizer, scheduler):
        optimizer.prepare_state('a', 1)
        optimizer.prepare_state('b', 1)

        scheduler.advance(3.0)

        assert optimizer.entanglement_events == 3
        assert optimizer.quantum_advantage > 0

    def test_metrics_logging(self, scheduler, caplog):
        opt = QuantumOptimizer(
            HostHandle('metrics'),
            QuantumConfig(metrics_log_every=2, seed=3),
            scheduler,
        )
        assert opt.update_metrics() is False

        opt.optimize('tuning', [0.5])
        opt.optimize('tuning', [0.5])
        with caplog.at_level(logging.INFO):
            assert opt.update_metrics() is True

        assert 'Quantum operations: 2' in caplog.text
        opt.shutdown()

    def test_shutdown(self, scheduler):
        opt = QuantumOptimizer(config=QuantumConfig(seed=4), scheduler=scheduler)
        opt.prepare_state('a', 2)

        opt.shutdown()
        scheduler.advance(10.0)

        assert not opt.is_running
        assert len(opt.states) == 0
        assert opt.coherence_time == 0
        assert all(task.cancelled for task in scheduler.tasks)

    def test_optimize_after_shutdown(self, scheduler):
        opt = QuantumOptimizer(config=QuantumConfig(seed=4), scheduler=scheduler)
        opt.shutdown()

        assert opt.optimize('tuning', [0.5, 0.5]) == 0.0
        assert opt.quantum_optimizations == 0

    def test_get_stats(self, optimizer):
        optimizer.optimize('tuning', [0.3])
        stats = optimizer.get_stats()

        assert stats['quantum_operations'] == 1
        assert stats['safe_mode'] is True
        assert stats['running'] is True
