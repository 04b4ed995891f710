"""
Evolutionary optimizer.

Orchestrates the evolution loop on a periodic task:
1. Snapshot host signals
2. Evaluate fitness of the current population
3. Select parents by tournament
4. Create offspring via crossover/mutation
5. Replace the population with the offspring
6. Track the best genome ever seen
7. Record statistics

The best-ever genome is published as a defensive copy, so monitoring can read
it at any time while a cycle is running.
"""

from dataclasses import dataclass, asdict, fields
from typing import Dict, Any, List, Optional, Sequence, Tuple
import logging
import threading

import numpy as np

from ..core.counters import AtomicCounter
from ..core.errors import ConfigError, TaskCancelled
from ..core.scheduler import Scheduler, ScheduledTask, ThreadScheduler
from ..core.signals import HostSignals, MetricsSnapshot, capture_snapshot
from .genome import Genome
from .fitness import assign_fitness, TARGET_RATE
from .population import PopulationManager, get_population_stats
from .history import EvolutionHistory, generate_run_id

logger = logging.getLogger(__name__)


@dataclass
class EvolutionConfig:
    """Configuration for the evolutionary optimizer."""
    # Population parameters
    population_size: int = 50
    genome_length: int = 20
    tournament_size: int = 5

    # Evolution rates
    mutation_rate: float = 0.1
    crossover_rate: float = 0.8
    mutation_sigma: float = 0.1

    # Scheduling
    evolution_interval: float = 30.0

    # Fitness
    target_rate: float = TARGET_RATE

    # Bookkeeping
    history_size: int = 500
    seed: Optional[int] = None

    def __post_init__(self):
        if self.population_size < 1:
            raise ConfigError(f"population_size must be >= 1, got {self.population_size}")
        if self.genome_length < 1:
            raise ConfigError(f"genome_length must be >= 1, got {self.genome_length}")
        if self.tournament_size < 1:
            raise ConfigError(f"tournament_size must be >= 1, got {self.tournament_size}")
        for name in ('mutation_rate', 'crossover_rate'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must lie in [0, 1], got {value}")
        if self.mutation_sigma < 0:
            raise ConfigError(f"mutation_sigma must be >= 0, got {self.mutation_sigma}")
        if self.evolution_interval <= 0:
            raise ConfigError(f"evolution_interval must be > 0, got {self.evolution_interval}")
        if self.target_rate <= 0:
            raise ConfigError(f"target_rate must be > 0, got {self.target_rate}")
        if self.history_size < 1:
            raise ConfigError(f"history_size must be >= 1, got {self.history_size}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown evolution config keys: {sorted(unknown)}")
        return cls(**data)


class EvolutionaryOptimizer:
    """
    Genetic optimizer for host tuning parameters.

    Evolves a population of fixed-length genomes toward higher fitness against
    live host signals. Call initialize() to build the population and start the
    periodic evolution task; perform_evolution() can also be called directly.
    """

    def __init__(
        self,
        config: Optional[EvolutionConfig] = None,
        signals: Optional[HostSignals] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            config: Evolution configuration (defaults if omitted)
            signals: Host signal collaborator; None means every signal is
                unavailable and the fitness model uses its defaults
            scheduler: Scheduler to run the evolution task on; a private
                ThreadScheduler is created on initialize() if omitted
            rng: Random generator (seeded from config.seed if omitted)
        """
        self.config = config or EvolutionConfig()
        self.signals = signals
        self.scheduler = scheduler
        self._owns_scheduler = False
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.run_id = generate_run_id()

        self.manager = PopulationManager(
            population_size=self.config.population_size,
            genome_length=self.config.genome_length,
            mutation_rate=self.config.mutation_rate,
            crossover_rate=self.config.crossover_rate,
            tournament_size=self.config.tournament_size,
            mutation_sigma=self.config.mutation_sigma,
            target_rate=self.config.target_rate,
            rng=self.rng,
        )
        self.history = EvolutionHistory(self.config.history_size)
        self.last_snapshot: Optional[MetricsSnapshot] = None

        self._generations = AtomicCounter()
        self._evolution_cycles = AtomicCounter()
        self._mutations = AtomicCounter()
        self._crossovers = AtomicCounter()

        # (genome copy, fitness), replaced as one pair
        self._best: Tuple[Optional[Genome], float] = (None, 0.0)
        self._initialized = False
        self._task: Optional[ScheduledTask] = None
        self._cycle_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self, seeds: Optional[Sequence[Sequence[float]]] = None) -> None:
        """
        Build a random population and start periodic evolution.

        The first genome is evaluated and becomes the provisional best unless a
        best from an earlier run is at least as fit.
        Calling this on an initialized optimizer does nothing.

        Args:
            seeds: Optional known-good gene vectors to include in the population
        """
        if self._initialized:
            logger.info("Evolutionary optimizer %s already initialized", self.run_id)
            return

        logger.info("Initializing evolutionary optimizer %s", self.run_id)
        with self._cycle_lock:
            self.manager.initialize(seeds)
            snapshot = capture_snapshot(self.signals)
            self.last_snapshot = snapshot

            first = self.manager.population[0]
            fitness = assign_fitness(first, snapshot, self.config.target_rate)
            best_genome, best_fitness = self._best
            if best_genome is None or fitness > best_fitness:
                self._best = (first.copy(), fitness)
            self._initialized = True

        if self.scheduler is None:
            self.scheduler = ThreadScheduler(thread_prefix='hybridopt-evolution')
            self._owns_scheduler = True
        self._task = self.scheduler.schedule(
            'evolution',
            self.config.evolution_interval,
            self._evolution_tick,
            initial_delay=0.0,
        )

        logger.info(
            "Evolutionary optimizer initialized: population=%d, genome length=%d, "
            "mutation rate=%.0f%%, crossover rate=%.0f%%",
            self.config.population_size,
            self.config.genome_length,
            self.config.mutation_rate * 100,
            self.config.crossover_rate * 100,
        )

    def shutdown(self) -> None:
        """Stop periodic evolution. Counters and the best genome stay readable."""
        self._initialized = False
        if self._task is not None:
            self._task.cancel()
            self._task = None
        if self._owns_scheduler and self.scheduler is not None:
            self.scheduler.shutdown()
            self.scheduler = None
            self._owns_scheduler = False
        logger.info("Evolutionary optimizer %s stopped", self.run_id)

    def _evolution_tick(self) -> None:
        if not self._initialized:
            raise TaskCancelled()
        self.perform_evolution()

    # -------------------------------------------------------------------------
    # Evolution
    # -------------------------------------------------------------------------

    def perform_evolution(self) -> bool:
        """
        Run one evolution cycle.

        Does nothing if the optimizer has not been initialized.

        Returns:
            True if a cycle ran
        """
        if not self._initialized:
            return False

        with self._cycle_lock:
            snapshot = capture_snapshot(self.signals)
            self.last_snapshot = snapshot

            # 1. Evaluate fitness
            self.manager.evaluate(snapshot)

            # 2-4. Select, reproduce, replace
            stats = self.manager.next_generation()
            self._crossovers.increment(stats.crossovers)
            self._mutations.increment(stats.mutations)

            # 5. Track best (offspring with invalidated fitness are scored first)
            self.manager.evaluate(snapshot, only_missing=True)
            self._update_best_genome(self.manager.population)

            # 6. Counters and history
            self._generations.increment()
            self._evolution_cycles.increment()
            self.history.record_generation(
                generation=self.manager.generation,
                population=self.manager.population,
                crossovers=stats.crossovers,
                mutations=stats.mutations,
            )

        return True

    def _update_best_genome(self, population: List[Genome]) -> None:
        for genome in population:
            if genome.fitness is not None and genome.fitness > self._best[1]:
                self._best = (genome.copy(), genome.fitness)
                logger.info("New best genome found! Fitness: %.4f", genome.fitness)

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    @property
    def generations(self) -> int:
        return self._generations.value

    @property
    def evolution_cycles(self) -> int:
        return self._evolution_cycles.value

    @property
    def mutations(self) -> int:
        return self._mutations.value

    @property
    def crossovers(self) -> int:
        return self._crossovers.value

    @property
    def best_fitness(self) -> float:
        return self._best[1]

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def population(self) -> List[Genome]:
        """The current generation (list copy; genomes are shared)."""
        return list(self.manager.population)

    def get_best_genome(self) -> Optional[Genome]:
        """Return a copy of the best genome found, or None before initialize()."""
        best, _ = self._best
        return best.copy() if best is not None else None

    def get_stats(self) -> Dict[str, Any]:
        """Counters and headline values for monitoring."""
        return {
            'run_id': self.run_id,
            'initialized': self._initialized,
            'generations': self.generations,
            'evolution_cycles': self.evolution_cycles,
            'mutations': self.mutations,
            'crossovers': self.crossovers,
            'best_fitness': self.best_fitness,
            'improvement_rate': self.history.get_improvement_rate(),
            'population': get_population_stats(self.manager.population),
        }
