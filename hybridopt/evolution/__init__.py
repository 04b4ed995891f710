"""
Evolutionary optimization of host tuning parameters.

This module provides a genetic algorithm that evolves fixed-length vectors of
tuning parameters (genes in [0, 1]) toward higher fitness against live host
performance signals.

Key components:
- Genome: Fixed-length gene vector with cached fitness
- FitnessScores: Per-objective fitness breakdown
- PopulationManager: Holds a generation and breeds the next one
- EvolutionaryOptimizer: Periodic evolution loop with best-ever tracking
- Operators: Tournament selection, single-point crossover, Gaussian mutation

Example usage:
    from hybridopt.core import ManualScheduler, StaticSignals
    from hybridopt.evolution import EvolutionaryOptimizer, EvolutionConfig

    signals = StaticSignals(throughput_rate=17.5, loaded_regions=1200)
    scheduler = ManualScheduler()
    optimizer = EvolutionaryOptimizer(EvolutionConfig(seed=7), signals, scheduler)
    optimizer.initialize()
    scheduler.advance(300)  # eleven cycles: t=0, 30, ..., 300

    print(f"Best fitness: {optimizer.best_fitness:.4f}")
"""

from .genome import Genome, create_random_genome, genome_from_values
from .fitness import (
    FitnessScores,
    compute_fitness,
    evaluate_fitness,
    weighted_fitness,
)
from .operators import (
    tournament_selection,
    single_point_crossover,
    crossover,
    mutate_genome,
)
from .population import (
    PopulationManager,
    ReproductionStats,
    create_initial_population,
    get_population_stats,
)
from .history import EvolutionHistory, GenerationStats
from .engine import EvolutionaryOptimizer, EvolutionConfig

__all__ = [
    # Core classes
    'Genome',
    'FitnessScores',
    'PopulationManager',
    'ReproductionStats',
    'EvolutionaryOptimizer',
    'EvolutionConfig',
    'EvolutionHistory',
    'GenerationStats',
    # Genome helpers
    'create_random_genome',
    'genome_from_values',
    # Fitness
    'compute_fitness',
    'evaluate_fitness',
    'weighted_fitness',
    # Operators
    'tournament_selection',
    'single_point_crossover',
    'crossover',
    'mutate_genome',
    # Population
    'create_initial_population',
    'get_population_stats',
]
