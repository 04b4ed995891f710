"""
Population management for evolutionary search.

Handles:
- Initial population creation (seeded + random)
- Fitness evaluation of a whole generation against one metrics snapshot
- Producing the next generation (selection, crossover, mutation)
- Population statistics

A generation is never edited in place across a generation boundary: the next
generation is built off to the side and swapped in whole by replace().
"""

from dataclasses import dataclass
from typing import List, Dict, Any, Optional, Sequence, Tuple

import numpy as np

from ..core.signals import MetricsSnapshot
from .genome import Genome, create_random_genome, genome_from_values
from .fitness import assign_fitness, TARGET_RATE
from .operators import tournament_selection, crossover, mutate_genome


def create_initial_population(
    population_size: int,
    genome_length: int,
    rng: np.random.Generator,
    seeds: Optional[Sequence[Sequence[float]]] = None,
) -> List[Genome]:
    """
    Create the first generation.

    Args:
        population_size: Total population size
        genome_length: Genes per genome
        rng: Random generator
        seeds: Optional known-good gene vectors placed first

    Returns:
        List of Genome objects forming the initial population
    """
    if population_size <= 0:
        raise ValueError(f"Population size must be positive, got {population_size}")

    population = []
    seeds = seeds if seeds is not None else []
    for i, values in enumerate(seeds[:population_size]):
        if len(values) != genome_length:
            raise ValueError(
                f"Seed {i} has {len(values)} genes, expected {genome_length}"
            )
        population.append(genome_from_values(values, generation=0, prefix=f'seed{i:02d}'))

    while len(population) < population_size:
        population.append(create_random_genome(genome_length, rng, generation=0))

    return population


@dataclass
class ReproductionStats:
    """Operator counts from producing one generation."""
    crossovers: int = 0
    mutations: int = 0


class PopulationManager:
    """
    Holds the current generation and breeds the next one.

    Reproduction follows a fixed recipe:
    1. Tournament-select one parent per population slot
    2. Walk parents in consecutive pairs (the partner of the last parent
       wraps to the first when the count is odd)
    3. Cross each pair over with probability crossover_rate, else copy it
    4. Mutate each child independently
    5. Stop once the new generation holds population_size genomes
    """

    def __init__(
        self,
        population_size: int = 50,
        genome_length: int = 20,
        mutation_rate: float = 0.1,
        crossover_rate: float = 0.8,
        tournament_size: int = 5,
        mutation_sigma: float = 0.1,
        target_rate: float = TARGET_RATE,
        rng: Optional[np.random.Generator] = None,
    ):
        self.population_size = population_size
        self.genome_length = genome_length
        self.mutation_rate = mutation_rate
        self.crossover_rate = crossover_rate
        self.tournament_size = tournament_size
        self.mutation_sigma = mutation_sigma
        self.target_rate = target_rate
        self.rng = rng if rng is not None else np.random.default_rng()

        self.population: List[Genome] = []
        self.generation = 0

    def initialize(self, seeds: Optional[Sequence[Sequence[float]]] = None) -> List[Genome]:
        """Build a fresh randomized population."""
        self.population = create_initial_population(
            self.population_size,
            self.genome_length,
            self.rng,
            seeds=seeds,
        )
        self.generation = 0
        return self.population

    def evaluate(self, snapshot: MetricsSnapshot, only_missing: bool = False) -> int:
        """
        Compute and cache fitness for the current population.

        Args:
            snapshot: Host signals to score against
            only_missing: Skip genomes whose cached fitness is still valid

        Returns:
            Number of genomes evaluated
        """
        evaluated = 0
        for genome in self.population:
            if only_missing and genome.is_evaluated:
                continue
            assign_fitness(genome, snapshot, self.target_rate)
            evaluated += 1
        return evaluated

    def select_parents(self) -> List[Genome]:
        """One tournament winner per population slot."""
        return tournament_selection(
            self.population,
            n_select=self.population_size,
            rng=self.rng,
            tournament_size=self.tournament_size,
        )

    def reproduce(self, parents: List[Genome]) -> Tuple[List[Genome], ReproductionStats]:
        """
        Breed a new generation from selected parents.

        Returns:
            (offspring, stats) with exactly population_size offspring
        """
        if not parents:
            raise ValueError("Cannot reproduce without parents")

        stats = ReproductionStats()
        offspring: List[Genome] = []
        next_generation = self.generation + 1

        for i in range(0, self.population_size, 2):
            parent1 = parents[i % len(parents)]
            parent2 = parents[(i + 1) % len(parents)]

            child1, child2, crossed = crossover(
                parent1, parent2, self.rng,
                crossover_rate=self.crossover_rate,
                generation=next_generation,
            )
            if crossed:
                stats.crossovers += 1

            stats.mutations += mutate_genome(
                child1, self.rng, self.mutation_rate, self.mutation_sigma
            )
            stats.mutations += mutate_genome(
                child2, self.rng, self.mutation_rate, self.mutation_sigma
            )

            offspring.append(child1)
            if len(offspring) < self.population_size:
                offspring.append(child2)

        return offspring, stats

    def replace(self, offspring: List[Genome]) -> None:
        """Swap in a fully built generation."""
        if len(offspring) != self.population_size:
            raise ValueError(
                f"New generation has {len(offspring)} genomes, expected {self.population_size}"
            )
        self.population = offspring
        self.generation += 1

    def next_generation(self) -> ReproductionStats:
        """Select, reproduce and replace in one step."""
        parents = self.select_parents()
        offspring, stats = self.reproduce(parents)
        self.replace(offspring)
        return stats


def get_population_stats(population: List[Genome]) -> Dict[str, Any]:
    """
    Compute summary statistics for a population.

    Returns:
        Dictionary with fitness and diversity statistics
    """
    if not population:
        return {
            'size': 0,
            'evaluated': 0,
            'best_fitness': 0.0,
            'mean_fitness': 0.0,
            'min_fitness': 0.0,
            'std_fitness': 0.0,
            'gene_diversity': 0.0,
        }

    fitnesses = [g.fitness for g in population if g.fitness is not None]
    genes = np.stack([g.genes for g in population])

    # Mean per-gene standard deviation across the population
    gene_diversity = float(np.mean(np.std(genes, axis=0)))

    return {
        'size': len(population),
        'evaluated': len(fitnesses),
        'best_fitness': float(max(fitnesses)) if fitnesses else 0.0,
        'mean_fitness': float(np.mean(fitnesses)) if fitnesses else 0.0,
        'min_fitness': float(min(fitnesses)) if fitnesses else 0.0,
        'std_fitness': float(np.std(fitnesses)) if fitnesses else 0.0,
        'gene_diversity': gene_diversity,
    }
