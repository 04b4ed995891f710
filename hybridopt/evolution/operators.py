"""
Evolutionary operators: selection, crossover, and mutation.

These operators drive the evolutionary search by:
- Selecting fit individuals for reproduction
- Combining parent genomes through single-point crossover
- Introducing variation through Gaussian mutation

All randomness comes from an explicit numpy Generator so runs can be
reproduced from a seed.
"""

from typing import List, Tuple

import numpy as np

from .genome import Genome, generate_genome_id


# =============================================================================
# Selection Operators
# =============================================================================

def tournament_selection(
    population: List[Genome],
    n_select: int,
    rng: np.random.Generator,
    tournament_size: int = 5,
) -> List[Genome]:
    """
    Tournament selection with replacement.

    Each tournament draws tournament_size contestants uniformly at random
    (the same genome may be drawn more than once) and keeps the fittest.
    Ties go to the contestant drawn first. Unevaluated genomes count as 0.

    Args:
        population: Current population with fitness cached
        n_select: Number of individuals to select
        rng: Random generator
        tournament_size: Number of contestants per tournament

    Returns:
        List of selected genomes (may contain duplicates, not copies)
    """
    if not population:
        raise ValueError("Cannot select from an empty population")
    if tournament_size < 1:
        raise ValueError(f"Tournament size must be at least 1, got {tournament_size}")

    selected = []
    for _ in range(n_select):
        contestants = rng.integers(0, len(population), size=tournament_size)

        winner = None
        winner_fitness = -1.0
        for index in contestants:
            candidate = population[index]
            candidate_fitness = candidate.fitness if candidate.fitness is not None else 0.0
            if candidate_fitness > winner_fitness:
                winner = candidate
                winner_fitness = candidate_fitness
        selected.append(winner)

    return selected


# =============================================================================
# Crossover Operators
# =============================================================================

def single_point_crossover(
    parent1: Genome,
    parent2: Genome,
    cut: int,
    generation: int = 0,
) -> Tuple[Genome, Genome]:
    """
    Single-point crossover at a fixed cut index.

    Genes before the cut come from the child's own parent, genes at or after
    the cut from the other parent.

    Example:
        Parent 1: [0, 0, 0, 0]
        Parent 2: [1, 1, 1, 1]
        Cut at 2:
        Child 1: [0, 0, 1, 1]
        Child 2: [1, 1, 0, 0]

    Args:
        parent1: First parent genome
        parent2: Second parent genome
        cut: Crossover point in [0, length)
        generation: Generation number for children

    Returns:
        Tuple of two unevaluated child genomes
    """
    if parent1.length != parent2.length:
        raise ValueError(
            f"Genome lengths must match ({parent1.length} != {parent2.length})"
        )
    if not 0 <= cut < parent1.length:
        raise ValueError(f"Cut {cut} out of range [0, {parent1.length})")

    child1_genes = np.concatenate([parent1.genes[:cut], parent2.genes[cut:]])
    child2_genes = np.concatenate([parent2.genes[:cut], parent1.genes[cut:]])

    lineage = (parent1.genome_id, parent2.genome_id)
    child1 = Genome(
        genes=child1_genes,
        genome_id=generate_genome_id(generation, 'cross'),
        generation=generation,
        parents=lineage,
    )
    child2 = Genome(
        genes=child2_genes,
        genome_id=generate_genome_id(generation, 'cross'),
        generation=generation,
        parents=lineage,
    )
    return child1, child2


def crossover(
    parent1: Genome,
    parent2: Genome,
    rng: np.random.Generator,
    crossover_rate: float = 0.8,
    generation: int = 0,
) -> Tuple[Genome, Genome, bool]:
    """
    Recombine two parents with probability crossover_rate.

    Otherwise the children are verbatim copies of the parents, cached fitness
    included.

    Returns:
        (child1, child2, crossed) where crossed tells whether crossover happened
    """
    if rng.random() < crossover_rate:
        cut = int(rng.integers(0, parent1.length))
        child1, child2 = single_point_crossover(parent1, parent2, cut, generation)
        return child1, child2, True

    child1 = parent1.copy()
    child2 = parent2.copy()
    for child in (child1, child2):
        child.genome_id = generate_genome_id(generation, 'copy')
        child.generation = generation
        child.parents = (parent1.genome_id, parent2.genome_id)
    return child1, child2, False


# =============================================================================
# Mutation Operators
# =============================================================================

def mutate_genome(
    genome: Genome,
    rng: np.random.Generator,
    mutation_rate: float = 0.1,
    sigma: float = 0.1,
) -> int:
    """
    Gaussian mutation, in place.

    Every gene independently, with probability mutation_rate, receives
    N(0, sigma) noise and is clamped back into [0, 1]. Cached fitness is
    invalidated only if at least one gene was mutated.

    Args:
        genome: Genome to mutate
        rng: Random generator
        mutation_rate: Per-gene mutation probability
        sigma: Standard deviation of the Gaussian noise

    Returns:
        Number of genes mutated
    """
    mutated = 0
    for i in range(genome.length):
        if rng.random() < mutation_rate:
            noise = rng.normal(0.0, sigma)
            genome.set_gene(i, genome.get_gene(i) + noise)
            mutated += 1
    return mutated
