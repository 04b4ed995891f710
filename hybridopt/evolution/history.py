"""
In-memory generation history for the evolutionary optimizer.

Keeps a bounded record of per-generation statistics so monitoring can show
how the search is trending. Nothing is written to disk.
"""

from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import List, Dict, Any, Optional
import uuid

import numpy as np

from .genome import Genome


@dataclass
class GenerationStats:
    """Statistics for a single generation."""
    generation: int
    best_fitness: float
    mean_fitness: float
    min_fitness: float
    std_fitness: float
    gene_diversity: float
    population_size: int
    crossovers: int
    mutations: int
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EvolutionHistory:
    """
    Tracks evolution progress over generations.

    Only the most recent `max_generations` entries are kept.
    """

    def __init__(self, max_generations: int = 500):
        self.max_generations = max_generations
        self.generations = deque(maxlen=max_generations)
        self._fitness_trajectory = deque(maxlen=max_generations)

    def __len__(self) -> int:
        return len(self.generations)

    @property
    def fitness_trajectory(self) -> List[float]:
        """Best fitness of each recorded generation, oldest first."""
        return list(self._fitness_trajectory)

    @property
    def latest(self) -> Optional[GenerationStats]:
        return self.generations[-1] if self.generations else None

    def record_generation(
        self,
        generation: int,
        population: List[Genome],
        crossovers: int = 0,
        mutations: int = 0,
    ) -> GenerationStats:
        """
        Record statistics for a completed generation.

        Args:
            generation: Generation number
            population: Population with fitness evaluated
            crossovers: Crossovers performed producing this generation
            mutations: Gene mutations performed producing this generation

        Returns:
            GenerationStats for this generation
        """
        fitnesses = [g.fitness for g in population if g.fitness is not None]
        if not fitnesses:
            fitnesses = [0.0]

        if population:
            genes = np.stack([g.genes for g in population])
            gene_diversity = float(np.mean(np.std(genes, axis=0)))
        else:
            gene_diversity = 0.0

        stats = GenerationStats(
            generation=generation,
            best_fitness=float(max(fitnesses)),
            mean_fitness=float(np.mean(fitnesses)),
            min_fitness=float(min(fitnesses)),
            std_fitness=float(np.std(fitnesses)),
            gene_diversity=gene_diversity,
            population_size=len(population),
            crossovers=crossovers,
            mutations=mutations,
            timestamp=datetime.now().isoformat(),
        )

        self.generations.append(stats)
        self._fitness_trajectory.append(stats.best_fitness)
        return stats

    def get_improvement_rate(self, window: int = 5) -> float:
        """
        Calculate recent improvement rate.

        Args:
            window: Number of recent generations to consider

        Returns:
            Improvement rate (positive = improving), inf if too few generations
        """
        trajectory = self.fitness_trajectory
        if len(trajectory) < window + 1:
            return float('inf')

        recent_best = max(trajectory[-window:])
        older_best = max(trajectory[-(window + 1):-1])
        return recent_best - older_best

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generations': [g.to_dict() for g in self.generations],
            'fitness_trajectory': self.fitness_trajectory,
        }


def generate_run_id() -> str:
    """Generate unique run identifier."""
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    short_uuid = uuid.uuid4().hex[:6]
    return f"evo_{timestamp}_{short_uuid}"
