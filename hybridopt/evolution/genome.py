"""
Genome representation for the evolutionary optimizer.

A Genome is a fixed-length vector of tuning parameters, each gene a real
value in [0, 1]. Gene i controls the optimization area selected by i mod 5
(region loading, entity processing, memory management, session networking,
tick scheduling), so a 20-gene genome holds four values per area.

Key features:
- Genes are always clamped into [0, 1] when written
- Fitness is cached on the genome and invalidated by any gene write
- Lineage (id, generation, parents) is kept for reporting
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple, Any, TYPE_CHECKING
import uuid

import numpy as np

if TYPE_CHECKING:
    from .fitness import FitnessScores


GENE_MIN = 0.0
GENE_MAX = 1.0


def generate_genome_id(generation: int = 0, prefix: str = '') -> str:
    """Generate a unique genome identifier."""
    short_uuid = uuid.uuid4().hex[:8]
    if prefix:
        return f"{prefix}_gen{generation}_{short_uuid}"
    return f"gen{generation}_{short_uuid}"


@dataclass(eq=False)
class Genome:
    """
    Fixed-length real-valued parameter vector.

    Attributes:
        genes: Gene values, each in [0, 1]
        genome_id: Unique identifier for this genome
        generation: Generation number when this genome was created
        parents: Tuple of parent genome IDs (for lineage tracking)
        fitness: Cached scalar fitness (None until evaluated)
        scores: Per-objective breakdown of the cached fitness
    """
    genes: np.ndarray
    genome_id: str = field(default_factory=generate_genome_id)
    generation: int = 0
    parents: Tuple[str, str] = ('random', 'random')
    fitness: Optional[float] = None
    scores: Optional['FitnessScores'] = None

    def __post_init__(self):
        """Validate gene vector."""
        self.genes = np.array(self.genes, dtype=float)
        if self.genes.ndim != 1:
            raise ValueError(f"Genes must be a 1-D vector, got shape {self.genes.shape}")
        if self.genes.size == 0:
            raise ValueError("Genome must have at least one gene")
        if np.any(np.isnan(self.genes)):
            raise ValueError("Genes must not be NaN")
        if np.any(self.genes < GENE_MIN) or np.any(self.genes > GENE_MAX):
            raise ValueError(f"Gene values must lie in [{GENE_MIN}, {GENE_MAX}]")

    @property
    def length(self) -> int:
        return int(self.genes.size)

    @property
    def is_evaluated(self) -> bool:
        return self.fitness is not None

    def get_gene(self, index: int) -> float:
        return float(self.genes[index])

    def set_gene(self, index: int, value: float) -> None:
        """Write a gene (clamped into [0, 1]) and invalidate cached fitness."""
        self.genes[index] = min(GENE_MAX, max(GENE_MIN, float(value)))
        self.invalidate()

    def get_genes(self) -> np.ndarray:
        """Return a copy of the gene vector."""
        return self.genes.copy()

    def invalidate(self) -> None:
        self.fitness = None
        self.scores = None

    def set_fitness(self, fitness: float, scores: Optional['FitnessScores'] = None) -> None:
        self.fitness = float(fitness)
        self.scores = scores

    def copy(self) -> 'Genome':
        """Create a deep copy of this genome, cached fitness included."""
        return Genome(
            genes=self.genes.copy(),
            genome_id=self.genome_id,
            generation=self.generation,
            parents=self.parents,
            fitness=self.fitness,
            scores=self.scores,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        d = {
            'genes': self.genes.tolist(),
            'genome_id': self.genome_id,
            'generation': self.generation,
            'parents': list(self.parents),
            'fitness': self.fitness,
        }
        if self.scores is not None:
            d['scores'] = self.scores.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Genome':
        """Create Genome from dictionary."""
        # Import here to avoid circular dependency
        from .fitness import FitnessScores

        scores = None
        if data.get('scores') is not None:
            scores = FitnessScores.from_dict(data['scores'])

        return cls(
            genes=np.array(data['genes'], dtype=float),
            genome_id=data['genome_id'],
            generation=data.get('generation', 0),
            parents=tuple(data.get('parents', ('random', 'random'))),
            fitness=data.get('fitness'),
            scores=scores,
        )

    def __repr__(self) -> str:
        fitness_str = f"{self.fitness:.4f}" if self.fitness is not None else "n/a"
        genes_str = ', '.join(f"{g:.3f}" for g in self.genes)
        return f"Genome(id={self.genome_id}, fitness={fitness_str}, genes=[{genes_str}])"


def create_random_genome(
    length: int,
    rng: np.random.Generator,
    generation: int = 0,
    prefix: str = 'rand',
) -> Genome:
    """
    Create a genome with every gene drawn uniformly from [0, 1).

    Args:
        length: Number of genes
        rng: Random generator
        generation: Generation number for this genome
        prefix: Prefix for genome ID

    Returns:
        A randomly initialized Genome
    """
    if length <= 0:
        raise ValueError(f"Genome length must be positive, got {length}")
    return Genome(
        genes=rng.uniform(GENE_MIN, GENE_MAX, size=length),
        genome_id=generate_genome_id(generation, prefix),
        generation=generation,
        parents=('random', 'random'),
    )


def genome_from_values(
    values: List[float],
    generation: int = 0,
    prefix: str = 'seed',
) -> Genome:
    """
    Create a Genome from explicit gene values.

    Useful for seeding a population with a known-good configuration.
    """
    return Genome(
        genes=np.array(values, dtype=float),
        genome_id=generate_genome_id(generation, prefix),
        generation=generation,
        parents=('seed', 'seed'),
    )
