"""
Fitness evaluation for the evolutionary optimizer.

Fitness is a weighted sum of four sub-scores, clamped to [0, 1]:
- throughput: how much the genome is expected to lift the throughput rate
  given current host load (40%)
- memory_efficiency: rewards low gene values (30%)
- capacity: rewards high gene values quadratically (20%)
- compatibility: penalizes extreme gene values above 0.8 (10%)

Memory efficiency and capacity pull in opposite directions, so the search
settles on a compromise rather than pinning every gene to a bound.

Evaluation is a pure function of the genome and a MetricsSnapshot.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, List, TYPE_CHECKING
import logging

import numpy as np

from ..core.signals import MetricsSnapshot

if TYPE_CHECKING:
    from .genome import Genome

logger = logging.getLogger(__name__)


# Fitness weights for weighted sum (must sum to 1.0)
FITNESS_WEIGHTS = {
    'throughput': 0.4,
    'memory_efficiency': 0.3,
    'capacity': 0.2,
    'compatibility': 0.1,
}

TARGET_RATE = 20.0

# Throughput score used when the computation itself fails
DEFAULT_THROUGHPUT_SCORE = 0.5

# Impact of each optimization area when its signal is unavailable, indexed by gene i mod 5
DEFAULT_IMPACTS = (0.1, 0.1, 0.1, 0.05, 0.05)

COMPATIBILITY_THRESHOLD = 0.8
COMPATIBILITY_PENALTY = 0.05


@dataclass
class FitnessScores:
    """
    Per-objective fitness breakdown for a genome.

    Each score is already clamped to its contributing range.
    """
    throughput: float
    memory_efficiency: float
    capacity: float
    compatibility: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FitnessScores':
        return cls(**data)

    def __repr__(self) -> str:
        return (
            f"FitnessScores(tput={self.throughput:.3f}, "
            f"mem={self.memory_efficiency:.3f}, "
            f"cap={self.capacity:.3f}, "
            f"compat={self.compatibility:.3f})"
        )


def weighted_fitness(scores: FitnessScores) -> float:
    """
    Compute the scalar fitness of a score breakdown.

    Args:
        scores: FitnessScores object

    Returns:
        Scalar fitness value in [0, 1]
    """
    total = (
        FITNESS_WEIGHTS['throughput'] * scores.throughput +
        FITNESS_WEIGHTS['memory_efficiency'] * scores.memory_efficiency +
        FITNESS_WEIGHTS['capacity'] * scores.capacity +
        FITNESS_WEIGHTS['compatibility'] * scores.compatibility
    )
    return float(min(1.0, max(0.0, total)))


# =============================================================================
# Impact terms
# =============================================================================

def region_impact(loaded_regions) -> float:
    """More loaded regions leave more to gain from region loading tuning."""
    if loaded_regions is None:
        return DEFAULT_IMPACTS[0]
    return min(0.3, loaded_regions / 1000.0 * 0.1)


def entity_impact(active_entities) -> float:
    if active_entities is None:
        return DEFAULT_IMPACTS[1]
    return min(0.25, active_entities / 5000.0 * 0.15)


def memory_impact(memory_pressure) -> float:
    if memory_pressure is None:
        return DEFAULT_IMPACTS[2]
    return min(0.2, memory_pressure * 0.25)


def session_impact(active_sessions) -> float:
    if active_sessions is None:
        return DEFAULT_IMPACTS[3]
    return min(0.2, active_sessions / 50.0 * 0.15)


def load_impact(load_average) -> float:
    # Non-positive load average is the "unavailable" sentinel
    if load_average is None or load_average <= 0:
        return DEFAULT_IMPACTS[4]
    return min(0.15, load_average / 4.0 * 0.1)


def compute_impacts(snapshot: MetricsSnapshot) -> List[float]:
    """
    Impact multiplier of each optimization area, indexed by gene i mod 5.

    Order: region loading, entity processing, memory management,
    session networking, tick scheduling.
    """
    return [
        region_impact(snapshot.loaded_regions),
        entity_impact(snapshot.active_entities),
        memory_impact(snapshot.memory_pressure),
        session_impact(snapshot.active_sessions),
        load_impact(snapshot.load_average),
    ]


# =============================================================================
# Sub-scores
# =============================================================================

def throughput_score(
    genome: 'Genome',
    snapshot: MetricsSnapshot,
    target_rate: float = TARGET_RATE,
) -> float:
    """
    Expected throughput improvement from a genome.

    Each gene is weighted by the impact of its optimization area. The mean
    contribution is scaled by the current deficit against the target rate,
    with a 0.1 floor so a healthy host still rewards good genomes.

    Any failure yields DEFAULT_THROUGHPUT_SCORE.
    """
    try:
        impacts = compute_impacts(snapshot)
        improvement = 0.0
        for i, gene in enumerate(genome.genes):
            improvement += float(gene) * impacts[i % len(impacts)]

        deficit = max(0.0, target_rate - snapshot.throughput_rate)
        normalized = improvement / genome.length
        score = normalized * (deficit / target_rate + 0.1)
        if np.isnan(score):
            raise ValueError("throughput score is NaN")
        return float(min(1.0, max(0.0, score)))
    except Exception as e:
        logger.debug("Throughput score calculation error: %s", e)
        return DEFAULT_THROUGHPUT_SCORE


def memory_efficiency_score(genome: 'Genome') -> float:
    """Lower gene values use less memory."""
    return float(np.mean((1.0 - genome.genes) * 0.05))


def capacity_score(genome: 'Genome') -> float:
    """Quadratic reward for higher gene values."""
    return float(np.mean(genome.genes ** 2 * 0.1))


def compatibility_score(genome: 'Genome') -> float:
    """Start at 1.0 and lose a fixed penalty for every extreme gene."""
    extreme = int(np.sum(genome.genes > COMPATIBILITY_THRESHOLD))
    return max(0.0, 1.0 - COMPATIBILITY_PENALTY * extreme)


def compute_fitness(
    genome: 'Genome',
    snapshot: MetricsSnapshot,
    target_rate: float = TARGET_RATE,
) -> FitnessScores:
    """
    Evaluate every objective for a genome.

    Args:
        genome: Genome to score
        snapshot: Host signals to score against
        target_rate: Throughput rate considered healthy

    Returns:
        FitnessScores with all objectives evaluated
    """
    return FitnessScores(
        throughput=throughput_score(genome, snapshot, target_rate),
        memory_efficiency=memory_efficiency_score(genome),
        capacity=capacity_score(genome),
        compatibility=compatibility_score(genome),
    )


def evaluate_fitness(
    genome: 'Genome',
    snapshot: MetricsSnapshot,
    target_rate: float = TARGET_RATE,
) -> float:
    """Scalar fitness of a genome in [0, 1]. Does not touch the genome's cache."""
    return weighted_fitness(compute_fitness(genome, snapshot, target_rate))


def assign_fitness(
    genome: 'Genome',
    snapshot: MetricsSnapshot,
    target_rate: float = TARGET_RATE,
) -> float:
    """Evaluate a genome and store the result on it."""
    scores = compute_fitness(genome, snapshot, target_rate)
    fitness = weighted_fitness(scores)
    genome.set_fitness(fitness, scores)
    return fitness
