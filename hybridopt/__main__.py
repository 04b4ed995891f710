"""
Command-line entry point.

Usage:
    python -m hybridopt evolve [--generations N] [--population N] [--seed N]
    python -m hybridopt quantum PARAM [PARAM ...] [--problem KIND] [--unsafe]

Both commands run on a virtual clock, so no real time passes between ticks.
Host signals are fixed values given on the command line.
"""

import argparse
import logging
import sys

from .core.host import HostHandle
from .core.scheduler import ManualScheduler
from .core.signals import StaticSignals
from .evolution.engine import EvolutionaryOptimizer, EvolutionConfig
from .quantum.optimizer import QuantumOptimizer, QuantumConfig


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='hybridopt',
        description='Evolutionary and quantum-simulation parameter optimizers',
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Enable debug logging'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    evolve = subparsers.add_parser('evolve', help='Run the evolutionary optimizer')
    evolve.add_argument(
        '--generations', type=int, default=10,
        help='Number of evolution cycles (default: 10)'
    )
    evolve.add_argument(
        '--population', type=int, default=50,
        help='Population size (default: 50)'
    )
    evolve.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    evolve.add_argument(
        '--rate', type=float, default=17.0,
        help='Observed throughput rate (default: 17.0)'
    )
    evolve.add_argument('--regions', type=int, default=None, help='Loaded region count')
    evolve.add_argument('--entities', type=int, default=None, help='Active entity count')
    evolve.add_argument('--memory', type=float, default=None, help='Memory pressure in [0, 1]')
    evolve.add_argument('--sessions', type=int, default=None, help='Active session count')
    evolve.add_argument('--load', type=float, default=None, help='System load average')

    quantum = subparsers.add_parser('quantum', help='Score parameters with the quantum optimizer')
    quantum.add_argument(
        'parameters', type=float, nargs='+',
        help='Parameter values (one qubit each)'
    )
    quantum.add_argument(
        '--problem', type=str, default='tuning',
        help='Problem kind label (default: tuning)'
    )
    quantum.add_argument(
        '--unsafe', action='store_true',
        help='Disable the safe-mode problem filter'
    )
    quantum.add_argument(
        '--seconds', type=float, default=5.0,
        help='Virtual seconds of background ticks to run (default: 5)'
    )
    quantum.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    return parser.parse_args(argv)


def run_evolve(args) -> int:
    config = EvolutionConfig(population_size=args.population, seed=args.seed)
    signals = StaticSignals(
        throughput_rate=args.rate,
        loaded_regions=args.regions,
        active_entities=args.entities,
        memory_pressure=args.memory,
        active_sessions=args.sessions,
        load_average=args.load,
    )
    scheduler = ManualScheduler()
    optimizer = EvolutionaryOptimizer(config, signals, scheduler)
    optimizer.initialize()

    print("=" * 60)
    print("   hybridopt - Evolutionary Optimizer")
    print("=" * 60)
    print(f"   Population size:    {config.population_size}")
    print(f"   Genome length:      {config.genome_length}")
    print(f"   Generations:        {args.generations}")

    # The task fires at t=0, then every interval
    if args.generations > 0:
        scheduler.run_pending()
    for _ in range(args.generations - 1):
        scheduler.advance(config.evolution_interval)

    optimizer.shutdown()

    print("\nResults:")
    print(f"   Generations:        {optimizer.generations}")
    print(f"   Crossovers:         {optimizer.crossovers}")
    print(f"   Mutations:          {optimizer.mutations}")
    print(f"   Best fitness:       {optimizer.best_fitness:.4f}")
    best = optimizer.get_best_genome()
    if best is not None:
        print(f"   Best genes:         {', '.join(f'{g:.3f}' for g in best.genes)}")
    return 0


def run_quantum(args) -> int:
    config = QuantumConfig(safe_mode=not args.unsafe, seed=args.seed)
    scheduler = ManualScheduler()
    optimizer = QuantumOptimizer(HostHandle('cli'), config, scheduler)

    score = optimizer.optimize_with_quantum_algorithm(args.problem, args.parameters)
    scheduler.advance(args.seconds)
    stats = optimizer.get_stats()
    optimizer.shutdown()

    print("=" * 60)
    print("   hybridopt - Quantum Optimizer")
    print("=" * 60)
    print(f"   Problem:            {args.problem}")
    print(f"   Qubits:             {len(args.parameters)}")
    print(f"   Score:              {score:.4f}")
    print(f"   Tunneling events:   {stats['quantum_advantage']}")
    print(f"   Coherence ticks:    {stats['coherence_time']}")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    if args.command == 'evolve':
        return run_evolve(args)
    return run_quantum(args)


if __name__ == '__main__':
    sys.exit(main())
