#!/bin/python
"""
Command line entry point: solves a Maximum Independent Set instance with the
iterated local search (or the population-based local search) and prints the
best independent set found.
"""
import argparse
import logging
import sys
from typing import List, Optional

from Core.population import PopulationParameters
from Core.solution_pool import EmptyPoolError
from Core.utils import setup_logging
from algorithms.ILS.iterated_local_search import IteratedLocalSearchParameters, iterated_local_search
from algorithms.ILS.population_search import PopulationSearchParameters, population_local_search
from problems.MIS.mis import Graph, MaximumIndependentSetScheme


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search for a maximum independent set with iterated local search."
    )
    parser.add_argument(
        "--input",
        "-i",
        required=True,
        help="Graph file: number of vertices followed by one 'u v' pair per edge"
    )
    parser.add_argument(
        "--time-limit",
        "-t",
        type=float,
        required=True,
        help="Time limit in seconds"
    )
    parser.add_argument(
        "--iter",
        type=int,
        default=-1,
        help="Maximum number of iterations (default: -1, no limit)"
    )
    parser.add_argument(
        "--pert",
        type=int,
        default=1,
        help="Minimum number of perturbations per iteration (default: 1)"
    )
    parser.add_argument(
        "--restarts",
        type=int,
        default=-1,
        help="Maximum number of restarts (default: -1, no limit)"
    )
    parser.add_argument(
        "--stagnation",
        type=int,
        default=-1,
        help="Restart after this many iterations without improvement (default: -1, never)"
    )
    parser.add_argument(
        "--pool-size",
        type=int,
        default=1,
        help="Maximum size of the solution pool (default: 1)"
    )
    parser.add_argument(
        "--seed",
        "-s",
        type=int,
        default=123456789,
        help="Random seed for reproducibility (default: 123456789)"
    )
    parser.add_argument(
        "--algorithm",
        "-a",
        default="ils",
        choices=["ils", "population"],
        help="Search to run (default: ils)"
    )
    parser.add_argument(
        "--population-min",
        type=int,
        default=25,
        help="Minimum population size for the population search (default: 25)"
    )
    parser.add_argument(
        "--population-max",
        type=int,
        default=65,
        help="Maximum population size for the population search (default: 65)"
    )
    parser.add_argument(
        "--verbosity",
        "-v",
        type=int,
        default=1,
        choices=[0, 1, 2],
        help="0: silent, 1: new best solutions, 2: every iteration (default: 1)"
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Also write the log to this directory"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parse command line arguments, run the search and print the result."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.time_limit <= 0:
        parser.error("--time-limit must be positive")

    logger = setup_logging(
        args.algorithm,
        "mis",
        log_dir=args.log_dir,
        level=logging.DEBUG if args.verbosity >= 2 else logging.INFO,
    )

    print(f"Loading instance: {args.input}")
    try:
        graph = Graph.from_file(args.input)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Number of vertices: {graph.num_vertices}")
    scheme = MaximumIndependentSetScheme(graph)

    try:
        if args.algorithm == "ils":
            params = IteratedLocalSearchParameters(
                time_limit=args.time_limit,
                maximum_number_of_iterations=args.iter,
                maximum_number_of_iterations_without_improvement=args.stagnation,
                minimum_number_of_perturbations=args.pert,
                maximum_number_of_restarts=args.restarts,
                maximum_size_of_the_solution_pool=args.pool_size,
                seed=args.seed,
                verbosity_level=args.verbosity,
                logger=logger,
            )
            print("\n=== Iterated Local Search ===")
            output = iterated_local_search(scheme, params)
        else:
            params = PopulationSearchParameters(
                time_limit=args.time_limit,
                maximum_number_of_iterations=args.iter,
                maximum_size_of_the_solution_pool=args.pool_size,
                seed=args.seed,
                population=PopulationParameters(
                    minimum_size=args.population_min,
                    maximum_size=args.population_max,
                ),
                verbosity_level=args.verbosity,
                logger=logger,
            )
            print("\n=== Population Local Search ===")
            output = population_local_search(scheme, scheme.crossover, params)
    except ValueError as exc:
        parser.error(str(exc))

    print("\n=== Results ===")
    try:
        best_solution, best_cost = output.solution_pool.best()
    except EmptyPoolError:
        print("No solution found.")
        return 0
    print(f"Best independent set size: {scheme.cost_to_string(best_cost)}")
    print(f"Found after: {output.best.time:.3f} seconds")
    print(f"Total run time: {output.time:.3f} seconds")
    print(f"Iterations: {output.number_of_iterations}")
    print(f"Restarts: {output.number_of_restarts}")
    print("\nVertices in the best solution:")
    print(" ".join(str(v) for v in best_solution.vertices()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
