"""
Population-based local search.

Fills a population with locally optimal initial solutions, then repeatedly
picks two parents by binary tournament, recombines them with a caller-supplied
operator, repairs the child with the scheme's local search and adds it back to
the population, whose survivor selection keeps it both good and diverse.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import numpy as np

from Core.population import Population, PopulationParameters
from Core.scheme import Scheme
from Core.solution_pool import SolutionPool
from Core.utils import Timer

from .iterated_local_search import BestObservation, IteratedLocalSearchOutput

# (parent_1, parent_2, rng) -> new child solution. Must not modify the parents.
Recombine = Callable[[Any, Any, np.random.Generator], Any]


@dataclass
class PopulationSearchParameters:
    time_limit: float = 60.0
    # -1 means no limit. Counts children, not initial solutions.
    maximum_number_of_iterations: int = -1
    maximum_size_of_the_solution_pool: int = 1
    seed: int = 0
    population: PopulationParameters = field(default_factory=PopulationParameters)
    verbosity_level: int = 1
    new_solution_callback: Optional[Callable[["PopulationSearchOutput"], None]] = None
    logger: Optional[logging.Logger] = None

    def validate(self) -> None:
        """Rejects invalid budgets; an infinite time limit needs an iteration limit."""
        if not (self.time_limit > 0):
            raise ValueError(f"Time limit must be a positive number of seconds, got {self.time_limit}.")
        if math.isinf(self.time_limit) and self.maximum_number_of_iterations == -1:
            raise ValueError("An infinite time limit requires a maximum number of iterations.")
        if self.maximum_number_of_iterations < -1:
            raise ValueError("Maximum number of iterations must be -1 (no limit) or non-negative.")
        if self.maximum_size_of_the_solution_pool < 1:
            raise ValueError("Maximum size of the solution pool must be at least 1.")


@dataclass
class PopulationSearchOutput(IteratedLocalSearchOutput):
    population: Optional[Population] = None
    number_of_initial_solutions: int = 0


def population_local_search(
    scheme: Scheme,
    recombine: Recombine,
    parameters: Optional[PopulationSearchParameters] = None,
) -> PopulationSearchOutput:
    """
    Runs a population-based local search on the scheme. The scheme must define
    `distance`; `penalized_cost` defaults to the global cost.
    """
    if parameters is None:
        parameters = PopulationSearchParameters()
    parameters.validate()
    if getattr(type(scheme), "distance", None) in (None, Scheme.distance):
        raise ValueError(f"{type(scheme).__name__} must define distance() to run a population search.")
    logger = parameters.logger or logging.getLogger(__name__)
    rng = np.random.default_rng(parameters.seed)
    timer = Timer(parameters.time_limit)
    population = Population.from_scheme(scheme, parameters.population, logger=logger)
    output = PopulationSearchOutput(
        SolutionPool(parameters.maximum_size_of_the_solution_pool),
        best=BestObservation(),
        population=population,
    )

    def observe(solution: Any, cost: Any) -> None:
        output.solution_pool.insert(solution, cost)
        if output.best.record(cost, timer.elapsed_time(), output.number_of_iterations, 0):
            if parameters.verbosity_level >= 1:
                logger.info(
                    f"New best {scheme.cost_to_string(cost)} at {output.best.time:.3f}s "
                    f"(iteration {output.number_of_iterations})"
                )
            if parameters.new_solution_callback is not None:
                parameters.new_solution_callback(output)

    # The first initial solution is always built so the pool is never empty.
    while population.size < parameters.population.minimum_size:
        if output.number_of_initial_solutions > 0 and timer.needs_to_end():
            break
        solution = scheme.initial_solution(output.number_of_initial_solutions, rng)
        scheme.local_search(solution, rng)
        observe(solution, scheme.global_cost(solution))
        population.add(solution, rng)
        output.number_of_initial_solutions += 1

    while not timer.needs_to_end():
        if (
            parameters.maximum_number_of_iterations != -1
            and output.number_of_iterations >= parameters.maximum_number_of_iterations
        ):
            break
        if population.size >= 4:
            parent_1, parent_2 = population.binary_tournament(rng)
        else:
            parent_1 = population.binary_tournament_single(rng)
            parent_2 = population.binary_tournament_single(rng)
        child = recombine(parent_1, parent_2, rng)
        scheme.local_search(child, rng)
        cost = scheme.global_cost(child)
        output.number_of_iterations += 1
        observe(child, cost)
        population.add(child, rng)
        if parameters.verbosity_level >= 2:
            logger.debug(
                f"Iteration {output.number_of_iterations}: child {scheme.cost_to_string(cost)}, "
                f"population size {population.size}"
            )

    output.time = timer.elapsed_time()
    if parameters.verbosity_level >= 1:
        logger.info(
            f"End: best {scheme.cost_to_string(output.best.cost)}, "
            f"{output.number_of_iterations} iterations, population size {population.size}, "
            f"{output.time:.3f}s"
        )
    return output
