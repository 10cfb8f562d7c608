"""
Iterated Local Search (ILS).

Starting from a randomized initial solution brought to a local optimum, each
iteration perturbs the current solution with the cheapest candidate moves
proposed by the scheme, repairs it with the scheme's local search, and keeps
exploring from the repaired solution. When the search stagnates, or when the
scheme has no move left to propose, the search restarts from a new initial
solution while the restart budget allows it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import numpy as np

from Core.scheme import Perturbation, Scheme
from Core.solution_pool import SolutionPool
from Core.utils import Timer


@dataclass
class IteratedLocalSearchParameters:
    # Wall-clock budget in seconds.
    time_limit: float = 60.0
    # -1 means no limit.
    maximum_number_of_iterations: int = -1
    # Consecutive iterations without improving the best cost of the current
    # start before restarting. -1 means never restart on stagnation.
    maximum_number_of_iterations_without_improvement: int = -1
    minimum_number_of_perturbations: int = 1
    # -1 means no limit.
    maximum_number_of_restarts: int = -1
    maximum_size_of_the_solution_pool: int = 1
    seed: int = 0
    # 0: silent, 1: new best solutions, 2: every iteration.
    verbosity_level: int = 1
    # Called with the output each time a new best solution is found.
    new_solution_callback: Optional[Callable[["IteratedLocalSearchOutput"], None]] = None
    logger: Optional[logging.Logger] = None

    def validate(self) -> None:
        """
        Rejects invalid budgets before the search starts.

        An infinite time limit is accepted only together with an iteration
        limit, so that the run still has a bound.
        """
        if not (self.time_limit > 0):
            raise ValueError(f"Time limit must be a positive number of seconds, got {self.time_limit}.")
        if math.isinf(self.time_limit) and self.maximum_number_of_iterations == -1:
            raise ValueError("An infinite time limit requires a maximum number of iterations.")
        if self.maximum_number_of_iterations < -1:
            raise ValueError("Maximum number of iterations must be -1 (no limit) or non-negative.")
        if self.maximum_number_of_iterations_without_improvement < -1:
            raise ValueError("Maximum number of iterations without improvement must be -1 (no limit) or non-negative.")
        if self.minimum_number_of_perturbations < 1:
            raise ValueError("Minimum number of perturbations must be at least 1.")
        if self.maximum_number_of_restarts < -1:
            raise ValueError("Maximum number of restarts must be -1 (no limit) or non-negative.")
        if self.maximum_size_of_the_solution_pool < 1:
            raise ValueError("Maximum size of the solution pool must be at least 1.")


@dataclass
class BestObservation:
    """Best cost seen during a run, and when it was found."""
    cost: Any = None
    time: float = 0.0
    iteration: int = 0
    restart: int = 0

    def record(self, cost: Any, time: float, iteration: int, restart: int) -> bool:
        """Records a cost evaluation; returns True if it is a new best."""
        if self.cost is not None and not cost < self.cost:
            return False
        self.cost = cost
        self.time = time
        self.iteration = iteration
        self.restart = restart
        return True


@dataclass
class IteratedLocalSearchOutput:
    solution_pool: SolutionPool
    number_of_iterations: int = 0
    number_of_restarts: int = 0
    time: float = 0.0
    best: BestObservation = field(default_factory=BestObservation)


def select_perturbations(
    scheme: Scheme,
    perturbations: List[Perturbation],
    minimum_number_of_perturbations: int,
    rng: np.random.Generator,
) -> List[Perturbation]:
    """
    Picks the perturbations applied in one iteration: all of them if the scheme
    curates its list, otherwise the ones with the lowest provisional cost, ties
    broken at random. Perturbations without an estimate come last.
    """
    if scheme.curated_perturbations:
        return list(perturbations)
    shuffled = [perturbations[int(i)] for i in rng.permutation(len(perturbations))]

    def _estimate(perturbation):
        cost = getattr(perturbation, "global_cost", None)
        return (cost is None, 0 if cost is None else cost)

    shuffled.sort(key=_estimate)
    return shuffled[:minimum_number_of_perturbations]


def iterated_local_search(
    scheme: Scheme,
    parameters: Optional[IteratedLocalSearchParameters] = None,
) -> IteratedLocalSearchOutput:
    """
    Runs an iterated local search on the scheme.

    Args:
        scheme: The problem plug-in.
        parameters: Budgets and options of the run.

    Returns:
        The solution pool and the statistics of the run. Reaching a budget is the
        normal way for the search to end, not an error.
    """
    if parameters is None:
        parameters = IteratedLocalSearchParameters()
    parameters.validate()
    logger = parameters.logger or logging.getLogger(__name__)
    rng = np.random.default_rng(parameters.seed)
    timer = Timer(parameters.time_limit)
    output = IteratedLocalSearchOutput(SolutionPool(parameters.maximum_size_of_the_solution_pool))

    if parameters.verbosity_level >= 1:
        logger.info(
            f"Iterated local search: time limit {parameters.time_limit}s, "
            f"maximum iterations {parameters.maximum_number_of_iterations}, "
            f"minimum perturbations {parameters.minimum_number_of_perturbations}, "
            f"maximum restarts {parameters.maximum_number_of_restarts}, "
            f"pool size {parameters.maximum_size_of_the_solution_pool}, seed {parameters.seed}"
        )

    def observe(solution: Any, cost: Any) -> None:
        output.solution_pool.insert(solution, cost)
        if output.best.record(cost, timer.elapsed_time(), output.number_of_iterations, output.number_of_restarts):
            if parameters.verbosity_level >= 1:
                logger.info(
                    f"New best {scheme.cost_to_string(cost)} at {output.best.time:.3f}s "
                    f"(iteration {output.number_of_iterations}, restart {output.number_of_restarts})"
                )
            if parameters.new_solution_callback is not None:
                parameters.new_solution_callback(output)

    def can_restart() -> bool:
        return (
            parameters.maximum_number_of_restarts == -1
            or output.number_of_restarts < parameters.maximum_number_of_restarts
        )

    current = None
    current_cost = None
    start_best_cost = None
    iterations_without_improvement = 0
    while True:
        if current is None:
            current = scheme.initial_solution(output.number_of_restarts, rng)
            scheme.local_search(current, rng)
            current_cost = scheme.global_cost(current)
            observe(current, current_cost)
            start_best_cost = current_cost
            iterations_without_improvement = 0

        if timer.needs_to_end():
            break
        if (
            parameters.maximum_number_of_iterations != -1
            and output.number_of_iterations >= parameters.maximum_number_of_iterations
        ):
            break

        stagnated = (
            parameters.maximum_number_of_iterations_without_improvement != -1
            and iterations_without_improvement >= parameters.maximum_number_of_iterations_without_improvement
        )
        perturbations = [] if stagnated and can_restart() else scheme.perturbations(current, rng)
        if not perturbations:
            if not can_restart():
                if parameters.verbosity_level >= 1:
                    logger.info("No perturbation left and restart budget exhausted.")
                break
            # A restart rebuilds a solution from scratch; do not start one past the deadline.
            if timer.needs_to_end():
                break
            output.number_of_restarts += 1
            if parameters.verbosity_level >= 2:
                logger.debug(
                    f"Restart {output.number_of_restarts} after {iterations_without_improvement} "
                    f"iterations without improvement"
                )
            current = None
            continue

        selected = select_perturbations(
            scheme, perturbations, parameters.minimum_number_of_perturbations, rng
        )
        candidate = scheme.copy_solution(current)
        for perturbation in selected:
            scheme.apply_perturbation(candidate, perturbation, rng)
        scheme.local_search(candidate, rng, selected[-1])
        candidate_cost = scheme.global_cost(candidate)
        output.number_of_iterations += 1
        observe(candidate, candidate_cost)

        if candidate_cost < start_best_cost:
            start_best_cost = candidate_cost
            iterations_without_improvement = 0
        else:
            iterations_without_improvement += 1
        if parameters.verbosity_level >= 2:
            logger.debug(
                f"Iteration {output.number_of_iterations}: {len(selected)} perturbation(s), "
                f"cost {scheme.cost_to_string(current_cost)} -> {scheme.cost_to_string(candidate_cost)}"
            )
        # Keep exploring from the repaired solution, improving or not.
        current = candidate
        current_cost = candidate_cost

    output.time = timer.elapsed_time()
    if parameters.verbosity_level >= 1:
        best_cost = output.best.cost
        logger.info(
            f"End: best {scheme.cost_to_string(best_cost) if best_cost is not None else None}, "
            f"{output.number_of_iterations} iterations, {output.number_of_restarts} restarts, "
            f"{output.time:.3f}s"
        )
    return output
