import abc
import copy
from dataclasses import dataclass
from typing import Any, List, Optional

import numpy as np


@dataclass
class Perturbation:
    """A lightweight move away from a solution.

    ``global_cost`` is an optional provisional estimate of the cost the
    solution would have after the move; the search uses it to rank candidate
    moves before applying them.
    """
    global_cost: Optional[float] = None


class Scheme(abc.ABC):
    """
    Abstract base class defining the contract between a problem plug-in and the
    generic local search engine. Lower global costs are better.

    Solutions and perturbations are opaque to the engine: it only creates them
    through the scheme, copies them with `copy_solution` and hands them back.
    """

    # Set to True when `perturbations` already returns the exact moves to apply
    # in one cycle, so the engine applies all of them instead of the cheapest few.
    curated_perturbations: bool = False

    @abc.abstractmethod
    def empty_solution(self) -> Any:
        """
        Returns the canonical empty solution of the problem.
        """
        pass

    @abc.abstractmethod
    def initial_solution(self, seed_index: int, rng: np.random.Generator) -> Any:
        """
        Builds one randomized starting solution.

        Args:
            seed_index: Index of the start (0 for the first start, then one per restart).
            rng: The random stream of the run.

        Returns:
            A new solution.
        """
        pass

    @abc.abstractmethod
    def global_cost(self, solution: Any) -> float:
        """
        Evaluates a solution. Must be deterministic and free of side effects.

        Args:
            solution: The solution to evaluate.

        Returns:
            The cost to minimize.
        """
        pass

    @abc.abstractmethod
    def local_search(
        self,
        solution: Any,
        rng: np.random.Generator,
        perturbation: Optional[Perturbation] = None,
    ) -> None:
        """
        Improves the solution in place until it reaches a local optimum.

        Args:
            solution: The solution to improve.
            rng: The random stream of the run.
            perturbation: The perturbation that was just applied, if the call
                repairs a perturbed solution. May be used to restrict the
                neighborhood explored.
        """
        pass

    @abc.abstractmethod
    def perturbations(self, solution: Any, rng: np.random.Generator) -> List[Perturbation]:
        """
        Lists candidate moves away from the given solution.

        Args:
            solution: The current solution.
            rng: The random stream of the run.

        Returns:
            A (possibly empty) list of perturbations.
        """
        pass

    @abc.abstractmethod
    def apply_perturbation(
        self,
        solution: Any,
        perturbation: Perturbation,
        rng: np.random.Generator,
    ) -> None:
        """
        Applies a perturbation to the solution in place. Does nothing if the
        move no longer applies to the solution.
        """
        pass

    def copy_solution(self, solution: Any) -> Any:
        """Returns an independent copy of a solution."""
        return copy.deepcopy(solution)

    def cost_to_string(self, cost: float) -> str:
        """Human-readable form of a cost, for reports only."""
        return str(cost)

    # Optional hooks for the population -------------------------------------
    def penalized_cost(self, solution: Any) -> float:
        """
        Cost used to rank population members. Schemes that relax constraints
        can add violation penalties here; defaults to the global cost.
        """
        return self.global_cost(solution)

    def distance(self, solution_1: Any, solution_2: Any) -> float:
        """
        Distance between two solutions, 0 meaning identical. Required only
        when the scheme is used with a population.
        """
        raise NotImplementedError(f"{type(self).__name__} does not define a solution distance")
