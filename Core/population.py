"""
Population of solutions managed with a biased fitness that balances cost and
diversity.

Survivor selection follows "A Hybrid Genetic Algorithm for Multidepot and
Periodic Vehicle Routing Problems" (Vidal et al., 2012,
https://doi.org/10.1287/opre.1120.1048): every member is ranked by penalized
cost and by its diversity contribution (average distance to its closest
neighbors), and members with the worst combination are removed one at a time,
clones first.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np

PenalizedCostCallback = Callable[[Any], Any]
DistanceCallback = Callable[[Any, Any], float]


class PopulationTooSmallError(RuntimeError):
    """Raised when a tournament needs more members than the population holds."""


@dataclass
class PopulationParameters:
    # Size the population is brought back to by survivor selection.
    minimum_size: int = 25
    # Adding a solution beyond this size triggers survivor selection.
    maximum_size: int = 25 + 40
    # The diversity contribution of a member is its average distance to its
    # `number_of_closest_neighbors` closest neighbors.
    number_of_closest_neighbors: int = 3
    number_of_elite_solutions: int = 8

    def __post_init__(self):
        if self.minimum_size < 1:
            raise ValueError(f"minimum_size must be at least 1, got {self.minimum_size}.")
        if self.maximum_size < self.minimum_size:
            raise ValueError(
                f"maximum_size ({self.maximum_size}) must not be lower than minimum_size ({self.minimum_size})."
            )
        if self.number_of_closest_neighbors < 1:
            raise ValueError(
                f"number_of_closest_neighbors must be at least 1, got {self.number_of_closest_neighbors}."
            )
        if self.number_of_elite_solutions < 0:
            raise ValueError(
                f"number_of_elite_solutions must be non-negative, got {self.number_of_elite_solutions}."
            )


@dataclass
class PopulationSolution:
    """A population member and the bookkeeping of the last survivor selection."""
    solution: Any
    penalized_cost: Any = None
    penalized_cost_rank: int = -1
    diversity: float = math.inf
    diversity_rank: int = -1
    # Lower is better.
    biased_fitness: float = 0.0
    to_remove: bool = False


def rank_with_random_ties(
    keys: Sequence[Any],
    rng: np.random.Generator,
    *,
    descending: bool = False,
) -> List[int]:
    """
    Ranks `keys` from best (rank 0) to worst.

    Positions are shuffled uniformly before a stable sort, so equal keys get
    their ranks in a random order rather than in positional order.

    Returns:
        A list whose i-th entry is the rank of keys[i]; a permutation of range(len(keys)).
    """
    order = [int(pos) for pos in rng.permutation(len(keys))]
    # sorted() stays stable with reverse=True.
    order = sorted(order, key=lambda pos: keys[pos], reverse=descending)
    ranks = [0] * len(keys)
    for rank, pos in enumerate(order):
        ranks[pos] = rank
    return ranks


class Population:
    """
    Size-bounded set of solutions. Adding a solution beyond `maximum_size`
    prunes the population down to `minimum_size`; parents are served by binary
    tournaments on the biased fitness.
    """

    def __init__(
        self,
        penalized_cost_callback: PenalizedCostCallback,
        distance_callback: DistanceCallback,
        parameters: Optional[PopulationParameters] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.penalized_cost_callback = penalized_cost_callback
        self.distance_callback = distance_callback
        self.parameters = parameters if parameters is not None else PopulationParameters()
        self.logger = logger or logging.getLogger(__name__)
        self._solutions: List[PopulationSolution] = []

    @classmethod
    def from_scheme(
        cls,
        scheme,
        parameters: Optional[PopulationParameters] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "Population":
        """Builds a population that uses the scheme's penalized cost and distance."""
        return cls(scheme.penalized_cost, scheme.distance, parameters, logger=logger)

    @property
    def size(self) -> int:
        return len(self._solutions)

    def __len__(self) -> int:
        return len(self._solutions)

    def solution(self, solution_id: int) -> PopulationSolution:
        return self._solutions[solution_id]

    @property
    def solutions(self) -> List[PopulationSolution]:
        return list(self._solutions)

    def add(self, solution: Any, rng: np.random.Generator) -> None:
        """Adds a solution; runs survivor selection when the population overflows."""
        self._solutions.append(PopulationSolution(solution))
        if self.size > self.parameters.maximum_size:
            self.survivor_selection(rng)

    def survivor_selection(self, rng: np.random.Generator) -> None:
        """
        Removes members one at a time until `minimum_size` remain.

        Each removal picks, among the members still active, a clone (a member at
        distance 0 from another active member) if there is one, and otherwise
        the member with the highest biased fitness. Diversities, ranks and
        biased fitnesses are recomputed after every removal since removing a
        member changes the closest neighbors of the others.
        """
        members = self._solutions
        n = len(members)
        if n == 0:
            return
        for member in members:
            member.penalized_cost = self.penalized_cost_callback(member.solution)
            member.to_remove = False

        # Penalized costs do not change during the selection: order once.
        cost_ranks = rank_with_random_ties([m.penalized_cost for m in members], rng)
        cost_order = sorted(range(n), key=lambda i: cost_ranks[i])

        distances = np.zeros((n, n), dtype=float)
        for i in range(n):
            for j in range(i):
                distance = self.distance_callback(members[i].solution, members[j].solution)
                distances[i, j] = distance
                distances[j, i] = distance

        active = list(range(n))
        while len(active) > self.parameters.minimum_size:
            self._compute_biased_fitnesses(active, cost_order, distances, rng)
            worst_id = self._worst(active, distances)
            member = members[worst_id]
            self.logger.debug(
                f"Removing member {worst_id}: penalized_cost={member.penalized_cost}, "
                f"rank={member.penalized_cost_rank}, diversity={member.diversity:.3f}, "
                f"rank={member.diversity_rank}, biased_fitness={member.biased_fitness:.3f}"
            )
            member.to_remove = True
            active = [i for i in active if i != worst_id]

        # Leave the survivors with ranks computed among themselves only.
        self._compute_biased_fitnesses(active, cost_order, distances, rng)

        solution_id = 0
        while solution_id < len(members):
            if members[solution_id].to_remove:
                members[solution_id] = members[-1]
                members.pop()
            else:
                solution_id += 1
        self.logger.debug(f"Survivor selection: {n} -> {len(members)} members")

    def binary_tournament(self, rng: np.random.Generator) -> Tuple[Any, Any]:
        """
        Draws 4 distinct members and returns the better of the first two and the
        better of the last two, by biased fitness.
        """
        if self.size < 4:
            raise PopulationTooSmallError(
                f"binary_tournament needs at least 4 solutions, the population has {self.size}."
            )
        solution_ids = rng.choice(self.size, size=4, replace=False)
        rng.shuffle(solution_ids)
        solution_id_1 = self._tournament_winner(int(solution_ids[0]), int(solution_ids[1]))
        solution_id_2 = self._tournament_winner(int(solution_ids[2]), int(solution_ids[3]))
        return self._solutions[solution_id_1].solution, self._solutions[solution_id_2].solution

    def binary_tournament_single(self, rng: np.random.Generator) -> Any:
        """Returns the better of 2 distinct random members, or the sole member."""
        if self.size == 0:
            raise PopulationTooSmallError("binary_tournament_single on an empty population.")
        if self.size == 1:
            return self._solutions[0].solution
        solution_ids = rng.choice(self.size, size=2, replace=False)
        rng.shuffle(solution_ids)
        solution_id = self._tournament_winner(int(solution_ids[0]), int(solution_ids[1]))
        return self._solutions[solution_id].solution

    # --- Internal helpers --------------------------------------------------
    def _tournament_winner(self, solution_id_1: int, solution_id_2: int) -> int:
        if self._solutions[solution_id_1].biased_fitness < self._solutions[solution_id_2].biased_fitness:
            return solution_id_1
        return solution_id_2

    def _compute_biased_fitnesses(
        self,
        active: List[int],
        cost_order: List[int],
        distances: np.ndarray,
        rng: np.random.Generator,
    ) -> None:
        members = self._solutions
        active_set = set(active)

        rank = 0
        for i in cost_order:
            if i in active_set:
                members[i].penalized_cost_rank = rank
                rank += 1

        for i in active:
            neighbor_distances = distances[i, [j for j in active if j != i]]
            k = min(self.parameters.number_of_closest_neighbors, neighbor_distances.size)
            if k == 0:
                members[i].diversity = math.inf
                continue
            closest = np.partition(neighbor_distances, k - 1)[:k]
            members[i].diversity = float(closest.mean())

        # Most diverse first.
        diversity_ranks = rank_with_random_ties([members[i].diversity for i in active], rng, descending=True)
        for i, diversity_rank in zip(active, diversity_ranks):
            members[i].diversity_rank = diversity_rank

        diversity_weight = 1.0 - self.parameters.number_of_elite_solutions / len(active)
        for i in active:
            members[i].biased_fitness = members[i].penalized_cost_rank + diversity_weight * members[i].diversity_rank

    def _worst(self, active: List[int], distances: np.ndarray) -> int:
        worst_id = -1
        is_worst_clone = False
        biased_fitness_worst = 0.0
        for i in active:
            is_clone = any(distances[i, j] == 0 for j in active if j != i)
            biased_fitness = self._solutions[i].biased_fitness
            if (
                worst_id == -1
                or (is_clone and not is_worst_clone)
                or (is_clone == is_worst_clone and biased_fitness > biased_fitness_worst)
            ):
                worst_id = i
                is_worst_clone = is_clone
                biased_fitness_worst = biased_fitness
        return worst_id
