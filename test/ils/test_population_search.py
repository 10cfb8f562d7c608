import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from Core.population import PopulationParameters
from Core.scheme import Scheme
from algorithms.ILS.population_search import PopulationSearchParameters, population_local_search
from problems.MIS.mis import Graph, MaximumIndependentSetScheme


@pytest.fixture
def random_graph():
    rng = np.random.default_rng(5)
    edges = [(u, v) for u in range(25) for v in range(u + 1, 25) if rng.random() < 0.2]
    return Graph.from_edges(25, edges)


def make_params(**kwargs):
    kwargs.setdefault("time_limit", 10.0)
    kwargs.setdefault("verbosity_level", 0)
    kwargs.setdefault(
        "population",
        PopulationParameters(minimum_size=5, maximum_size=10, number_of_closest_neighbors=2, number_of_elite_solutions=2),
    )
    return PopulationSearchParameters(**kwargs)


def test_invalid_time_limit_is_rejected(random_graph):
    scheme = MaximumIndependentSetScheme(random_graph)
    with pytest.raises(ValueError):
        population_local_search(scheme, scheme.crossover, make_params(time_limit=0))


def test_population_search_produces_valid_sets(random_graph):
    scheme = MaximumIndependentSetScheme(random_graph)
    output = population_local_search(
        scheme, scheme.crossover, make_params(maximum_number_of_iterations=40, maximum_size_of_the_solution_pool=3)
    )

    assert output.number_of_initial_solutions == 5
    assert output.number_of_iterations == 40
    assert 5 <= output.population.size <= 10
    assert len(output.solution_pool) == 3
    best, cost = output.solution_pool.best()
    assert scheme.is_valid(best)
    assert cost == output.best.cost
    assert all(cost <= other for other in output.solution_pool.costs())


def test_zero_iterations_builds_only_the_initial_population(random_graph):
    scheme = MaximumIndependentSetScheme(random_graph)
    output = population_local_search(scheme, scheme.crossover, make_params(maximum_number_of_iterations=0))

    assert output.number_of_iterations == 0
    assert output.population.size == 5


def test_recombine_receives_population_members(random_graph):
    scheme = MaximumIndependentSetScheme(random_graph)
    parents_seen = []

    def recombine(parent_1, parent_2, rng):
        parents_seen.append((parent_1, parent_2))
        return scheme.crossover(parent_1, parent_2, rng)

    output = population_local_search(scheme, recombine, make_params(maximum_number_of_iterations=3))

    assert len(parents_seen) == 3
    for parent_1, parent_2 in parents_seen:
        assert scheme.is_valid(parent_1)
        assert scheme.is_valid(parent_2)
    assert output.number_of_iterations == 3


def test_single_member_population_still_runs(random_graph):
    scheme = MaximumIndependentSetScheme(random_graph)
    output = population_local_search(
        scheme,
        scheme.crossover,
        make_params(
            maximum_number_of_iterations=5,
            population=PopulationParameters(minimum_size=1, maximum_size=1, number_of_closest_neighbors=1,
                                            number_of_elite_solutions=0),
        ),
    )
    assert output.population.size == 1
    assert output.number_of_iterations == 5


def test_time_limit_ends_unbounded_search(random_graph):
    scheme = MaximumIndependentSetScheme(random_graph)
    output = population_local_search(scheme, scheme.crossover, make_params(time_limit=0.2))

    assert output.time >= 0.2
    assert output.number_of_iterations > 0
    assert len(output.solution_pool) >= 1
    assert scheme.is_valid(output.solution_pool.best()[0])


def test_infinite_time_limit_requires_an_iteration_limit(random_graph):
    scheme = MaximumIndependentSetScheme(random_graph)
    with pytest.raises(ValueError):
        population_local_search(scheme, scheme.crossover, make_params(time_limit=float("inf")))

    output = population_local_search(
        scheme, scheme.crossover, make_params(time_limit=float("inf"), maximum_number_of_iterations=4)
    )
    assert output.number_of_iterations == 4


def test_callback_sees_strictly_improving_best_costs(random_graph):
    scheme = MaximumIndependentSetScheme(random_graph)
    seen = []
    output = population_local_search(
        scheme,
        scheme.crossover,
        make_params(maximum_number_of_iterations=30, new_solution_callback=lambda out: seen.append(out.best.cost)),
    )

    assert seen
    assert all(later < earlier for earlier, later in zip(seen, seen[1:]))
    assert seen[-1] == output.best.cost


class CountingSchemeWithoutDistance(MaximumIndependentSetScheme):
    """Hides the Hamming distance, falling back to the abstract default."""

    distance = Scheme.distance

    def __init__(self, graph):
        super().__init__(graph)
        self.initial_solutions = 0

    def initial_solution(self, seed_index, rng):
        self.initial_solutions += 1
        return super().initial_solution(seed_index, rng)


def test_scheme_without_distance_is_rejected_up_front(random_graph):
    scheme = CountingSchemeWithoutDistance(random_graph)
    with pytest.raises(ValueError, match="distance"):
        population_local_search(scheme, scheme.crossover, make_params(maximum_number_of_iterations=3))
    assert scheme.initial_solutions == 0
