import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from Core.population import Population, PopulationParameters
from problems.MIS.mis import Graph, MaximumIndependentSetScheme, MISPerturbation


@pytest.fixture
def path_graph():
    """0 - 1 - 2 - 3 - 4"""
    return Graph.from_edges(5, [(0, 1), (1, 2), (2, 3), (3, 4)])


@pytest.fixture
def scheme(path_graph):
    return MaximumIndependentSetScheme(path_graph)


@pytest.fixture
def rng():
    return np.random.default_rng(0)


# ---- Graph -----------------------------------------------------------------

def test_graph_from_file_skips_out_of_range_edges(tmp_path):
    graph_file = tmp_path / "small.graph"
    graph_file.write_text("4\n0 1\n1 2\n2 9\n-1 3\n2 3\n7\n")
    graph = Graph.from_file(graph_file)

    assert graph.num_vertices == 4
    assert graph.number_of_edges == 3
    assert graph.are_adjacent(1, 0)
    assert graph.are_adjacent(2, 3)
    assert not graph.are_adjacent(0, 3)


def test_graph_from_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Graph.from_file(tmp_path / "missing.graph")


def test_graph_from_malformed_file_raises(tmp_path):
    graph_file = tmp_path / "bad.graph"
    graph_file.write_text("3\n0 x\n")
    with pytest.raises(ValueError):
        Graph.from_file(graph_file)


def test_add_edge_out_of_range_raises():
    graph = Graph(2)
    with pytest.raises(ValueError):
        graph.add_edge(0, 2)


def test_self_loops_are_ignored():
    graph = Graph.from_edges(2, [(0, 0), (0, 1)])
    assert graph.adj_list == [[1], [0]]


# ---- Scheme ----------------------------------------------------------------

def test_empty_solution(scheme):
    solution = scheme.empty_solution()
    assert solution.size == 0
    assert not solution.in_set.any()
    assert scheme.global_cost(solution) == 0


def test_initial_solution_is_maximal_independent_set(scheme, rng):
    for seed_index in range(10):
        solution = scheme.initial_solution(seed_index, rng)
        assert scheme.is_valid(solution)
        assert all(not scheme.can_add(solution, v) for v in range(5))
        assert scheme.global_cost(solution) == -solution.size


def test_local_search_fills_to_fixed_point(scheme, rng):
    solution = scheme.empty_solution()
    scheme.local_search(solution, rng)
    assert solution.vertices() == [0, 2, 4]
    assert scheme.cost_to_string(scheme.global_cost(solution)) == "3"


def test_perturbations_remove_each_vertex_of_the_set(scheme, rng):
    solution = scheme.empty_solution()
    scheme.local_search(solution, rng)
    moves = scheme.perturbations(solution, rng)

    assert [m.vertex for m in moves] == [0, 2, 4]
    assert all(not m.add and m.global_cost == -2 for m in moves)


def test_apply_perturbation_removes_vertex_and_ignores_repeats(scheme, rng):
    solution = scheme.empty_solution()
    scheme.local_search(solution, rng)
    move = MISPerturbation(vertex=2, add=False, global_cost=-2)

    scheme.apply_perturbation(solution, move, rng)
    assert solution.vertices() == [0, 4]
    scheme.apply_perturbation(solution, move, rng)
    assert solution.vertices() == [0, 4]
    assert solution.size == 2

    scheme.local_search(solution, rng, move)
    assert solution.vertices() == [0, 2, 4]


def test_add_perturbation_respects_independence(scheme, rng):
    solution = scheme.empty_solution()
    scheme.apply_perturbation(solution, MISPerturbation(vertex=1, add=True), rng)
    scheme.apply_perturbation(solution, MISPerturbation(vertex=2, add=True), rng)
    assert solution.vertices() == [1]


def test_copy_solution_is_independent(scheme, rng):
    solution = scheme.initial_solution(0, rng)
    copy = scheme.copy_solution(solution)
    scheme.remove_vertex(copy, copy.vertices()[0])
    assert copy.size == solution.size - 1
    assert scheme.is_valid(solution)


def test_distance_is_hamming(scheme):
    first = scheme.empty_solution()
    second = scheme.empty_solution()
    scheme.add_vertex(first, 0)
    scheme.add_vertex(second, 1)
    assert scheme.distance(first, first) == 0
    assert scheme.distance(first, second) == 2


def test_crossover_keeps_common_vertices(scheme, rng):
    parent_1 = scheme.empty_solution()
    parent_2 = scheme.empty_solution()
    for v in (0, 2, 4):
        scheme.add_vertex(parent_1, v)
    for v in (0, 3):
        scheme.add_vertex(parent_2, v)

    for _ in range(10):
        child = scheme.crossover(parent_1, parent_2, rng)
        assert child.in_set[0]
        assert scheme.is_valid(child)
    assert parent_1.vertices() == [0, 2, 4]
    assert parent_2.vertices() == [0, 3]


def test_scheme_plugs_into_population(scheme, rng):
    population = Population.from_scheme(
        scheme, PopulationParameters(minimum_size=2, maximum_size=4, number_of_closest_neighbors=1)
    )
    for seed_index in range(5):
        solution = scheme.initial_solution(seed_index, rng)
        population.add(solution, rng)
    assert population.size == 2
    assert all(m.penalized_cost == -m.solution.size for m in population.solutions)
