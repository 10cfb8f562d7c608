from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np

from Core.scheme import Perturbation, Scheme


class Graph:
    """Undirected graph stored as adjacency lists over vertices 0..n-1."""

    def __init__(self, num_vertices: int):
        if num_vertices < 0:
            raise ValueError("num_vertices must be non-negative")
        self.num_vertices = int(num_vertices)
        self.adj_list: List[List[int]] = [[] for _ in range(self.num_vertices)]

    @classmethod
    def from_edges(cls, num_vertices: int, edges: Iterable[Tuple[int, int]]) -> "Graph":
        graph = cls(num_vertices)
        for u, v in edges:
            graph.add_edge(u, v)
        return graph

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Graph":
        """
        Reads a graph file: the number of vertices, followed by whitespace
        separated `u v` vertex pairs. Pairs with an endpoint out of range are
        skipped; a trailing unpaired token is ignored.
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Unable to open graph file: {path}")
        tokens = path.read_text().split()
        if not tokens:
            raise ValueError(f"Empty graph file: {path}")
        try:
            values = [int(token) for token in tokens]
        except ValueError as exc:
            raise ValueError(f"Graph file must contain integers only: {path}") from exc
        graph = cls(values[0])
        for u, v in zip(values[1::2], values[2::2]):
            if 0 <= u < graph.num_vertices and 0 <= v < graph.num_vertices:
                graph.add_edge(u, v)
        return graph

    def add_edge(self, u: int, v: int) -> None:
        if not (0 <= u < self.num_vertices and 0 <= v < self.num_vertices):
            raise ValueError(f"Edge ({u}, {v}) out of range for {self.num_vertices} vertices")
        # A self-loop would forbid nothing but the vertex itself; ignore it.
        if u == v:
            return
        self.adj_list[u].append(v)
        self.adj_list[v].append(u)

    def are_adjacent(self, u: int, v: int) -> bool:
        return v in self.adj_list[u]

    @property
    def number_of_edges(self) -> int:
        return sum(len(neighbors) for neighbors in self.adj_list) // 2

    def __len__(self) -> int:
        return self.num_vertices


@dataclass
class MISSolution:
    in_set: np.ndarray
    size: int = 0

    def copy(self) -> "MISSolution":
        return MISSolution(self.in_set.copy(), self.size)

    def vertices(self) -> List[int]:
        return [int(v) for v in np.flatnonzero(self.in_set)]


@dataclass
class MISPerturbation(Perturbation):
    vertex: int = -1
    # Perturbations generated by the scheme remove a vertex.
    add: bool = False


class MaximumIndependentSetScheme(Scheme):
    """Maximum Independent Set posed as the minimization of minus the set size."""

    def __init__(self, graph: Graph):
        self.graph = graph

    # ---- Scheme API ----------------------------------------------------------
    def empty_solution(self) -> MISSolution:
        return MISSolution(np.zeros(self.graph.num_vertices, dtype=bool), 0)

    def initial_solution(self, seed_index: int, rng: np.random.Generator) -> MISSolution:
        """Randomized greedy: scan vertices in random order, add those that fit."""
        solution = self.empty_solution()
        for v in rng.permutation(self.graph.num_vertices):
            self.add_vertex(solution, int(v))
        return solution

    def global_cost(self, solution: MISSolution) -> int:
        return -solution.size

    def local_search(
        self,
        solution: MISSolution,
        rng: np.random.Generator,
        perturbation: Optional[MISPerturbation] = None,
    ) -> None:
        # Greedily add any vertex with no neighbor in the set.
        improved = True
        while improved:
            improved = False
            for v in range(self.graph.num_vertices):
                if self.add_vertex(solution, v):
                    improved = True

    def perturbations(self, solution: MISSolution, rng: np.random.Generator) -> List[MISPerturbation]:
        return [
            MISPerturbation(vertex=v, add=False, global_cost=-(solution.size - 1))
            for v in solution.vertices()
        ]

    def apply_perturbation(
        self,
        solution: MISSolution,
        perturbation: MISPerturbation,
        rng: np.random.Generator,
    ) -> None:
        if perturbation.add:
            self.add_vertex(solution, perturbation.vertex)
        else:
            self.remove_vertex(solution, perturbation.vertex)

    def copy_solution(self, solution: MISSolution) -> MISSolution:
        return solution.copy()

    def cost_to_string(self, cost: int) -> str:
        # Report the set size rather than the internal negated cost.
        return str(-cost)

    def distance(self, solution_1: MISSolution, solution_2: MISSolution) -> int:
        """Number of vertices in exactly one of the two sets."""
        return int(np.count_nonzero(solution_1.in_set != solution_2.in_set))

    # ---- Domain-specific utilities -------------------------------------------
    def can_add(self, solution: MISSolution, v: int) -> bool:
        if solution.in_set[v]:
            return False
        return not any(solution.in_set[u] for u in self.graph.adj_list[v])

    def add_vertex(self, solution: MISSolution, v: int) -> bool:
        if not self.can_add(solution, v):
            return False
        solution.in_set[v] = True
        solution.size += 1
        return True

    def remove_vertex(self, solution: MISSolution, v: int) -> bool:
        if not solution.in_set[v]:
            return False
        solution.in_set[v] = False
        solution.size -= 1
        return True

    def is_valid(self, solution: MISSolution) -> bool:
        if solution.size != int(np.count_nonzero(solution.in_set)):
            return False
        for v in solution.vertices():
            if any(solution.in_set[u] for u in self.graph.adj_list[v]):
                return False
        return True

    def crossover(
        self,
        parent_1: MISSolution,
        parent_2: MISSolution,
        rng: np.random.Generator,
    ) -> MISSolution:
        """
        Keeps the vertices shared by both parents, then adds the other vertices
        of either parent in random order while the set stays independent.
        """
        common = parent_1.in_set & parent_2.in_set
        child = MISSolution(common.copy(), int(np.count_nonzero(common)))
        others = np.flatnonzero((parent_1.in_set | parent_2.in_set) & ~common)
        for v in rng.permutation(others):
            self.add_vertex(child, int(v))
        return child
