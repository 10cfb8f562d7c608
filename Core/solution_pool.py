"""
Bounded pool of the best solutions found during a search.

Entries are kept sorted by cost so the best one is always at the front and the
worst ones can be evicted from the back when the pool is full.
"""

import bisect
from typing import Any, Iterator, List, Tuple


class EmptyPoolError(RuntimeError):
    """Raised when querying a solution pool that holds no solution."""


class SolutionPool:
    """
    Keeps at most `maximum_size` (solution, cost) entries in non-decreasing cost
    order. Entries with equal costs stay in insertion order.
    """

    def __init__(self, maximum_size: int = 1):
        """
        Args:
            maximum_size: Maximum number of solutions retained (at least 1).
        """
        if maximum_size < 1:
            raise ValueError(f"Solution pool size must be at least 1, got {maximum_size}.")
        self.maximum_size = maximum_size
        self._solutions: List[Any] = []
        self._costs: List[Any] = []

    @property
    def size(self) -> int:
        return len(self._solutions)

    def __len__(self) -> int:
        return len(self._solutions)

    def __iter__(self) -> Iterator[Tuple[Any, Any]]:
        return iter(zip(self._solutions, self._costs))

    def insert(self, solution: Any, cost: Any) -> bool:
        """
        Inserts a solution, then evicts the worst entries above capacity.

        The pool keeps a reference to `solution`; pass a copy if the caller keeps
        mutating it.

        Returns:
            True if the solution is still in the pool after eviction.
        """
        # bisect_right places the new entry after existing entries of equal cost.
        position = bisect.bisect_right(self._costs, cost)
        self._costs.insert(position, cost)
        self._solutions.insert(position, solution)
        while len(self._solutions) > self.maximum_size:
            self._costs.pop()
            self._solutions.pop()
        return position < len(self._solutions)

    def best(self) -> Tuple[Any, Any]:
        """Returns the (solution, cost) entry with the lowest cost."""
        if not self._solutions:
            raise EmptyPoolError("The solution pool is empty.")
        return self._solutions[0], self._costs[0]

    def worst(self) -> Tuple[Any, Any]:
        """Returns the (solution, cost) entry with the highest cost."""
        if not self._solutions:
            raise EmptyPoolError("The solution pool is empty.")
        return self._solutions[-1], self._costs[-1]

    def costs(self) -> List[Any]:
        return list(self._costs)

    def solutions(self) -> List[Any]:
        return list(self._solutions)

    def __str__(self) -> str:
        return f"SolutionPool(size={self.size}, maximum_size={self.maximum_size}, costs={self._costs})"
