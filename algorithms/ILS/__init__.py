"""Iterated local search and its population-based variant."""

from .iterated_local_search import (
    BestObservation,
    IteratedLocalSearchOutput,
    IteratedLocalSearchParameters,
    iterated_local_search,
)
from .population_search import (
    PopulationSearchOutput,
    PopulationSearchParameters,
    population_local_search,
)

__all__ = [
    "BestObservation",
    "IteratedLocalSearchOutput",
    "IteratedLocalSearchParameters",
    "iterated_local_search",
    "PopulationSearchOutput",
    "PopulationSearchParameters",
    "population_local_search",
]
