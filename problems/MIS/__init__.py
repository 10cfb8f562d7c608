"""Maximum Independent Set plug-in for the local search engine."""

from .mis import Graph, MaximumIndependentSetScheme, MISPerturbation, MISSolution

__all__ = [
    "Graph",
    "MaximumIndependentSetScheme",
    "MISPerturbation",
    "MISSolution",
]
