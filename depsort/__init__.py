"""Deterministic dependency ordering of directed graphs."""

from depsort.graph import (
    CyclePresentError,
    DependencyGraph,
    GraphSortError,
    InvalidGraphShapeError,
    topological_sort,
)

__version__ = "0.1.0"

__all__ = [
    "CyclePresentError",
    "DependencyGraph",
    "GraphSortError",
    "InvalidGraphShapeError",
    "topological_sort",
]
