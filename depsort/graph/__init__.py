"""Graph module for dependency ordering.

This module provides the graph storage, strongly connected component
detection, topological sorting and validation used to order items with
"must come before" relationships.
"""

from depsort.graph.components import find_cycles, strongly_connected_components
from depsort.graph.dependency_graph import DependencyGraph, Graph
from depsort.graph.errors import CyclePresentError, GraphSortError, InvalidGraphShapeError
from depsort.graph.toposort import check_graph_shape, topological_sort
from depsort.graph.validator import GraphValidator, ValidationReport

__all__ = [
    "CyclePresentError",
    "DependencyGraph",
    "Graph",
    "GraphSortError",
    "GraphValidator",
    "InvalidGraphShapeError",
    "ValidationReport",
    "check_graph_shape",
    "find_cycles",
    "strongly_connected_components",
    "topological_sort",
]
