"""Directed graph storage for dependency ordering.

This module provides the Graph protocol consumed by the sorting algorithms and
the DependencyGraph class, an insertion-ordered adjacency store that implements
it. An edge ``before -> after`` means ``before`` must come first.
"""

import json
from collections.abc import Collection, Hashable, Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

import structlog
import yaml

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Hashable)

EDGE_ARITY = 2


class Graph(Protocol[T]):
    """Read-only view of a graph, as consumed by the sorting algorithms."""

    def is_directed(self) -> bool: ...

    def allows_self_loops(self) -> bool: ...

    def nodes(self) -> Collection[T]: ...

    def predecessors(self, node: T) -> Collection[T]:
        """Nodes with an edge into ``node`` (its direct dependencies)."""
        ...

    def successors(self, node: T) -> Collection[T]:
        """Nodes with an edge out of ``node`` (its direct dependents)."""
        ...


class DependencyGraph(Generic[T]):
    """Graph of nodes and their "must come before" relationships.

    Nodes and edges are kept in insertion order, so every enumeration
    (``nodes()``, ``predecessors()``, ``successors()``) is stable across calls
    and across processes. Without a tie-break rule, sort output therefore
    only depends on the order in which the graph was built.

    Thread-safety:
        This class is NOT thread-safe. Mutating a graph while it is being
        sorted or validated is undefined behavior; protect it with external
        synchronization if it is shared.

    Example:
        >>> graph = DependencyGraph()
        >>> graph.add_task("core", set())
        >>> graph.add_task("plugin", {"core"})
        >>> list(graph.predecessors("plugin"))
        ['core']
    """

    def __init__(self, directed: bool = True, allow_self_loops: bool = False):
        """Initialize an empty graph.

        Args:
            directed: Whether edge direction is meaningful
            allow_self_loops: Whether edges from a node to itself are permitted
        """
        self._directed = directed
        self._allow_self_loops = allow_self_loops
        # dict values are used as insertion-ordered sets
        self._predecessors: dict[T, dict[T, None]] = {}
        self._successors: dict[T, dict[T, None]] = {}

    def is_directed(self) -> bool:
        return self._directed

    def allows_self_loops(self) -> bool:
        return self._allow_self_loops

    def nodes(self) -> tuple[T, ...]:
        return tuple(self._predecessors)

    def predecessors(self, node: T) -> tuple[T, ...]:
        """Return the direct dependencies of ``node``.

        Raises:
            KeyError: If the node is not in the graph
        """
        return tuple(self._predecessors[node])

    def successors(self, node: T) -> tuple[T, ...]:
        """Return the nodes that directly depend on ``node``.

        Raises:
            KeyError: If the node is not in the graph
        """
        return tuple(self._successors[node])

    def add_node(self, node: T) -> None:
        """Add a node without any edges. Adding an existing node is a no-op."""
        if node not in self._predecessors:
            self._predecessors[node] = {}
            self._successors[node] = {}

    def add_edge(self, before: T, after: T) -> None:
        """Add an edge stating that ``before`` must precede ``after``.

        Missing endpoints are added to the graph. In an undirected graph the
        edge is recorded in both directions.

        Raises:
            ValueError: If the edge is a self-loop and the graph disallows them
        """
        if before == after and not self._allow_self_loops:
            msg = f"Self-loop on {before!r} is not allowed in this graph"
            raise ValueError(msg)

        self.add_node(before)
        self.add_node(after)
        self._successors[before][after] = None
        self._predecessors[after][before] = None
        if not self._directed:
            self._successors[after][before] = None
            self._predecessors[before][after] = None

    def add_task(self, node: T, dependencies: Iterable[T]) -> None:
        """Add a node together with the nodes it depends on.

        Args:
            node: The node to add
            dependencies: Nodes that must precede ``node``

        Example:
            >>> graph = DependencyGraph()
            >>> graph.add_task("render", {"load", "layout"})
        """
        self.add_node(node)
        dependencies = list(dependencies)
        for dependency in dependencies:
            self.add_edge(dependency, node)

        logger.debug(
            "task_added_to_graph",
            node=node,
            dependency_count=len(dependencies),
        )

    def has_edge(self, before: T, after: T) -> bool:
        return before in self._successors and after in self._successors[before]

    def edges(self) -> Iterator[tuple[T, T]]:
        """Yield every edge as a ``(before, after)`` pair."""
        for before, successors in self._successors.items():
            for after in successors:
                yield before, after

    def __len__(self) -> int:
        return len(self._predecessors)

    def __contains__(self, node: object) -> bool:
        return node in self._predecessors

    def __iter__(self) -> Iterator[T]:
        return iter(self._predecessors)

    def get_stats(self) -> dict[str, int]:
        """Get statistics about the graph.

        Returns:
            Dictionary with ``total_nodes``, ``total_edges`` and
            ``isolated_nodes`` counts
        """
        stats = {
            "total_nodes": len(self._predecessors),
            "total_edges": sum(len(succ) for succ in self._successors.values()),
            "isolated_nodes": sum(
                1
                for node in self._predecessors
                if not self._predecessors[node] and not self._successors[node]
            ),
        }

        logger.debug("graph_stats_retrieved", **stats)

        return stats

    def copy(self) -> "DependencyGraph[T]":
        """Create an independent copy of the graph with the same shape flags."""
        new_graph: DependencyGraph[T] = DependencyGraph(
            directed=self._directed,
            allow_self_loops=self._allow_self_loops,
        )
        for node in self._predecessors:
            new_graph._predecessors[node] = dict(self._predecessors[node])
            new_graph._successors[node] = dict(self._successors[node])

        logger.debug("dependency_graph_copied", node_count=len(self._predecessors))

        return new_graph

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DependencyGraph[str]":
        """Build a graph from a plain mapping, as read from YAML or JSON.

        Recognized keys, all optional:

        - ``nodes``: list of node names (fixes their enumeration order)
        - ``dependencies``: mapping of node name to the names it depends on
        - ``edges``: list of ``[before, after]`` pairs

        Node names are coerced to ``str``.

        Raises:
            ValueError: If the mapping is malformed
        """
        if not isinstance(data, Mapping):
            msg = "Graph definition must be a mapping"
            raise ValueError(msg)

        unknown = set(data) - {"nodes", "dependencies", "edges"}
        if unknown:
            msg = f"Unknown keys in graph definition: {', '.join(sorted(map(str, unknown)))}"
            raise ValueError(msg)

        graph: DependencyGraph[str] = cls()

        nodes = data.get("nodes") or []
        if not isinstance(nodes, list):
            msg = "'nodes' must be a list"
            raise ValueError(msg)
        for node in nodes:
            graph.add_node(str(node))

        dependencies = data.get("dependencies") or {}
        if not isinstance(dependencies, Mapping):
            msg = "'dependencies' must be a mapping of node to list of nodes"
            raise ValueError(msg)
        for node, deps in dependencies.items():
            if deps is None:
                deps = []
            elif isinstance(deps, str | int | float):
                deps = [deps]
            elif not isinstance(deps, list):
                msg = f"Dependencies of {node!r} must be a list"
                raise ValueError(msg)
            graph.add_task(str(node), [str(dep) for dep in deps])

        edges = data.get("edges") or []
        if not isinstance(edges, list):
            msg = "'edges' must be a list of [before, after] pairs"
            raise ValueError(msg)
        for edge in edges:
            if not isinstance(edge, list | tuple) or len(edge) != EDGE_ARITY:
                msg = f"Invalid edge {edge!r}: expected [before, after]"
                raise ValueError(msg)
            graph.add_edge(str(edge[0]), str(edge[1]))

        logger.info("graph_loaded", **graph.get_stats())

        return graph

    @classmethod
    def from_file(cls, path: str | Path) -> "DependencyGraph[str]":
        """Load a graph definition from a YAML or JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file cannot be read, parsed, or is malformed
        """
        graph_path = Path(path)

        if not graph_path.exists():
            msg = f"Graph file not found: {graph_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_graph_file", path=str(graph_path))

        try:
            with graph_path.open() as f:
                if graph_path.suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            logger.exception("graph_file_parse_error", error=str(e), path=str(graph_path))
            msg = f"Invalid graph file {graph_path}: {e}"
            raise ValueError(msg) from e
        except OSError as e:
            logger.exception("graph_file_read_error", error=str(e), path=str(graph_path))
            msg = f"Cannot read graph file {graph_path}: {e.strerror or e}"
            raise ValueError(msg) from e

        if data is None:
            data = {}

        return cls.from_mapping(data)
