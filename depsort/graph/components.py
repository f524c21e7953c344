"""Strongly connected component detection.

Implements Tarjan's algorithm over ``Graph.successors`` with an explicit work
stack, so arbitrarily long dependency chains cannot exhaust the interpreter's
recursion limit. In a graph without self-loops, any component with two or more
nodes is a dependency cycle.
"""

from collections.abc import Hashable, Iterator
from typing import TypeVar

import structlog

from depsort.graph.dependency_graph import Graph

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Hashable)

MIN_CYCLE_SIZE = 2


def strongly_connected_components(graph: Graph[T]) -> list[frozenset[T]]:
    """Partition the nodes of a graph into strongly connected components.

    Every node appears in exactly one component. Components are returned in
    the order Tarjan's algorithm completes them, which is a reverse
    topological order of the condensed graph.

    Args:
        graph: The graph to decompose

    Returns:
        List of components, each a frozenset of nodes

    Example:
        >>> g = DependencyGraph()
        >>> g.add_edge("a", "b")
        >>> g.add_edge("b", "a")
        >>> g.add_node("c")
        >>> sorted(len(c) for c in strongly_connected_components(g))
        [1, 2]
    """
    index: dict[T, int] = {}
    lowlink: dict[T, int] = {}
    stack: list[T] = []
    on_stack: set[T] = set()
    components: list[frozenset[T]] = []

    for root in graph.nodes():
        if root in index:
            continue

        # Each frame is a node and the iterator over its remaining successors
        work: list[tuple[T, Iterator[T]]] = []
        index[root] = lowlink[root] = len(index)
        stack.append(root)
        on_stack.add(root)
        work.append((root, iter(graph.successors(root))))

        while work:
            node, successors = work[-1]
            descended = False
            for successor in successors:
                if successor not in index:
                    index[successor] = lowlink[successor] = len(index)
                    stack.append(successor)
                    on_stack.add(successor)
                    work.append((successor, iter(graph.successors(successor))))
                    descended = True
                    break
                if successor in on_stack:
                    lowlink[node] = min(lowlink[node], index[successor])

            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index[node]:
                members = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    members.append(member)
                    if member == node:
                        break
                components.append(frozenset(members))

    logger.debug(
        "strongly_connected_components_computed",
        node_count=len(index),
        component_count=len(components),
    )

    return components


def find_cycles(graph: Graph[T]) -> list[frozenset[T]]:
    """Return only the components that witness a cycle (two or more nodes).

    Self-loops are not reported; graphs that allow them are rejected before
    cycle detection runs.
    """
    return [
        component
        for component in strongly_connected_components(graph)
        if len(component) >= MIN_CYCLE_SIZE
    ]
