"""Dependency-first topological sorting with an optional tie-break rule.

The sort validates the graph's shape, rejects graphs containing cycles
(reporting every cyclic component), and then resolves nodes so that each one
is emitted only after all of its transitive predecessors.

When several nodes could be placed next, a tie-break rule chooses among them.
Without one, nodes are taken in the order the graph enumerates them.

Example:
    >>> graph = DependencyGraph()
    >>> graph.add_task("b", {"a"})
    >>> graph.add_task("c", {"b"})
    >>> topological_sort(graph)
    ['a', 'b', 'c']
"""

import functools
from collections.abc import Callable, Hashable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

from depsort.graph.components import find_cycles
from depsort.graph.dependency_graph import Graph
from depsort.graph.errors import CyclePresentError, InvalidGraphShapeError

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Hashable)


@dataclass(frozen=True)
class FirstEncountered:
    """Selection policy taking the first pending node in enumeration order."""

    def pick(self, pending: list) -> int:
        return 0


@dataclass(frozen=True)
class LeastBy(Generic[T]):
    """Selection policy taking the pending node with the smallest key.

    A linear scan over the pending nodes; the earliest of several equal
    minima is taken.
    """

    key: Callable[[T], Any]

    def pick(self, pending: list[T]) -> int:
        return min(range(len(pending)), key=lambda i: self.key(pending[i]))


SelectionPolicy = FirstEncountered | LeastBy


def selection_policy(
    key: Callable[[T], Any] | None = None,
    comparator: Callable[[T, T], int] | None = None,
) -> SelectionPolicy:
    """Build the selection policy for a sort from a key or a comparator.

    Args:
        key: Function mapping a node to a sortable value
        comparator: Function returning a negative, zero or positive number,
            like the ``cmp`` functions accepted by ``functools.cmp_to_key``

    Raises:
        ValueError: If both ``key`` and ``comparator`` are given
    """
    if key is not None and comparator is not None:
        msg = "Pass either a key or a comparator as tie-break rule, not both"
        raise ValueError(msg)
    if comparator is not None:
        return LeastBy(functools.cmp_to_key(comparator))
    if key is not None:
        return LeastBy(key)
    return FirstEncountered()


def check_graph_shape(graph: Graph) -> None:
    """Reject graphs that cannot be topologically sorted by construction.

    A graph that merely allows self-loops is rejected even if it contains
    none.

    Raises:
        InvalidGraphShapeError: If the graph is undirected or allows self-loops
    """
    if not graph.is_directed():
        logger.error("invalid_graph_shape", reason="undirected graph")
        raise InvalidGraphShapeError("undirected graph")
    if graph.allows_self_loops():
        logger.error("invalid_graph_shape", reason="self-loop present")
        raise InvalidGraphShapeError("self-loop present")


def topological_sort(
    graph: Graph[T],
    key: Callable[[T], Any] | None = None,
    *,
    comparator: Callable[[T, T], int] | None = None,
) -> list[T]:
    """Order the nodes of a graph so that every edge points forward.

    For every edge ``u -> v`` the result places ``u`` before ``v``. Every node
    of the graph appears exactly once.

    Without a tie-break rule, the result depends on the enumeration order of
    ``graph.nodes()`` and ``graph.predecessors()``. For DependencyGraph this is
    insertion order, so the result is stable; other graph implementations may
    not guarantee that. With a tie-break rule, the least eligible node is
    always placed first, so repeated calls give identical results.

    Given ``V`` nodes and ``E`` edges, a wide shallow graph sorts in close to
    ``O(V + E)``. Each node being resolved keeps its own list of untaken
    ancestors, though, so a long chain costs ``O(V**2)`` memory and time:
    about two million pending entries for a 2000-node chain, two hundred
    million for 20000 nodes. The explicit stack avoids ``RecursionError`` on
    such graphs but not that cost. With a tie-break rule each placement also
    scans the pending nodes, so the rule should be cheap to evaluate.

    Args:
        graph: A directed graph that does not allow self-loops
        key: Optional tie-break rule as a key function, like ``sorted(key=...)``
        comparator: Optional tie-break rule as a three-way comparison function

    Returns:
        List of all nodes in dependency order

    Raises:
        InvalidGraphShapeError: If the graph is undirected or allows self-loops
        CyclePresentError: If the graph contains cycles; all cyclic components
            are reported
        ValueError: If both ``key`` and ``comparator`` are given
    """
    policy = selection_policy(key, comparator)

    check_graph_shape(graph)

    cycles = find_cycles(graph)
    if cycles:
        logger.error(
            "cycles_detected_in_graph",
            cycle_count=len(cycles),
            cycle_sizes=[len(component) for component in cycles],
        )
        raise CyclePresentError(cycles)

    nodes = list(graph.nodes())

    logger.debug(
        "topological_sort_started",
        node_count=len(nodes),
        tie_break=type(policy).__name__,
    )

    result = _Resolver(graph, policy).resolve(nodes)

    logger.debug("topological_sort_complete", node_count=len(result))

    return result


class _Resolver(Generic[T]):
    """Places nodes dependency-first into a result list.

    Assumes the graph is acyclic; a cyclic graph makes ``resolve`` loop
    forever. Always go through ``topological_sort``.
    """

    def __init__(self, graph: Graph[T], policy: SelectionPolicy):
        self.graph = graph
        self.policy = policy
        self.taken: set[T] = set()
        self.result: list[T] = []

    def resolve(self, nodes: list[T]) -> list[T]:
        """Place every node of ``nodes`` after all of its untaken predecessors.

        Each frame holds a list of pending nodes and the node to place once
        that list is exhausted. This is the explicit-stack form of resolving
        a node's predecessors recursively before placing it.
        """
        # The bottom frame has no owner
        frames: list[tuple[list[T], T | None]] = [(nodes, None)]

        while frames:
            pending, owner = frames[-1]

            if not pending:
                frames.pop()
                if frames:
                    self.result.append(owner)
                    self.taken.add(owner)
                continue

            node = pending.pop(self.policy.pick(pending))
            if node in self.taken:
                continue

            frames.append((self._untaken_ancestors(node), node))

        return self.result

    def _untaken_ancestors(self, node: T) -> list[T]:
        """Collect the untaken transitive predecessors of ``node``.

        Depth-first pre-order over ``predecessors``; a node reachable through
        several paths is listed once, at its first occurrence.
        """
        collected: list[T] = []
        seen: set[T] = set()
        work: list[Iterator[T]] = [iter(self.graph.predecessors(node))]

        while work:
            for parent in work[-1]:
                if parent in self.taken or parent in seen:
                    continue
                seen.add(parent)
                collected.append(parent)
                work.append(iter(self.graph.predecessors(parent)))
                break
            else:
                work.pop()

        return collected
