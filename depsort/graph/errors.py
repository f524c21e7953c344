"""Exceptions raised while ordering a dependency graph.

Both sort failures are terminal: no partial ordering is ever returned.
"""

from collections.abc import Hashable, Iterable


class GraphSortError(Exception):
    """Base class for errors raised by topological sorting."""

    def __init__(self, message: str):
        """Initialize the exception with a descriptive message.

        Args:
            message: Description of the sort failure
        """
        super().__init__(message)
        self.message = message


class InvalidGraphShapeError(GraphSortError):
    """The graph violates a structural precondition of the sort.

    This indicates a programming error in how the graph was constructed
    (an undirected graph, or a graph that permits self-loops), not a
    dependency cycle.

    Attributes:
        reason: Short description of the violated precondition
    """

    def __init__(self, reason: str):
        """Initialize the exception.

        Args:
            reason: Short description of the violated precondition
        """
        super().__init__(f"Cannot topologically sort graph: {reason}")
        self.reason = reason


class CyclePresentError(GraphSortError):
    """The graph contains one or more dependency cycles.

    Every strongly connected component with two or more nodes is reported,
    so callers can show all cycles at once rather than fixing them one by
    one.

    Attributes:
        components: Snapshot of the cyclic components, one frozenset per cycle
    """

    def __init__(self, components: Iterable[Iterable[Hashable]]):
        """Initialize the exception from the offending components.

        Args:
            components: Node collections, one per strongly connected component
        """
        self.components: tuple[frozenset, ...] = tuple(frozenset(c) for c in components)
        super().__init__(
            f"Dependency cycles detected in {len(self.components)} component(s): "
            + "; ".join(self.describe()),
        )

    def describe(self) -> list[str]:
        """Render each cyclic component as a human-readable line.

        Returns:
            One line per component, e.g. ``"a, b, c form a cycle"``
        """
        return [
            f"{', '.join(sorted(str(node) for node in component))} form a cycle"
            for component in self.components
        ]
