"""Graph validation with full cycle reporting.

This module provides a non-raising counterpart to ``topological_sort``: it
collects every problem that would prevent a sort (shape violations and all
cyclic components) into a report, and renders graphs as Mermaid or Graphviz
diagrams with cyclic nodes highlighted.
"""

from collections.abc import Hashable
from dataclasses import dataclass, field

import structlog

from depsort.graph.components import find_cycles
from depsort.graph.dependency_graph import Graph

logger = structlog.get_logger(__name__)


@dataclass
class ValidationReport:
    """Report containing validation results for a dependency graph.

    Attributes:
        is_valid: Whether the graph can be topologically sorted
        errors: List of error messages (critical issues)
        warnings: List of warning messages (potential issues)
        cycles: Cyclic components, each a sorted list of node names
        isolated_nodes: Nodes with neither dependencies nor dependents
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    isolated_nodes: set[str] = field(default_factory=set)

    def add_error(self, message: str) -> None:
        """Add an error message and mark validation as failed."""
        self.errors.append(message)
        self.is_valid = False
        logger.error("validation_error", message=message)

    def add_warning(self, message: str) -> None:
        """Add a warning message without failing validation."""
        self.warnings.append(message)
        logger.warning("validation_warning", message=message)

    def summary(self) -> str:
        """Generate a human-readable summary of the validation report."""
        lines = []
        lines.append(f"Validation Status: {'PASS' if self.is_valid else 'FAIL'}")
        lines.append(f"Errors: {len(self.errors)}")
        lines.append(f"Warnings: {len(self.warnings)}")
        lines.append(f"Cycles: {len(self.cycles)}")
        lines.append(f"Isolated Nodes: {len(self.isolated_nodes)}")

        if self.errors:
            lines.append("\nErrors:")
            lines.extend(f"  - {error}" for error in self.errors)

        if self.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  - {warning}" for warning in self.warnings)

        if self.cycles:
            lines.append("\nCycles Detected:")
            for i, cycle in enumerate(self.cycles, 1):
                lines.append(f"  {i}. {', '.join(cycle)}")

        return "\n".join(lines)


class GraphValidator:
    """Validator for dependency graphs with detailed error reporting.

    Unlike ``topological_sort``, validation does not stop at the first
    problem: a graph with the wrong shape is still checked for cycles, so
    the report lists everything that needs fixing.
    """

    def validate(self, graph: Graph) -> ValidationReport:
        """Validate a graph and generate a detailed report.

        Args:
            graph: The graph to validate

        Returns:
            ValidationReport containing all validation results
        """
        nodes = list(graph.nodes())
        logger.info("starting_graph_validation", node_count=len(nodes))

        report = ValidationReport()

        if not graph.is_directed():
            report.add_error("Graph is undirected; edge direction is required")
        if graph.allows_self_loops():
            report.add_error("Graph allows self-loops; they must be disallowed")

        # In an undirected graph every edge is a two-node cycle, which is
        # already covered by the shape error above.
        if graph.is_directed():
            for component in find_cycles(graph):
                cycle = sorted(str(node) for node in component)
                report.cycles.append(cycle)
                report.add_error(f"Cycle detected: {', '.join(cycle)}")

        isolated = {
            str(node)
            for node in nodes
            if not graph.predecessors(node) and not graph.successors(node)
        }
        if isolated and len(nodes) > 1:
            report.isolated_nodes = isolated
            report.add_warning(
                f"Nodes without dependencies or dependents: {', '.join(sorted(isolated))}",
            )

        logger.info(
            "graph_validation_complete",
            is_valid=report.is_valid,
            error_count=len(report.errors),
            warning_count=len(report.warnings),
        )

        return report

    def generate_visualization(self, graph: Graph, output_format: str = "mermaid") -> str:
        """Generate a visual representation of the graph.

        Nodes belonging to a cycle are highlighted.

        Args:
            graph: The graph to visualize
            output_format: Output format ('mermaid' or 'dot')

        Returns:
            String representation of the graph in the requested format

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()

        if output_format == "mermaid":
            return self._generate_mermaid(graph)
        if output_format == "dot":
            return self._generate_graphviz(graph)
        error_msg = f"Unsupported format: {output_format}. Use 'mermaid' or 'dot'."
        raise ValueError(error_msg)

    def _cyclic_nodes(self, graph: Graph) -> set[Hashable]:
        if not graph.is_directed():
            return set()
        return {node for component in find_cycles(graph) for node in component}

    def _edges(self, graph: Graph) -> list[tuple[str, str]]:
        edges = set()
        for node in graph.nodes():
            for successor in graph.successors(node):
                if graph.is_directed():
                    edges.add((str(node), str(successor)))
                else:
                    edges.add(tuple(sorted((str(node), str(successor)))))
        return sorted(edges)

    def _generate_mermaid(self, graph: Graph) -> str:
        """Generate a Mermaid flowchart representation.

        Node ids are positional (``n0``, ``n1``, ...) over the sorted names, so
        names that differ only in punctuation, or that are Mermaid keywords
        such as ``end``, still get distinct valid ids. The real name is kept
        in the quoted label.

        Returns:
            Mermaid flowchart syntax
        """

        def label(name: str) -> str:
            return '"' + name.replace('"', "#quot;") + '"'

        lines = ["graph TD"]

        names = sorted(str(node) for node in graph.nodes())
        if not names:
            lines.append("    Empty[Empty Graph]")
            return "\n".join(lines)

        ids = {name: f"n{index}" for index, name in enumerate(names)}
        lines.extend(f"    {ids[name]}[{label(name)}]" for name in names)

        arrow = "-->" if graph.is_directed() else "---"
        lines.extend(
            f"    {ids[before]} {arrow} {ids[after]}"
            for before, after in self._edges(graph)
        )

        cyclic = sorted(str(node) for node in self._cyclic_nodes(graph))
        if cyclic:
            lines.append("    classDef cycle fill:#f66,stroke:#900")
            lines.append(f"    class {','.join(ids[name] for name in cyclic)} cycle")

        return "\n".join(lines)

    def _generate_graphviz(self, graph: Graph) -> str:
        """Generate a Graphviz DOT representation.

        Returns:
            Graphviz DOT syntax
        """

        def quote(s: str) -> str:
            return '"' + s.replace('"', '\\"') + '"'

        kind, arrow = ("digraph", "->") if graph.is_directed() else ("graph", "--")
        lines = [f"{kind} DependencyGraph {{"]
        lines.append("    rankdir=LR;")
        lines.append("    node [shape=box, style=rounded];")

        names = sorted(str(node) for node in graph.nodes())
        if not names:
            lines.append('    Empty [label="Empty Graph"];')
        else:
            cyclic = {str(node) for node in self._cyclic_nodes(graph)}
            for name in names:
                if name in cyclic:
                    lines.append(f"    {quote(name)} [color=red];")
                else:
                    lines.append(f"    {quote(name)};")
            lines.extend(
                f"    {quote(before)} {arrow} {quote(after)};"
                for before, after in self._edges(graph)
            )

        lines.append("}")
        return "\n".join(lines)
