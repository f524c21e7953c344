#!/usr/bin/env python3
"""Main Entry Point and CLI Integration.

This module provides the command-line interface for depsort. It loads
configuration, reads a graph definition file, and prints the nodes in
dependency order, a validation report, or a diagram of the graph.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from depsort.config import DepsortConfig, get_config, reset_config
from depsort.graph import (
    CyclePresentError,
    DependencyGraph,
    GraphValidator,
    InvalidGraphShapeError,
    topological_sort,
)
from depsort.log_config import bind_context, clear_context, configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CYCLE = 2


def _reverse_order(a: str, b: str) -> int:
    return (a < b) - (a > b)


def sort_graph(graph: DependencyGraph, tie_break: str) -> list[Any]:
    """Sort a graph with the tie-break rule named in the configuration.

    Args:
        graph: The graph to sort
        tie_break: "none", "natural" or "reverse"

    Returns:
        Nodes in dependency order

    Raises:
        InvalidGraphShapeError: If the graph has an unsortable shape
        CyclePresentError: If the graph contains cycles
    """
    if tie_break == "natural":
        return topological_sort(graph, key=str)
    if tie_break == "reverse":
        return topological_sort(graph, comparator=_reverse_order)
    return topological_sort(graph)


def render_order(order: list[Any], output_format: str) -> str:
    """Render a sorted order as text (one node per line) or JSON."""
    if output_format == "json":
        return json.dumps({"order": [str(node) for node in order]}, indent=2)
    return "\n".join(str(node) for node in order)


def resolve_config(args: argparse.Namespace) -> DepsortConfig:
    """Load the configuration file, if any, and apply command-line overrides.

    When a configuration file is loaded, the result is the shared instance
    returned by ``get_config()``, so later callers see the effective settings
    of this run. Without one, the shared instance is cleared.

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        ValueError: If the configuration is invalid
    """
    try:
        config = get_config(args.config, reload=True)
    except FileNotFoundError:
        if args.config is not None:
            raise
        reset_config()
        config = DepsortConfig.from_env()

    if args.tie_break is not None:
        config.sort.tie_break = args.tie_break
    if args.format is not None:
        config.output.format = args.format
    if args.log_level is not None:
        config.logging_level = args.log_level
    if args.json_logs:
        config.json_logs = True

    return config


def run(args: argparse.Namespace) -> int:
    """Run the command described by the parsed arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 success, 1 error, 2 cycles present)
    """
    # Configure logging early so config loading is logged consistently
    configure_logging(args.log_level or "WARNING", json_logs=args.json_logs)

    try:
        config = resolve_config(args)
    except (FileNotFoundError, ValueError) as e:
        logger.exception("configuration_error", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR

    configure_logging(config.logging_level, json_logs=config.json_logs)
    for warning in config.validate_config():
        logger.warning("configuration_warning", message=warning)

    bind_context(graph_file=str(args.graph))
    try:
        try:
            graph = DependencyGraph.from_file(args.graph)
        except (FileNotFoundError, ValueError) as e:
            logger.exception("graph_file_error", error=str(e))
            print(f"error: {e}", file=sys.stderr)
            return EXIT_ERROR

        validator = GraphValidator()

        if args.validate:
            report = validator.validate(graph)
            print(report.summary())
            return EXIT_OK if report.is_valid else EXIT_CYCLE

        if config.output.format in ("mermaid", "dot"):
            print(validator.generate_visualization(graph, config.output.format))
            return EXIT_OK

        try:
            order = sort_graph(graph, config.sort.tie_break)
        except CyclePresentError as e:
            print("error: dependency cycles detected", file=sys.stderr)
            for line in e.describe():
                print(f"  {line}", file=sys.stderr)
            return EXIT_CYCLE
        except InvalidGraphShapeError as e:
            print(f"error: {e.message}", file=sys.stderr)
            return EXIT_ERROR

        logger.info("graph_sorted", node_count=len(order), tie_break=config.sort.tie_break)
        print(render_order(order, config.output.format))
        return EXIT_OK
    finally:
        clear_context()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="depsort - order items so that every dependency comes first",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Graph files are YAML (or JSON) mappings:

  nodes: [core, net, ui]
  dependencies:
    ui: [core, net]
  edges:
    - [core, net]

Examples:
  # Print the load order
  python main.py plugins.yaml

  # Break ties between independent nodes alphabetically, print JSON
  python main.py plugins.yaml --tie-break natural --format json

  # Report every problem in the graph without sorting
  python main.py plugins.yaml --validate

  # Draw the graph
  python main.py plugins.yaml --format mermaid
        """,
    )

    parser.add_argument(
        "graph",
        type=Path,
        help="Path to the graph definition file (YAML or JSON)",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to configuration YAML file (default: depsort.yaml if present)",
    )

    parser.add_argument(
        "-t",
        "--tie-break",
        choices=["none", "natural", "reverse"],
        default=None,
        help="Order of nodes with no dependency between them",
    )

    parser.add_argument(
        "-f",
        "--format",
        choices=["text", "json", "mermaid", "dot"],
        default=None,
        help="Output format (default: text)",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Print a validation report instead of the sorted order",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug output (DEBUG level)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Write log lines as JSON",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default: WARNING)",
    )

    args = parser.parse_args(argv)

    if args.debug:
        args.log_level = "DEBUG"

    return args


def main(argv: list[str] | None = None) -> None:
    """Main entry point: parse arguments, run, and exit with the result code."""
    sys.exit(run(parse_args(argv)))


if __name__ == "__main__":
    main()
