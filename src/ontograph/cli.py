"""Command Line Interface for ontograph graph files.

This module provides a CLI for inspecting and converting graphs stored in the
JSON wire format. It supports the following commands:
    - metrics: Print node/edge counts, density and connectivity
    - components: Print the connected components of a graph
    - layout: Apply a force-directed layout and print the resulting graph
    - export-dot: Print a graph as GraphViz DOT
    - export-csv: Write a graph as a nodes CSV and an edges CSV
    - import-csv: Build a graph from a nodes CSV and an edges CSV

Graph input can be provided either as a direct JSON string or as a file path
prefixed with '@'.

Example Usage:
    python -m ontograph metrics @data/graph.json
    python -m ontograph export-dot @data/graph.json -o graph.dot
    python -m ontograph import-csv nodes.csv edges.csv --name imported
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import EngineConfig
from .core.exceptions import ConfigurationError, ValidationError
from .core.graph_operations import (
    ForceDirectedLayout,
    calculate_graph_metrics,
    deserialize_graph,
    export_to_csv,
    export_to_dot,
    extract_connected_components,
    import_from_csv,
    serialize_graph,
)
from .core.models import Graph

logger = logging.getLogger(__name__)


def read_text(value: str) -> str:
    """Read an argument that is either inline text or an '@'-prefixed file path.

    Raises:
        ValueError: If the referenced file does not exist.
    """
    if not value.startswith("@"):
        return value
    path = Path(value[1:]).expanduser()
    if not path.exists():
        raise ValueError(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def load_graph(value: str) -> Graph:
    """Load a graph from inline JSON or an '@'-prefixed file."""
    return deserialize_graph(read_text(value))


def write_output(text: str, output: Optional[str]) -> None:
    """Write text to a file, or to stdout when no file is given."""
    if output:
        Path(output).write_text(text, encoding="utf-8")
        logger.info(f"Wrote {output}")
    else:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")


def print_metrics(graph: Graph) -> None:
    """Display the metrics of a graph."""
    metrics = calculate_graph_metrics(graph)
    print(f"Graph: {graph.name} ({graph.id})")
    print(f"  Nodes: {metrics.node_count}")
    print(f"  Edges: {metrics.edge_count}")
    print(f"  Density: {metrics.density:.4f}")
    print(f"  Average degree: {metrics.average_degree:.4f}")
    print(f"  Connected: {metrics.is_connected}")
    print("\nDegrees (in/out/total):")
    for node_id, info in metrics.degree_centrality.items():
        print(f"- {node_id}: {info.in_degree}/{info.out_degree}/{info.total}")


def print_components(graph: Graph) -> None:
    """Display the connected components of a graph."""
    components = extract_connected_components(graph)
    print(f"{len(components)} connected components:")
    for component in components:
        print(f"- {len(component.nodes)} nodes: {', '.join(component.node_ids)}")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the command-line argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="ontograph", description="Ontograph graph CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    metrics = subparsers.add_parser("metrics", help="Print graph metrics")
    metrics.add_argument("graph", help="Graph JSON string or @filename")

    components = subparsers.add_parser("components", help="Print connected components")
    components.add_argument("graph", help="Graph JSON string or @filename")

    layout = subparsers.add_parser("layout", help="Apply a force-directed layout")
    layout.add_argument("graph", help="Graph JSON string or @filename")
    layout.add_argument("--iterations", type=int, help="Number of simulation steps")
    layout.add_argument("--seed", type=int, help="Seed for initial positions")
    layout.add_argument("-o", "--output", help="Output file (default: stdout)")

    dot = subparsers.add_parser("export-dot", help="Export a graph as GraphViz DOT")
    dot.add_argument("graph", help="Graph JSON string or @filename")
    dot.add_argument("-o", "--output", help="Output file (default: stdout)")

    to_csv = subparsers.add_parser("export-csv", help="Export a graph as two CSV files")
    to_csv.add_argument("graph", help="Graph JSON string or @filename")
    to_csv.add_argument("nodes_output", help="Nodes CSV output file")
    to_csv.add_argument("edges_output", help="Edges CSV output file")

    from_csv = subparsers.add_parser("import-csv", help="Build a graph from two CSV files")
    from_csv.add_argument("nodes_csv", help="Nodes CSV file")
    from_csv.add_argument("edges_csv", help="Edges CSV file")
    from_csv.add_argument("--name", help="Graph name")
    from_csv.add_argument("--description", help="Graph description")
    from_csv.add_argument(
        "--undirected", action="store_true", help="Default edges to undirected"
    )
    from_csv.add_argument("-o", "--output", help="Output file (default: stdout)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI application.

    Returns:
        int: Process exit status.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "metrics":
            print_metrics(load_graph(args.graph))

        elif args.command == "components":
            print_components(load_graph(args.graph))

        elif args.command == "layout":
            config = EngineConfig.from_env().layout
            if args.iterations is not None:
                config.iterations = args.iterations
            if args.seed is not None:
                config.seed = args.seed
            graph = ForceDirectedLayout(config).apply(load_graph(args.graph))
            write_output(serialize_graph(graph, indent=2), args.output)

        elif args.command == "export-dot":
            write_output(export_to_dot(load_graph(args.graph)), args.output)

        elif args.command == "export-csv":
            nodes_csv, edges_csv = export_to_csv(load_graph(args.graph))
            write_output(nodes_csv, args.nodes_output)
            write_output(edges_csv, args.edges_output)

        elif args.command == "import-csv":
            graph = import_from_csv(
                read_text(f"@{args.nodes_csv}"),
                read_text(f"@{args.edges_csv}"),
                name=args.name,
                description=args.description,
                directed=not args.undirected,
            )
            write_output(serialize_graph(graph, indent=2), args.output)

    except (ValueError, ValidationError, ConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0
