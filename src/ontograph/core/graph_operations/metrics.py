"""Graph metrics calculation functionality."""

from dataclasses import dataclass
from typing import Dict, Optional

from ..models import Graph
from .components import is_connected


@dataclass
class DegreeInfo:
    """Degree counts of a single node."""

    in_degree: int = 0
    out_degree: int = 0
    total: int = 0


@dataclass
class GraphMetrics:
    """Container for graph metrics results."""

    node_count: int
    edge_count: int
    density: float
    average_degree: float
    is_connected: bool
    degree_centrality: Dict[str, DegreeInfo]


class MetricsCalculator:
    """
    Calculates structural metrics of a graph.

    Degrees count edge endpoints: every edge adds one to the out-degree of its
    source and one to the in-degree of its target, whatever its direction flag.
    Density follows the graph's own ``directed`` flag.
    """

    def __init__(self, graph: Graph):
        """Initialize calculator with the graph to measure."""
        self.graph = graph

    def get_degrees(self) -> Dict[str, DegreeInfo]:
        """Get in, out and total degree for every node."""
        degrees = {node.id: DegreeInfo() for node in self.graph.nodes}
        for edge in self.graph.edges:
            source = degrees.get(edge.source)
            if source is not None:
                source.out_degree += 1
                source.total += 1
            target = degrees.get(edge.target)
            if target is not None:
                target.in_degree += 1
                target.total += 1
        return degrees

    def get_density(self) -> float:
        """
        Calculate graph density.

        Directed graphs use |E| / (n(n-1)), undirected ones 2|E| / (n(n-1)).
        Graphs with fewer than two nodes have density 0.0.
        """
        n = len(self.graph.nodes)
        if n <= 1:
            return 0.0
        max_edges = n * (n - 1)
        edge_count = len(self.graph.edges)
        if self.graph.directed:
            return edge_count / max_edges
        return (2 * edge_count) / max_edges

    def get_average_degree(self, degrees: Optional[Dict[str, DegreeInfo]] = None) -> float:
        """Calculate the mean total degree over all nodes."""
        degrees = degrees if degrees is not None else self.get_degrees()
        if not degrees:
            return 0.0
        return sum(info.total for info in degrees.values()) / len(degrees)

    def calculate_metrics(self) -> GraphMetrics:
        """Calculate all graph metrics."""
        degrees = self.get_degrees()
        return GraphMetrics(
            node_count=len(self.graph.nodes),
            edge_count=len(self.graph.edges),
            density=self.get_density(),
            average_degree=self.get_average_degree(degrees),
            is_connected=is_connected(self.graph),
            degree_centrality=degrees,
        )


def calculate_graph_metrics(graph: Graph) -> GraphMetrics:
    """Calculate node/edge counts, degrees, density and connectivity of a graph."""
    return MetricsCalculator(graph).calculate_metrics()
