"""Graph component analysis functionality."""

from collections import deque
from typing import Dict, List, Set

from ..graph import to_adjacency_list
from ..models import Graph, GraphEdge, GraphNode
from .subgraphs import assemble_subgraph


class ComponentAnalysis:
    """
    Analyzes connected components in a graph.

    Components are computed over the undirected view of the graph: an edge
    connects its endpoints whatever its direction. Nodes without edges form
    singleton components.
    """

    def __init__(self, graph: Graph):
        """Initialize component analyzer with the graph to inspect."""
        self.graph = graph
        self.adjacency: Dict[str, List[str]] = to_adjacency_list(graph, "both")

    def _walk(self, start: str, visited: Set[str]) -> List[str]:
        """Breadth-first walk from ``start``, marking nodes in ``visited``."""
        component = []
        queue = deque([start])
        visited.add(start)
        while queue:
            current = queue.popleft()
            component.append(current)
            for neighbour in self.adjacency.get(current, []):
                if neighbour not in visited:
                    visited.add(neighbour)
                    queue.append(neighbour)
        return component

    def get_components(self) -> List[List[str]]:
        """Get node ids of every component, in discovery order."""
        visited: Set[str] = set()
        components = []
        for node in self.graph.nodes:
            if node.id not in visited:
                components.append(self._walk(node.id, visited))
        return components

    def is_connected(self) -> bool:
        """Check whether a walk from the first node reaches every node."""
        if not self.graph.nodes:
            return True
        visited: Set[str] = set()
        self._walk(self.graph.nodes[0].id, visited)
        return len(visited) == len(self.graph.nodes)


def is_connected(graph: Graph) -> bool:
    """Check whether the undirected view of a graph is connected."""
    return ComponentAnalysis(graph).is_connected()


def extract_connected_components(graph: Graph) -> List[Graph]:
    """
    Split a graph into its connected components.

    Each component becomes an independent subgraph holding the component's
    nodes and the edges between them. Nodes and edges are bucketed by
    component in one pass over the graph.
    """
    components = ComponentAnalysis(graph).get_components()
    owner = {node_id: index for index, node_ids in enumerate(components) for node_id in node_ids}
    nodes: List[List[GraphNode]] = [[] for _ in components]
    edges: List[List[GraphEdge]] = [[] for _ in components]
    for node in graph.nodes:
        nodes[owner[node.id]].append(node)
    for edge in graph.edges:
        index = owner.get(edge.source)
        if index is not None and owner.get(edge.target) == index:
            edges[index].append(edge)

    return [
        assemble_subgraph(
            graph,
            nodes[index],
            edges[index],
            name=f"Component {index + 1} of {graph.name}",
            description=f"Connected component with {len(node_ids)} nodes",
        )
        for index, node_ids in enumerate(components)
    ]
