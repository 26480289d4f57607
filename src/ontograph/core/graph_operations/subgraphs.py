"""Graph subgraph extraction and merging functionality."""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..exceptions import ValidationError
from ..graph import create_graph
from ..models import Graph, GraphEdge, GraphNode, utc_now

logger = logging.getLogger(__name__)


def assemble_subgraph(
    graph: Graph,
    nodes: Iterable[GraphNode],
    edges: Iterable[GraphEdge],
    name: str,
    description: str,
) -> Graph:
    """Build a subgraph of ``graph`` from already selected nodes and edges."""
    return create_graph(
        name=name,
        description=description,
        nodes=nodes,
        edges=edges,
        directed=graph.directed,
        multigraph=graph.multigraph,
        properties={
            **graph.properties,
            "parent_graph": graph.id,
            "is_subgraph": True,
            "subgraph_created_at": utc_now().isoformat(),
        },
    )


def create_subgraph(
    graph: Graph,
    node_ids: Iterable[str],
    include_connected_edges: bool = True,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Graph:
    """
    Create a subgraph induced by a set of node ids.

    Args:
        graph: Source graph
        node_ids: Ids of the nodes to keep; unknown ids are ignored
        include_connected_edges: Keep edges whose endpoints are both kept
        name: Subgraph name, defaults to "Subgraph of <name>"
        description: Subgraph description

    Returns:
        A new graph with its own id whose properties record the parent graph
    """
    keep = list(dict.fromkeys(node_ids))
    keep_set = set(keep)
    nodes = [node for node in graph.nodes if node.id in keep_set]
    edges = []
    if include_connected_edges:
        edges = [
            edge for edge in graph.edges if edge.source in keep_set and edge.target in keep_set
        ]

    return assemble_subgraph(
        graph,
        nodes,
        edges,
        name=name or f"Subgraph of {graph.name}",
        description=description or f"Subgraph created from {len(keep)} nodes",
    )


class GraphMerger:
    """
    Merges several graphs into one.

    Nodes are keyed by id and edges by id. With deduplication enabled the
    first occurrence of an id wins; with it disabled a later occurrence
    replaces the earlier one. Edges whose endpoints are not in the merged node
    set are dropped, as are edges that would duplicate a (source, target,
    type) triple when the merged graph is not a multigraph.
    """

    def __init__(
        self,
        graphs: List[Graph],
        deduplicate_nodes: bool = True,
        deduplicate_edges: bool = True,
    ):
        if not graphs:
            raise ValidationError("Cannot merge empty list of graphs")
        self.graphs = graphs
        self.deduplicate_nodes = deduplicate_nodes
        self.deduplicate_edges = deduplicate_edges
        self.multigraph = any(graph.multigraph for graph in graphs)

    def _merged_nodes(self) -> Dict[str, GraphNode]:
        nodes: Dict[str, GraphNode] = {}
        for graph in self.graphs:
            for node in graph.nodes:
                if node.id not in nodes or not self.deduplicate_nodes:
                    nodes[node.id] = node
        return nodes

    def _merged_edges(self, node_ids: Set[str]) -> List[GraphEdge]:
        edges: Dict[str, GraphEdge] = {}
        for graph in self.graphs:
            for edge in graph.edges:
                if edge.source not in node_ids or edge.target not in node_ids:
                    logger.debug(f"Dropping edge {edge.id} with endpoint outside merged graph")
                    continue
                if edge.id not in edges or not self.deduplicate_edges:
                    edges[edge.id] = edge

        if self.multigraph:
            return list(edges.values())

        seen: Set[Tuple[str, str, str]] = set()
        result = []
        for edge in edges.values():
            if edge.triple in seen:
                logger.debug(f"Dropping edge {edge.id} duplicating {edge.triple}")
                continue
            seen.add(edge.triple)
            result.append(edge)
        return result

    def merge(self, name: Optional[str] = None, description: Optional[str] = None) -> Graph:
        """Build the merged graph."""
        if len(self.graphs) == 1:
            return self.graphs[0]

        nodes = self._merged_nodes()
        edges = self._merged_edges(set(nodes))
        merged = create_graph(
            name=name or f"Merged Graph ({', '.join(graph.name for graph in self.graphs)})",
            description=description or f"Merged from {len(self.graphs)} graphs",
            nodes=nodes.values(),
            edges=edges,
            directed=self.graphs[0].directed,
            multigraph=self.multigraph,
            properties={
                "merged": True,
                "source_graphs": [{"id": graph.id, "name": graph.name} for graph in self.graphs],
                "merged_at": utc_now().isoformat(),
            },
        )
        logger.info(f"Merged {len(self.graphs)} graphs into {merged.id}")
        return merged


def merge_graphs(
    graphs: List[Graph],
    name: Optional[str] = None,
    description: Optional[str] = None,
    deduplicate_nodes: bool = True,
    deduplicate_edges: bool = True,
) -> Graph:
    """
    Merge graphs into a single graph.

    ``directed`` is copied from the first graph and ``multigraph`` is set when
    any input is a multigraph. A single input graph is returned unchanged.

    Raises:
        ValidationError: If ``graphs`` is empty
    """
    return GraphMerger(
        list(graphs), deduplicate_nodes=deduplicate_nodes, deduplicate_edges=deduplicate_edges
    ).merge(name=name, description=description)
