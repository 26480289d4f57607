"""
Copy-on-write graph operations.

This module provides the functions that build, mutate and query Graph values.
Graph values are immutable: every mutating function returns a new Graph and
stamps a fresh ``updated_at``, leaving the input untouched. Functions that
cannot change anything (removing an unknown node or edge) return the input
graph itself.

Structural invariants are enforced on every edge insertion:
- Both endpoints must already be nodes of the graph
- A non-multigraph holds at most one edge per (source, target, type)
"""

import logging
from dataclasses import replace
from typing import Any, Container, Dict, Iterable, List, Optional, Tuple

from .exceptions import (
    DuplicateEdgeError,
    EdgeNotFoundError,
    MissingEndpointError,
    NodeNotFoundError,
    ValidationError,
)
from .filters import filter_by_properties
from .models import Graph, GraphEdge, GraphNode, new_id, utc_now

logger = logging.getLogger(__name__)

DIRECTIONS = ("outgoing", "incoming", "both")


def _check_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValidationError(
            f"Invalid direction '{direction}', expected one of: {', '.join(DIRECTIONS)}"
        )


def _touch(graph: Graph, **changes: Any) -> Graph:
    """Return a copy of ``graph`` with ``changes`` applied and a fresh timestamp."""
    now = utc_now()
    return replace(graph, updated_at=max(now, graph.created_at), **changes)


def _check_endpoints(edge: GraphEdge, node_ids: Container[str]) -> None:
    for endpoint, node_id in (("source", edge.source), ("target", edge.target)):
        if node_id not in node_ids:
            raise MissingEndpointError(
                f"Cannot add edge {edge.id}: {endpoint} node '{node_id}' not found in graph",
                edge_id=edge.id,
                node_id=node_id,
            )


def _duplicate_edge(edge: GraphEdge) -> DuplicateEdgeError:
    return DuplicateEdgeError(
        f"Cannot add duplicate edge in non-multigraph: "
        f"{edge.source} -> {edge.target} ({edge.type})"
    )


def create_graph(
    name: str,
    id: Optional[str] = None,
    description: Optional[str] = None,
    nodes: Optional[Iterable[GraphNode]] = None,
    edges: Optional[Iterable[GraphEdge]] = None,
    directed: bool = True,
    multigraph: bool = False,
    properties: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Graph:
    """
    Create a new graph.

    Nodes are inserted first, then edges, with the same upsert rules as
    ``add_node`` / ``add_edge``. The graph is built in a single pass with id
    and (source, target, type) lookups, so bulk construction stays linear.

    Args:
        name: Display name
        id: Graph id; a uuid4 is generated when omitted
        description: Optional free text
        nodes: Initial nodes
        edges: Initial edges
        directed: Default direction for edges without an explicit flag
        multigraph: Whether parallel edges of the same type are allowed
        properties: Graph property map
        metadata: Graph metadata

    Returns:
        The new Graph

    Raises:
        ValidationError: If an initial edge violates the structural invariants
    """
    now = utc_now()
    node_map: Dict[str, GraphNode] = {}
    for node in nodes or ():
        node_map[node.id] = node

    edge_map: Dict[str, GraphEdge] = {}
    triples: Dict[Tuple[str, str, str], str] = {}
    for edge in edges or ():
        _check_endpoints(edge, node_map)
        if edge.directed is None:
            edge = replace(edge, directed=directed)
        if not multigraph:
            previous = edge_map.get(edge.id)
            if previous is not None and triples.get(previous.triple) == edge.id:
                del triples[previous.triple]
            if triples.setdefault(edge.triple, edge.id) != edge.id:
                raise _duplicate_edge(edge)
        edge_map[edge.id] = edge

    graph = Graph(
        id=id or new_id(),
        name=name,
        description=description,
        nodes=tuple(node_map.values()),
        edges=tuple(edge_map.values()),
        directed=directed,
        multigraph=multigraph,
        properties=dict(properties or {}),
        metadata=metadata,
        created_at=now,
        updated_at=now,
    )
    logger.debug(
        f"Created graph {graph.id} with {len(graph.nodes)} nodes and {len(graph.edges)} edges"
    )
    return graph


def add_node(graph: Graph, node: GraphNode) -> Graph:
    """
    Insert or replace a node.

    A node whose id is already present replaces the existing node at the same
    position; otherwise it is appended.
    """
    nodes = list(graph.nodes)
    for index, existing in enumerate(nodes):
        if existing.id == node.id:
            nodes[index] = node
            break
    else:
        nodes.append(node)
    return _touch(graph, nodes=tuple(nodes))


def add_edge(graph: Graph, edge: GraphEdge) -> Graph:
    """
    Insert or replace an edge.

    An edge added with ``directed=None`` takes the graph's default direction.
    Upserting an existing id keeps its position. The (source, target, type)
    uniqueness of a non-multigraph is checked against every other edge, so an
    upsert cannot create a duplicate either.

    Raises:
        MissingEndpointError: If source or target is not a node of the graph
        DuplicateEdgeError: If a non-multigraph already holds another edge with
            the same (source, target, type)
    """
    _check_endpoints(edge, set(graph.node_ids))

    if not graph.multigraph:
        for existing in graph.edges:
            if existing.id != edge.id and existing.triple == edge.triple:
                raise _duplicate_edge(edge)

    if edge.directed is None:
        edge = replace(edge, directed=graph.directed)

    edges = list(graph.edges)
    for index, existing in enumerate(edges):
        if existing.id == edge.id:
            edges[index] = edge
            break
    else:
        edges.append(edge)
    return _touch(graph, edges=tuple(edges))


def remove_node(graph: Graph, node_id: str) -> Graph:
    """Remove a node and every edge that touches it."""
    if not graph.has_node(node_id):
        return graph
    nodes = tuple(node for node in graph.nodes if node.id != node_id)
    edges = tuple(edge for edge in graph.edges if not edge.touches(node_id))
    removed = len(graph.edges) - len(edges)
    if removed:
        logger.debug(f"Removing node {node_id} cascaded to {removed} edges")
    return _touch(graph, nodes=nodes, edges=edges)


def remove_edge(graph: Graph, edge_id: str) -> Graph:
    """Remove an edge by id."""
    if not graph.has_edge(edge_id):
        return graph
    return _touch(graph, edges=tuple(edge for edge in graph.edges if edge.id != edge_id))


def get_node(graph: Graph, node_id: str) -> Optional[GraphNode]:
    """Get a node by id, or None."""
    return next((node for node in graph.nodes if node.id == node_id), None)


def get_edge(graph: Graph, edge_id: str) -> Optional[GraphEdge]:
    """Get an edge by id, or None."""
    return next((edge for edge in graph.edges if edge.id == edge_id), None)


def require_node(graph: Graph, node_id: str) -> GraphNode:
    """Get a node by id, raising NodeNotFoundError if it does not exist."""
    node = get_node(graph, node_id)
    if node is None:
        raise NodeNotFoundError(f"Node '{node_id}' not found in graph {graph.id}")
    return node


def require_edge(graph: Graph, edge_id: str) -> GraphEdge:
    """Get an edge by id, raising EdgeNotFoundError if it does not exist."""
    edge = get_edge(graph, edge_id)
    if edge is None:
        raise EdgeNotFoundError(f"Edge '{edge_id}' not found in graph {graph.id}")
    return edge


def find_nodes_by_property(graph: Graph, key: str, value: Any) -> List[GraphNode]:
    """Find nodes whose property ``key`` equals ``value``."""
    return [node for node in graph.nodes if key in node.properties and node.properties[key] == value]


def find_edges_by_property(graph: Graph, key: str, value: Any) -> List[GraphEdge]:
    """Find edges whose property ``key`` equals ``value``."""
    return [edge for edge in graph.edges if key in edge.properties and edge.properties[key] == value]


def filter_nodes(graph: Graph, filters: Optional[Dict[str, Any]]) -> List[GraphNode]:
    """Query nodes with a property filter."""
    return filter_by_properties(graph.nodes, filters)


def filter_edges(graph: Graph, filters: Optional[Dict[str, Any]]) -> List[GraphEdge]:
    """Query edges with a property filter."""
    return filter_by_properties(graph.edges, filters)


def get_adjacent_nodes(graph: Graph, node_id: str, direction: str = "both") -> List[GraphNode]:
    """
    Get the neighbours of a node.

    Args:
        graph: Graph to query
        node_id: Node whose neighbours are requested
        direction: ``outgoing`` follows edges from the node, ``incoming`` edges
            into it, ``both`` either

    Returns:
        Neighbour nodes in graph order, each listed once
    """
    _check_direction(direction)
    neighbour_ids = set()
    for edge in graph.edges:
        if direction in ("outgoing", "both") and edge.source == node_id:
            neighbour_ids.add(edge.target)
        if direction in ("incoming", "both") and edge.target == node_id:
            neighbour_ids.add(edge.source)
    return [node for node in graph.nodes if node.id in neighbour_ids]


def get_edges_between(graph: Graph, a: str, b: str, directed: bool = True) -> List[GraphEdge]:
    """
    Get the edges connecting two nodes.

    With ``directed=True`` only edges from ``a`` to ``b`` are returned;
    otherwise edges in either direction.
    """
    if directed:
        return [edge for edge in graph.edges if edge.source == a and edge.target == b]
    return [
        edge
        for edge in graph.edges
        if (edge.source == a and edge.target == b) or (edge.source == b and edge.target == a)
    ]


def to_adjacency_list(graph: Graph, direction: str = "outgoing") -> Dict[str, List[str]]:
    """
    Convert a graph to an adjacency list.

    Every node appears as a key, possibly with an empty list. Parallel edges
    produce repeated neighbour entries.
    """
    _check_direction(direction)
    adjacency: Dict[str, List[str]] = {node.id: [] for node in graph.nodes}
    for edge in graph.edges:
        if direction in ("outgoing", "both"):
            adjacency.setdefault(edge.source, []).append(edge.target)
        if direction in ("incoming", "both"):
            adjacency.setdefault(edge.target, []).append(edge.source)
    return adjacency


def to_adjacency_matrix(graph: Graph) -> Tuple[List[List[int]], List[str]]:
    """
    Convert a graph to an adjacency matrix.

    Returns:
        Tuple of (matrix, node_ids) where ``matrix[i][j]`` is 1 when an edge
        runs from ``node_ids[i]`` to ``node_ids[j]``. Undirected edges (or any
        edge of an undirected graph) also set the symmetric entry.
    """
    node_ids = list(graph.node_ids)
    index = {node_id: position for position, node_id in enumerate(node_ids)}
    size = len(node_ids)
    matrix = [[0] * size for _ in range(size)]

    for edge in graph.edges:
        source = index.get(edge.source)
        target = index.get(edge.target)
        if source is None or target is None:
            continue
        matrix[source][target] = 1
        if not graph.directed or edge.directed is False:
            matrix[target][source] = 1

    return matrix, node_ids
