"""
Graph value model for ontograph.

A Graph is an immutable snapshot holding its nodes and edges as tuples.
Mutation functions in ``ontograph.core.graph`` never modify a Graph; they
return a new one built with ``dataclasses.replace``. Each Graph value owns its
property and metadata maps, so versions never share them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .base import utc_now, validate_dataclass, validate_date_order, validate_non_empty
from .edge import GraphEdge
from .node import GraphNode


@validate_dataclass
@dataclass(frozen=True)
class Graph:
    """
    Graph value uniting nodes and edges.

    Attributes:
        id (str): Graph identifier
        name (str): Display name
        description (Optional[str]): Free text description
        nodes (Tuple[GraphNode, ...]): Nodes in insertion order
        edges (Tuple[GraphEdge, ...]): Edges in insertion order
        directed (bool): Default direction for edges added without one
        multigraph (bool): Whether several edges may share (source, target, type)
        properties (Dict[str, Any]): Arbitrary property map
        metadata (Optional[Dict[str, Any]]): Optional bookkeeping data
        created_at (datetime): Creation instant
        updated_at (datetime): Instant of the last mutation
    """

    id: str
    name: str
    description: Optional[str] = None
    nodes: Tuple[GraphNode, ...] = ()
    edges: Tuple[GraphEdge, ...] = ()
    directed: bool = True
    multigraph: bool = False
    properties: Dict[str, Any] = field(default_factory=dict)
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        """Normalise collections, detach property maps and validate the header."""
        # frozen: normalise via object.__setattr__
        if isinstance(self.properties, dict):
            object.__setattr__(self, "properties", dict(self.properties))
        if isinstance(self.metadata, dict):
            object.__setattr__(self, "metadata", dict(self.metadata))
        if not isinstance(self.nodes, tuple):
            object.__setattr__(self, "nodes", tuple(self.nodes))
        if not isinstance(self.edges, tuple):
            object.__setattr__(self, "edges", tuple(self.edges))
        validate_non_empty("id", self.id)
        validate_date_order(self.created_at, self.updated_at)

    @property
    def node_ids(self) -> Tuple[str, ...]:
        """Node ids in insertion order."""
        return tuple(node.id for node in self.nodes)

    def has_node(self, node_id: str) -> bool:
        """Check if a node exists in the graph."""
        return any(node.id == node_id for node in self.nodes)

    def has_edge(self, edge_id: str) -> bool:
        """Check if an edge exists in the graph."""
        return any(edge.id == edge_id for edge in self.edges)
