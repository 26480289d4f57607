"""
Edge models for ontograph.

This module defines the model representing connections between nodes
in a graph.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .base import validate_dataclass, validate_non_empty


@validate_dataclass
@dataclass(frozen=True)
class GraphEdge:
    """
    Edge model representing a connection between two nodes.

    Attributes:
        id (str): Identifier, unique within its graph
        source (str): Source node ID
        target (str): Target node ID
        type (str): Edge type, e.g. "causes"
        label (Optional[str]): Human readable label
        directed (Optional[bool]): Direction flag; ``None`` inherits the
            graph default when the edge is added
        properties (Dict[str, Any]): Arbitrary property map
        metadata (Optional[Dict[str, Any]]): Optional bookkeeping data
    """

    id: str
    source: str
    target: str
    type: str
    label: Optional[str] = None
    directed: Optional[bool] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    metadata: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Validate edge after initialization."""
        validate_non_empty("id", self.id)
        validate_non_empty("source node", self.source)
        validate_non_empty("target node", self.target)

    @property
    def triple(self):
        """The (source, target, type) key used for duplicate detection."""
        return (self.source, self.target, self.type)

    def touches(self, node_id: str) -> bool:
        """Check whether the edge starts or ends at ``node_id``."""
        return self.source == node_id or self.target == node_id
