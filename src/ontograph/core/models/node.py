"""
Node models for ontograph.

This module defines the model representing vertices in a graph.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .base import validate_dataclass, validate_non_empty


@validate_dataclass
@dataclass(frozen=True)
class GraphNode:
    """
    Node model representing a vertex in a graph.

    Nodes are immutable snapshots. Changing a node means building a new one
    (``dataclasses.replace``) and upserting it into the graph.

    Attributes:
        id (str): Identifier, unique within its graph
        type (str): Node type, e.g. "person" or "concept"
        label (Optional[str]): Human readable label
        properties (Dict[str, Any]): Arbitrary property map
        metadata (Optional[Dict[str, Any]]): Optional bookkeeping data
    """

    id: str
    type: str
    label: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    metadata: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Validate node after initialization."""
        validate_non_empty("id", self.id)
