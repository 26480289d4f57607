"""
Core domain models package for ontograph.

This package provides the immutable value types that represent nodes,
edges and whole graphs.
"""

from .base import new_id, utc_now, validate_date_order, validate_non_empty
from .edge import GraphEdge
from .graph import Graph
from .node import GraphNode

__all__ = [
    # Base utilities
    "new_id",
    "utc_now",
    "validate_date_order",
    "validate_non_empty",
    # Graph models
    "GraphNode",
    "GraphEdge",
    "Graph",
]
