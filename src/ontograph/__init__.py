"""
Ontograph - In-memory Graph Engine with Ontological Traversal

This package provides an in-memory typed graph engine and an ontology layer
built on top of it. It includes:

- Immutable graph values with copy-on-write mutation functions
- Graph metrics, connectivity, subgraphs, layout and JSON/CSV/DOT formats
- Property filters shared by node, edge and context queries
- A context index grouping domain entities and relations
- Causal, membership and inheritance traversals over entity relations

For more information, please see the documentation.
"""

__version__ = "0.1.0"
__author__ = "Ontograph Team"

# Version compatibility check
import sys

if sys.version_info < (3, 12):
    raise RuntimeError("Ontograph requires Python 3.12 or higher")

# Import commonly used components for easier access
from .core import Graph, GraphEdge, GraphNode, GraphStore
from .config import EngineConfig, LayoutConfig, TraversalConfig
from .ontology import ContextIndex, EntityRef, OntologyTraversal

__all__ = [
    "Graph",
    "GraphNode",
    "GraphEdge",
    "GraphStore",
    "EngineConfig",
    "LayoutConfig",
    "TraversalConfig",
    "ContextIndex",
    "EntityRef",
    "OntologyTraversal",
]
