"""Core graph functionality."""

from .exceptions import (
    ConfigurationError,
    ContextNotFoundError,
    DuplicateEdgeError,
    EdgeNotFoundError,
    GraphNotFoundError,
    GraphOperationError,
    MissingEndpointError,
    NodeNotFoundError,
    OperationExecutionError,
    ProtectedResourceError,
    ResourceNotFoundError,
    ValidationError,
)
from .filters import filter_by_properties, matches_property_filter
from .models import Graph, GraphEdge, GraphNode
from .graph import (
    add_edge,
    add_node,
    create_graph,
    filter_edges,
    filter_nodes,
    find_edges_by_property,
    find_nodes_by_property,
    get_adjacent_nodes,
    get_edge,
    get_edges_between,
    get_node,
    remove_edge,
    remove_node,
    require_edge,
    require_node,
    to_adjacency_list,
    to_adjacency_matrix,
)
from .store import GraphStore
from .graph_operations.components import ComponentAnalysis, extract_connected_components, is_connected
from .graph_operations.layout import ForceDirectedLayout, LayoutStrategy, apply_force_directed_layout
from .graph_operations.metrics import GraphMetrics, MetricsCalculator, calculate_graph_metrics
from .graph_operations.serialization import (
    GraphSerializer,
    deserialize_graph,
    export_to_csv,
    export_to_dot,
    import_from_csv,
    serialize_graph,
)
from .graph_operations.subgraphs import create_subgraph, merge_graphs

__all__ = [
    "ConfigurationError",
    "ContextNotFoundError",
    "DuplicateEdgeError",
    "EdgeNotFoundError",
    "GraphNotFoundError",
    "GraphOperationError",
    "MissingEndpointError",
    "NodeNotFoundError",
    "OperationExecutionError",
    "ProtectedResourceError",
    "ResourceNotFoundError",
    "ValidationError",
    "filter_by_properties",
    "matches_property_filter",
    "Graph",
    "GraphEdge",
    "GraphNode",
    "add_edge",
    "add_node",
    "create_graph",
    "filter_edges",
    "filter_nodes",
    "find_edges_by_property",
    "find_nodes_by_property",
    "get_adjacent_nodes",
    "get_edge",
    "get_edges_between",
    "get_node",
    "remove_edge",
    "remove_node",
    "require_edge",
    "require_node",
    "to_adjacency_list",
    "to_adjacency_matrix",
    "GraphStore",
    "ComponentAnalysis",
    "extract_connected_components",
    "is_connected",
    "ForceDirectedLayout",
    "LayoutStrategy",
    "apply_force_directed_layout",
    "GraphMetrics",
    "MetricsCalculator",
    "calculate_graph_metrics",
    "GraphSerializer",
    "deserialize_graph",
    "export_to_csv",
    "export_to_dot",
    "import_from_csv",
    "serialize_graph",
    "create_subgraph",
    "merge_graphs",
]
