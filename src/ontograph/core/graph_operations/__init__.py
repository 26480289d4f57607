"""Graph operations: metrics, components, subgraphs, layout and serialization."""

from .components import ComponentAnalysis, extract_connected_components, is_connected
from .layout import ForceDirectedLayout, LayoutStrategy, apply_force_directed_layout
from .metrics import DegreeInfo, GraphMetrics, MetricsCalculator, calculate_graph_metrics
from .serialization import (
    GraphSerializer,
    deserialize_graph,
    export_to_csv,
    export_to_dot,
    import_from_csv,
    serialize_graph,
)
from .subgraphs import GraphMerger, create_subgraph, merge_graphs

__all__ = [
    "ComponentAnalysis",
    "extract_connected_components",
    "is_connected",
    "ForceDirectedLayout",
    "LayoutStrategy",
    "apply_force_directed_layout",
    "DegreeInfo",
    "GraphMetrics",
    "MetricsCalculator",
    "calculate_graph_metrics",
    "GraphSerializer",
    "deserialize_graph",
    "export_to_csv",
    "export_to_dot",
    "import_from_csv",
    "serialize_graph",
    "GraphMerger",
    "create_subgraph",
    "merge_graphs",
]
