"""
Structural integrity validation for graph values.

This module checks the invariants every graph value must satisfy:
- Node ids are unique
- Edge ids are unique
- Every edge's source and target reference nodes present in the graph
- A non-multigraph holds at most one edge per (source, target, type)

The graph mutation functions enforce these invariants edge by edge; this
validator is used where a whole graph arrives at once (JSON and CSV import).
"""

from collections import Counter
from typing import TYPE_CHECKING, List, Set, Tuple

from .base import ValidationResult

if TYPE_CHECKING:
    from ...core.models import Graph


class GraphIntegrityValidator:
    """
    Validator for the structural invariants of a graph.

    All methods are static and return error messages rather than raising, so
    callers decide whether a violation is fatal.
    """

    @staticmethod
    def _duplicate_ids(ids: List[str], kind: str) -> List[str]:
        return [f"Duplicate {kind} id: {item}" for item, count in Counter(ids).items() if count > 1]

    @staticmethod
    def _dangling_edges(graph: "Graph") -> List[str]:
        node_ids: Set[str] = {node.id for node in graph.nodes}
        errors = []
        for edge in graph.edges:
            if edge.source not in node_ids:
                errors.append(f"Edge {edge.id} references missing source node {edge.source}")
            if edge.target not in node_ids:
                errors.append(f"Edge {edge.id} references missing target node {edge.target}")
        return errors

    @staticmethod
    def _duplicate_triples(graph: "Graph") -> List[str]:
        if graph.multigraph:
            return []
        seen: Set[Tuple[str, str, str]] = set()
        errors = []
        for edge in graph.edges:
            triple = (edge.source, edge.target, edge.type)
            if triple in seen:
                errors.append(
                    f"Duplicate edge in non-multigraph: {edge.source} -> {edge.target} ({edge.type})"
                )
            seen.add(triple)
        return errors

    @staticmethod
    def validate_graph(graph: "Graph") -> ValidationResult:
        """
        Validate the structural invariants of a graph.

        Args:
            graph: Graph value to check

        Returns:
            ValidationResult listing every violation found
        """
        errors: List[str] = []
        errors.extend(
            GraphIntegrityValidator._duplicate_ids([n.id for n in graph.nodes], "node")
        )
        errors.extend(
            GraphIntegrityValidator._duplicate_ids([e.id for e in graph.edges], "edge")
        )
        errors.extend(GraphIntegrityValidator._dangling_edges(graph))
        errors.extend(GraphIntegrityValidator._duplicate_triples(graph))

        warnings = []
        if not graph.nodes:
            warnings.append("Graph has no nodes")

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            context={"graph_id": graph.id},
        )
