"""Graph serialization and deserialization operations.

This module provides functionality for importing/exporting graphs:
- JSON serialization with ISO-8601 timestamps
- CSV import/export (one table for nodes, one for edges)
- DOT export for GraphViz
- Validation during import
"""

import csv
import io
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ...utils.validation import GraphIntegrityValidator, GraphSchemaValidator
from ..exceptions import ValidationError
from ..graph import create_graph
from ..models import Graph, GraphEdge, GraphNode, new_id

logger = logging.getLogger(__name__)

NODE_CSV_COLUMNS = ("id", "type", "label")
EDGE_CSV_COLUMNS = ("id", "source", "target", "type", "label", "directed")

DOT_SHAPES = {
    "person": "box",
    "user": "box",
    "document": "note",
    "file": "note",
    "concept": "polygon",
    "idea": "polygon",
    "event": "diamond",
}


def _json_default(value: Any) -> Any:
    """Serialize values json cannot handle natively."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _parse_timestamp(raw: str, field_name: str) -> datetime:
    try:
        value = datetime.fromisoformat(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid {field_name} timestamp: {raw}") from e
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class GraphSerializer:
    """Handles conversion between Graph values and the JSON wire document."""

    def __init__(self):
        self.schema_validator = GraphSchemaValidator()

    @staticmethod
    def to_dict(graph: Graph) -> Dict[str, Any]:
        """Convert a graph to its wire document."""
        document: Dict[str, Any] = {
            "id": graph.id,
            "name": graph.name,
            "nodes": [
                {
                    "id": node.id,
                    "type": node.type,
                    "label": node.label,
                    "properties": node.properties,
                    "metadata": node.metadata,
                }
                for node in graph.nodes
            ],
            "edges": [
                {
                    "id": edge.id,
                    "source": edge.source,
                    "target": edge.target,
                    "type": edge.type,
                    "label": edge.label,
                    "properties": edge.properties,
                    "metadata": edge.metadata,
                    "directed": graph.directed if edge.directed is None else edge.directed,
                }
                for edge in graph.edges
            ],
            "directed": graph.directed,
            "multigraph": graph.multigraph,
            "properties": graph.properties,
            "metadata": graph.metadata,
            "createdAt": graph.created_at.isoformat(),
            "updatedAt": graph.updated_at.isoformat(),
        }
        if graph.description is not None:
            document["description"] = graph.description
        return document

    def from_dict(self, document: Any) -> Graph:
        """
        Create a graph from a wire document.

        Raises:
            ValidationError: If the document does not match the wire schema or
                the resulting graph violates the structural invariants
        """
        result = self.schema_validator.validate_document(document)
        if not result.is_valid:
            raise ValidationError("; ".join(result.errors))

        directed = document.get("directed", True)
        try:
            graph = Graph(
                id=document["id"],
                name=document["name"],
                description=document.get("description"),
                nodes=tuple(
                    GraphNode(
                        id=node["id"],
                        type=node["type"],
                        label=node.get("label"),
                        properties=node.get("properties") or {},
                        metadata=node.get("metadata"),
                    )
                    for node in document.get("nodes", [])
                ),
                edges=tuple(
                    GraphEdge(
                        id=edge["id"],
                        source=edge["source"],
                        target=edge["target"],
                        type=edge["type"],
                        label=edge.get("label"),
                        directed=edge.get("directed", directed),
                        properties=edge.get("properties") or {},
                        metadata=edge.get("metadata"),
                    )
                    for edge in document.get("edges", [])
                ),
                directed=directed,
                multigraph=document.get("multigraph", False),
                properties=document.get("properties") or {},
                metadata=document.get("metadata"),
                created_at=_parse_timestamp(document["createdAt"], "createdAt"),
                updated_at=_parse_timestamp(document["updatedAt"], "updatedAt"),
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid graph document: {e}") from e

        integrity = GraphIntegrityValidator.validate_graph(graph)
        if not integrity.is_valid:
            raise ValidationError("; ".join(integrity.errors))
        return graph


def serialize_graph(graph: Graph, indent: Optional[int] = None) -> str:
    """Serialize a graph to a JSON string."""
    return json.dumps(GraphSerializer.to_dict(graph), indent=indent, default=_json_default)


def deserialize_graph(text: str) -> Graph:
    """
    Deserialize a graph from a JSON string.

    Raises:
        ValidationError: If the text is not JSON, does not match the wire
            schema or describes a structurally invalid graph
    """
    try:
        document = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Malformed graph JSON: {e}") from e
    return GraphSerializer().from_dict(document)


def export_to_csv(graph: Graph) -> Tuple[str, str]:
    """
    Export a graph to CSV.

    Returns:
        Tuple of (nodes_csv, edges_csv). Only ids, types, labels and edge
        direction are exported; properties are not.
    """
    nodes_buffer = io.StringIO()
    writer = csv.writer(nodes_buffer, lineterminator="\n")
    writer.writerow(NODE_CSV_COLUMNS)
    for node in graph.nodes:
        writer.writerow([node.id, node.type, node.label or ""])

    edges_buffer = io.StringIO()
    writer = csv.writer(edges_buffer, lineterminator="\n")
    writer.writerow(EDGE_CSV_COLUMNS)
    for edge in graph.edges:
        directed = graph.directed if edge.directed is None else edge.directed
        writer.writerow(
            [
                edge.id,
                edge.source,
                edge.target,
                edge.type,
                edge.label or "",
                "true" if directed else "false",
            ]
        )

    return nodes_buffer.getvalue(), edges_buffer.getvalue()


def _read_csv(text: str, kind: str) -> Tuple[Dict[str, int], List[List[str]]]:
    """Parse CSV text into a header index and its non-blank data rows."""
    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    if not rows:
        raise ValidationError(f"{kind} CSV is empty")
    header: Dict[str, int] = {}
    for index, column in enumerate(rows[0]):
        header.setdefault(column.strip().lower(), index)
    return header, rows[1:]


def _cell(row: List[str], index: Optional[int]) -> Optional[str]:
    if index is None or index >= len(row):
        return None
    return row[index]


def _csv_nodes(header: Dict[str, int], rows: List[List[str]]) -> List[GraphNode]:
    id_index, type_index = header["id"], header["type"]
    label_index = header.get("label")
    nodes = []
    for line, row in enumerate(rows, start=2):
        if len(row) <= max(id_index, type_index):
            logger.warning(f"Skipping short node row {line}: {row}")
            continue
        nodes.append(
            GraphNode(
                id=row[id_index],
                type=row[type_index],
                label=_cell(row, label_index) or None,
            )
        )
    return nodes


def _csv_edges(header: Dict[str, int], rows: List[List[str]], directed: bool) -> List[GraphEdge]:
    source_index, target_index = header["source"], header["target"]
    edges = []
    for line, row in enumerate(rows, start=2):
        if len(row) <= max(source_index, target_index):
            logger.warning(f"Skipping short edge row {line}: {row}")
            continue
        directed_cell = _cell(row, header.get("directed"))
        edges.append(
            GraphEdge(
                id=_cell(row, header.get("id")) or new_id(),
                source=row[source_index],
                target=row[target_index],
                type=_cell(row, header.get("type")) or "unknown",
                label=_cell(row, header.get("label")) or None,
                directed=(
                    directed_cell.strip().lower() == "true"
                    if directed_cell is not None and directed_cell.strip()
                    else directed
                ),
            )
        )
    return edges


def import_from_csv(
    nodes_csv: str,
    edges_csv: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    directed: bool = True,
) -> Graph:
    """
    Import a graph from CSV.

    The nodes table needs ``id`` and ``type`` columns (``label`` optional). The
    edges table needs ``source`` and ``target`` (``id``, ``type``, ``label``
    and ``directed`` optional). Rows too short to hold the required columns
    are skipped.

    Raises:
        ValidationError: If a required column is missing, a row holds a blank
            id or endpoint, or an edge violates the structural invariants
    """
    node_header, node_rows = _read_csv(nodes_csv, "Nodes")
    if "id" not in node_header or "type" not in node_header:
        raise ValidationError("Nodes CSV must have at least id and type columns")
    edge_header, edge_rows = _read_csv(edges_csv, "Edges")
    if "source" not in edge_header or "target" not in edge_header:
        raise ValidationError("Edges CSV must have at least source and target columns")

    try:
        nodes = _csv_nodes(node_header, node_rows)
        edges = _csv_edges(edge_header, edge_rows, directed)
        graph = create_graph(
            name=name or "Imported Graph",
            description=description or "Imported from CSV",
            nodes=nodes,
            edges=edges,
            directed=directed,
        )
    except ValueError as e:
        raise ValidationError(f"Invalid CSV graph: {e}") from e

    logger.info(f"Imported graph {graph.id} from CSV with {len(nodes)} nodes, {len(edges)} edges")
    return graph


def _escape(value: Any) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"')


def _tooltip(properties: Dict[str, Any]) -> Optional[str]:
    """Escaped tooltip text, one ``key: value`` per DOT line break."""
    if not properties:
        return None
    return "\\n".join(f"{_escape(key)}: {_escape(value)}" for key, value in properties.items())


def export_to_dot(graph: Graph) -> str:
    """
    Export a graph to GraphViz DOT.

    Node types map to shapes (person/user box, document/file note,
    concept/idea polygon, event diamond); other types are drawn as circles
    labelled with the type's initial when the node has no label. Node and
    edge properties become tooltips.
    """
    graph_type = "digraph" if graph.directed else "graph"
    edge_symbol = "->" if graph.directed else "--"

    lines = [f'{graph_type} "{_escape(graph.name)}" {{', "  // Graph attributes"]
    lines.append(f'  label="{_escape(graph.name)}";')
    if graph.description:
        lines.append(f'  tooltip="{_escape(graph.description)}";')

    lines.extend(["", "  // Nodes"])
    for node in graph.nodes:
        attributes = []
        if node.label:
            attributes.append(f'label="{_escape(node.label)}"')
        if node.type:
            shape = DOT_SHAPES.get(node.type.lower())
            if shape is not None:
                attributes.append(f'shape="{shape}"')
            else:
                attributes.append("shape=circle")
                if not node.label:
                    attributes.append(f'label="{_escape(node.type[0].upper())}"')
        tooltip = _tooltip(node.properties)
        if tooltip is not None:
            attributes.append(f'tooltip="{tooltip}"')
        suffix = f" [{', '.join(attributes)}]" if attributes else ""
        lines.append(f'  "{_escape(node.id)}"{suffix};')

    lines.extend(["", "  // Edges"])
    for edge in graph.edges:
        attributes = []
        if edge.label:
            attributes.append(f'label="{_escape(edge.label)}"')
        elif edge.type:
            attributes.append(f'label="{_escape(edge.type)}"')
        if graph.directed and edge.directed is False:
            attributes.append("dir=none")
        tooltip = _tooltip(edge.properties)
        if tooltip is not None:
            attributes.append(f'tooltip="{tooltip}"')
        suffix = f" [{', '.join(attributes)}]" if attributes else ""
        lines.append(
            f'  "{_escape(edge.source)}" {edge_symbol} "{_escape(edge.target)}"{suffix};'
        )

    lines.append("}")
    return "\n".join(lines) + "\n"
