"""Tests for graph serialization and import/export."""

import json
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from ontograph.core.exceptions import MissingEndpointError, ValidationError
from ontograph.core.graph import add_edge, add_node, create_graph, get_edge, get_node
from ontograph.core.graph_operations.serialization import (
    GraphSerializer,
    deserialize_graph,
    export_to_csv,
    export_to_dot,
    import_from_csv,
    serialize_graph,
)
from ontograph.core.models import GraphEdge, GraphNode


@pytest.fixture
def rich_graph(abc_graph):
    """Graph with properties, metadata and an undirected edge."""
    graph = replace(
        abc_graph,
        description="A small graph",
        properties={"source": "test", "tags": ["x", "y"]},
        metadata={"owner": "qa"},
    )
    graph = add_node(graph, replace(get_node(graph, "A"), properties={"age": 30}))
    graph = add_edge(
        graph, GraphEdge(id="ca", source="C", target="A", type="cites", directed=False)
    )
    return graph


def test_json_round_trip(rich_graph):
    """Deserializing a serialized graph gives an equal graph."""
    restored = deserialize_graph(serialize_graph(rich_graph))
    assert restored == rich_graph
    assert restored.created_at == rich_graph.created_at
    assert restored.updated_at == rich_graph.updated_at


def test_wire_document_shape(rich_graph):
    """The wire document uses camelCase timestamps and explicit edge direction."""
    document = json.loads(serialize_graph(rich_graph, indent=2))
    assert document["description"] == "A small graph"
    assert "createdAt" in document
    assert "updatedAt" in document
    assert document["edges"][2]["directed"] is False
    assert document["nodes"][0]["properties"] == {"age": 30}


def test_description_omitted_when_unset(abc_graph):
    """Graphs without a description omit the field."""
    assert "description" not in GraphSerializer.to_dict(abc_graph)


def test_naive_timestamps_are_utc(abc_graph):
    """Timestamps without an offset are read as UTC."""
    document = GraphSerializer.to_dict(abc_graph)
    document["createdAt"] = "2024-01-01T00:00:00"
    document["updatedAt"] = "2024-01-02T00:00:00"
    graph = GraphSerializer().from_dict(document)
    assert graph.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_deserialize_rejects_bad_input(abc_graph):
    """Malformed JSON, schema violations and dangling edges are rejected."""
    with pytest.raises(ValidationError):
        deserialize_graph("{not json")
    with pytest.raises(ValidationError):
        deserialize_graph(json.dumps({"id": "g"}))

    document = GraphSerializer.to_dict(abc_graph)
    document["edges"].append({"id": "ax", "source": "A", "target": "X", "type": "knows"})
    with pytest.raises(ValidationError):
        deserialize_graph(json.dumps(document))

    document = GraphSerializer.to_dict(abc_graph)
    document["createdAt"] = "yesterday"
    with pytest.raises(ValidationError):
        deserialize_graph(json.dumps(document))


def test_csv_export(rich_graph):
    """CSV export writes a nodes table and an edges table."""
    nodes_csv, edges_csv = export_to_csv(rich_graph)
    assert nodes_csv.splitlines() == [
        "id,type,label",
        "A,person,Node A",
        "B,document,Node B",
        "C,event,Node C",
    ]
    assert edges_csv.splitlines() == [
        "id,source,target,type,label,directed",
        "ab,A,B,knows,,true",
        "bc,B,C,knows,,true",
        "ca,C,A,cites,,false",
    ]


def test_csv_round_trip_structure(rich_graph):
    """Importing exported CSV restores ids, types, labels and direction."""
    graph = import_from_csv(*export_to_csv(rich_graph), name="copy")
    assert graph.name == "copy"
    assert graph.node_ids == rich_graph.node_ids
    assert [edge.id for edge in graph.edges] == ["ab", "bc", "ca"]
    assert get_edge(graph, "ca").directed is False
    assert get_node(graph, "B").label == "Node B"


def test_csv_import_defaults():
    """Missing edge ids and types get defaults and short rows are skipped."""
    nodes_csv = "id,type\na,person\nb,person\nshort\n"
    edges_csv = "source,target\na,b\n"
    graph = import_from_csv(nodes_csv, edges_csv)
    assert graph.name == "Imported Graph"
    assert graph.description == "Imported from CSV"
    assert graph.node_ids == ("a", "b")
    edge = graph.edges[0]
    assert edge.id
    assert edge.type == "unknown"
    assert edge.directed is True


def test_csv_import_errors():
    """Missing columns and dangling edges are rejected."""
    with pytest.raises(ValidationError):
        import_from_csv("", "source,target\n")
    with pytest.raises(ValidationError):
        import_from_csv("name\nx\n", "source,target\n")
    with pytest.raises(ValidationError):
        import_from_csv("id,type\na,t\n", "from,to\na,a\n")
    with pytest.raises(MissingEndpointError):
        import_from_csv("id,type\na,t\n", "source,target\na,b\n")


def test_dot_export(rich_graph):
    """DOT output maps types to shapes and properties to tooltips."""
    dot = export_to_dot(rich_graph)
    assert dot.startswith('digraph "abc" {')
    assert '"A" [label="Node A", shape="box", tooltip="age: 30"];' in dot
    assert '"B" [label="Node B", shape="note"];' in dot
    assert '"C" [label="Node C", shape="diamond"];' in dot
    assert '"A" -> "B" [label="knows"];' in dot
    assert '"C" -> "A" [label="cites", dir=none];' in dot
    assert 'tooltip="A small graph";' in dot
    assert dot.rstrip().endswith("}")


def test_dot_export_unknown_type_and_undirected():
    """Unknown types become circles labelled with their initial."""
    graph = create_graph(
        name='say "hi"',
        directed=False,
        nodes=[GraphNode(id="x", type="widget"), GraphNode(id="y", type="widget")],
        edges=[GraphEdge(id="xy", source="x", target="y", type="link")],
    )
    dot = export_to_dot(graph)
    assert dot.startswith('graph "say \\"hi\\"" {')
    assert '"x" [shape=circle, label="W"];' in dot
    assert '"x" -- "y" [label="link"];' in dot


def test_csv_import_quoted_fields():
    """Quoted cells may hold commas and doubled quotes."""
    nodes_csv = 'id,type,label\na,person,"Smith, John"\nb,person,"say ""hi"""\n'
    edges_csv = 'source,target,type,label\na,b,knows,"met at ""the, cafe"""\n'
    graph = import_from_csv(nodes_csv, edges_csv)
    assert get_node(graph, "a").label == "Smith, John"
    assert get_node(graph, "b").label == 'say "hi"'
    assert graph.edges[0].label == 'met at "the, cafe"'


def test_csv_import_blank_ids_are_validation_errors():
    """Blank node ids and edge endpoints are reported as ValidationError."""
    with pytest.raises(ValidationError):
        import_from_csv("id,type\n ,person\n", "source,target\n")
    with pytest.raises(ValidationError):
        import_from_csv("id,type\na,person\n", "source,target\na, \n")


@pytest.mark.timeout(10)
def test_csv_import_large_ring():
    """Importing a large ring stays fast."""
    size = 5000
    nodes_csv = "id,type\n" + "".join(f"n{i},t\n" for i in range(size))
    edges_csv = "id,source,target\n" + "".join(
        f"e{i},n{i},n{(i + 1) % size}\n" for i in range(size)
    )
    graph = import_from_csv(nodes_csv, edges_csv)
    assert len(graph.nodes) == size
    assert len(graph.edges) == size


def test_dot_export_escapes_backslashes():
    """Backslashes and quotes in DOT strings are escaped so strings terminate."""
    graph = create_graph(
        name="paths",
        nodes=[
            GraphNode(
                id="d",
                type="person",
                label="C:\\dir\\",
                properties={"note": 'a "b" \\c'},
            )
        ],
    )
    dot = export_to_dot(graph)
    assert '"d" [label="C:\\\\dir\\\\", shape="box", tooltip="note: a \\"b\\" \\\\c"];' in dot

    graph = create_graph(
        name="multi",
        nodes=[GraphNode(id="m", type="person", properties={"x": 1, "y": 'q"'})],
    )
    assert 'tooltip="x: 1\\ny: q\\""' in export_to_dot(graph)
