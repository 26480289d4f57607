"""Tests for graph component analysis."""

import pytest

from ontograph.core.graph import create_graph
from ontograph.core.graph_operations.components import (
    ComponentAnalysis,
    extract_connected_components,
    is_connected,
)
from ontograph.core.models import GraphEdge, GraphNode


def _graph():
    nodes = [GraphNode(id=node_id, type="t") for node_id in "ABCDE"]
    edges = [
        GraphEdge(id="ab", source="A", target="B", type="r"),
        GraphEdge(id="cb", source="C", target="B", type="r"),
        GraphEdge(id="de", source="D", target="E", type="r"),
    ]
    return create_graph(name="split", nodes=nodes, edges=edges)


def test_component_analysis():
    """Components ignore edge direction."""
    components = ComponentAnalysis(_graph()).get_components()
    assert [sorted(component) for component in components] == [["A", "B", "C"], ["D", "E"]]


def test_isolated_nodes_are_singletons():
    """A node without edges is its own component."""
    graph = create_graph(name="lonely", nodes=[GraphNode(id="x", type="t")])
    assert ComponentAnalysis(graph).get_components() == [["x"]]
    assert is_connected(graph)


def test_is_connected(abc_graph):
    """Connectivity is checked on the undirected view."""
    assert is_connected(abc_graph)
    assert not is_connected(_graph())
    assert is_connected(create_graph(name="empty"))


def test_extract_connected_components():
    """Each component becomes a subgraph with its internal edges."""
    graph = _graph()
    components = extract_connected_components(graph)
    assert len(components) == 2

    first, second = components
    assert set(first.node_ids) == {"A", "B", "C"}
    assert {edge.id for edge in first.edges} == {"ab", "cb"}
    assert set(second.node_ids) == {"D", "E"}
    assert [edge.id for edge in second.edges] == ["de"]
    assert first.name == "Component 1 of split"
    assert first.properties["parent_graph"] == graph.id
    assert first.id != graph.id


@pytest.mark.timeout(10)
def test_extract_many_components():
    """Thousands of small components are split in one pass."""
    pairs = 3000
    nodes = [GraphNode(id=f"{side}{i}", type="t") for i in range(pairs) for side in "ab"]
    edges = [GraphEdge(id=f"e{i}", source=f"a{i}", target=f"b{i}", type="r") for i in range(pairs)]
    components = extract_connected_components(create_graph(name="pairs", nodes=nodes, edges=edges))
    assert len(components) == pairs
    assert components[-1].node_ids == (f"a{pairs - 1}", f"b{pairs - 1}")
    assert [edge.id for edge in components[-1].edges] == [f"e{pairs - 1}"]
