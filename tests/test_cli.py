"""Tests for the command line interface."""

import json

import pytest

from ontograph.cli import main, read_text
from ontograph.core.graph_operations import serialize_graph


@pytest.fixture
def graph_file(tmp_path, abc_graph):
    """The A -> B -> C graph written to a JSON file."""
    path = tmp_path / "graph.json"
    path.write_text(serialize_graph(abc_graph), encoding="utf-8")
    return path


def test_read_text(tmp_path):
    """Arguments are inline text or '@' file references."""
    path = tmp_path / "data.txt"
    path.write_text("content", encoding="utf-8")
    assert read_text("inline") == "inline"
    assert read_text(f"@{path}") == "content"
    with pytest.raises(ValueError):
        read_text(f"@{tmp_path / 'missing.txt'}")


def test_metrics_command(graph_file, capsys):
    """metrics prints counts and degrees."""
    assert main(["metrics", f"@{graph_file}"]) == 0
    output = capsys.readouterr().out
    assert "Nodes: 3" in output
    assert "Edges: 2" in output
    assert "Connected: True" in output
    assert "- B: 1/1/2" in output


def test_metrics_inline_json(abc_graph, capsys):
    """Graphs can be passed inline."""
    assert main(["metrics", serialize_graph(abc_graph)]) == 0
    assert "Graph: abc (g-abc)" in capsys.readouterr().out


def test_components_command(graph_file, capsys):
    """components lists each component."""
    assert main(["components", f"@{graph_file}"]) == 0
    output = capsys.readouterr().out
    assert "1 connected components:" in output
    assert "A, B, C" in output


def test_layout_command(graph_file, tmp_path):
    """layout writes a graph with coordinates."""
    output = tmp_path / "layout.json"
    assert main(["layout", f"@{graph_file}", "--iterations", "5", "--seed", "3", "-o", str(output)]) == 0
    document = json.loads(output.read_text(encoding="utf-8"))
    assert document["properties"]["layout"]["iterations"] == 5
    assert all("x" in node["properties"] for node in document["nodes"])


def test_export_dot_command(graph_file, capsys):
    """export-dot prints DOT to stdout."""
    assert main(["export-dot", f"@{graph_file}"]) == 0
    assert '"A" -> "B"' in capsys.readouterr().out


def test_csv_commands(graph_file, tmp_path, capsys):
    """export-csv and import-csv round trip the structure."""
    nodes_path = tmp_path / "nodes.csv"
    edges_path = tmp_path / "edges.csv"
    assert main(["export-csv", f"@{graph_file}", str(nodes_path), str(edges_path)]) == 0
    assert nodes_path.read_text(encoding="utf-8").startswith("id,type,label")

    assert main(["import-csv", str(nodes_path), str(edges_path), "--name", "copy"]) == 0
    document = json.loads(capsys.readouterr().out)
    assert document["name"] == "copy"
    assert [node["id"] for node in document["nodes"]] == ["A", "B", "C"]


def test_errors_return_nonzero(tmp_path, capsys):
    """Invalid input prints an error and returns 1."""
    assert main(["metrics", "{not json"]) == 1
    assert "Error:" in capsys.readouterr().err
    assert main(["metrics", f"@{tmp_path / 'missing.json'}"]) == 1
    assert main([]) == 1
