"""Shared test fixtures."""

import pytest

from ontograph.core.graph import add_edge, add_node, create_graph
from ontograph.core.models import Graph, GraphEdge, GraphNode
from ontograph.ontology.context_index import ContextIndex
from ontograph.ontology.memory import InMemoryEntityStore, InMemoryRelationStore
from ontograph.ontology.models import Entity, EntityRef, Relation
from ontograph.ontology.traversal import OntologyTraversal


def _ref(entity_id: str, entity_type: str = "concept") -> EntityRef:
    return EntityRef(entity=entity_type, id=entity_id)


def _relation(
    relation_id: str,
    source: str,
    target: str,
    relation_type: str = "causes",
    valid: bool = True,
) -> Relation:
    return Relation(
        id=relation_id,
        source=_ref(source),
        target=_ref(target),
        type=relation_type,
        valid=valid,
    )


@pytest.fixture
def abc_graph() -> Graph:
    """Directed graph A -> B -> C with a typed node per id."""
    graph = create_graph(name="abc", id="g-abc")
    for node_id, node_type in (("A", "person"), ("B", "document"), ("C", "event")):
        graph = add_node(graph, GraphNode(id=node_id, type=node_type, label=f"Node {node_id}"))
    graph = add_edge(graph, GraphEdge(id="ab", source="A", target="B", type="knows"))
    graph = add_edge(graph, GraphEdge(id="bc", source="B", target="C", type="knows"))
    return graph


@pytest.fixture
def entity_store() -> InMemoryEntityStore:
    """Entities A..F of type concept."""
    return InMemoryEntityStore(
        Entity(id=entity_id, type="concept", name=f"Entity {entity_id}")
        for entity_id in "ABCDEF"
    )


@pytest.fixture
def relation_store() -> InMemoryRelationStore:
    """Causal triangle A -> B -> C -> A."""
    return InMemoryRelationStore(
        [
            _relation("ab", "A", "B"),
            _relation("bc", "B", "C"),
            _relation("ca", "C", "A"),
        ]
    )


@pytest.fixture
def context_index(entity_store, relation_store) -> ContextIndex:
    """Context index wired to the in-memory stores."""
    return ContextIndex(entity_lookup=entity_store, relation_query=relation_store)


@pytest.fixture
def traversal(context_index, entity_store, relation_store) -> OntologyTraversal:
    """Traversal over the in-memory stores."""
    return OntologyTraversal(context_index, entity_store, relation_store)


@pytest.fixture
def relation_factory():
    """Factory for relations between concept entities."""
    return _relation
