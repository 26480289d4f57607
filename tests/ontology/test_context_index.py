"""Tests for the context index."""

from datetime import timedelta

import pytest

from ontograph.config import EngineConfig
from ontograph.core.exceptions import (
    ConfigurationError,
    ContextNotFoundError,
    OperationExecutionError,
    ProtectedResourceError,
    ValidationError,
)
from ontograph.core.graph import get_edge, get_node
from ontograph.core.models import utc_now
from ontograph.ontology.context_index import ContextIndex
from ontograph.ontology.executors import ContextExecutor
from ontograph.ontology.models import ContextScope, EntityRef


def _ref(entity_id):
    return EntityRef(entity="concept", id=entity_id)


def test_system_context_created(context_index):
    """Every index starts with a protected system context."""
    system = context_index.get_context(context_index.system_context_id)
    assert system.name == "System"
    assert system.type == "system"
    assert system.is_protected
    assert system.properties["system"] is True
    assert context_index.count_contexts() == 1


def test_system_context_rejects_every_mutation(context_index):
    """Updates, membership changes and deletion of the system context fail."""
    system_id = context_index.system_context_id
    with pytest.raises(ProtectedResourceError):
        context_index.update_context(system_id)
    with pytest.raises(ProtectedResourceError):
        context_index.update_context(system_id, name="renamed", properties={"x": 1})
    with pytest.raises(ProtectedResourceError):
        context_index.add_entities_to_context(system_id, [_ref("A")])
    with pytest.raises(ProtectedResourceError):
        context_index.remove_entities_from_context(system_id, [_ref("A")])
    with pytest.raises(ProtectedResourceError):
        context_index.add_relations_to_context(system_id, ["ab"])
    with pytest.raises(ProtectedResourceError):
        context_index.remove_relations_from_context(system_id, ["ab"])
    with pytest.raises(ProtectedResourceError):
        context_index.delete_context(system_id)
    assert context_index.get_context(system_id).name == "System"


def test_returned_contexts_are_detached(context_index):
    """Editing a returned context's properties leaves the stored context intact."""
    system_id = context_index.system_context_id
    context_index.get_context(system_id).properties["protected"] = False
    context_index.get_all_contexts()[0].properties["protected"] = False
    with pytest.raises(ProtectedResourceError):
        context_index.delete_context(system_id)
    assert context_index.get_context(system_id).is_protected

    created = context_index.create_context(name="Notes", properties={"tags": ["a"]})
    created.properties["tags"].append("b")
    context_index.get_contexts_by_type("generic")[0].properties["extra"] = 1
    assert context_index.get_context(created.id).properties == {"tags": ["a"]}


def test_create_context_indexes_members(context_index):
    """Created contexts are found through the reverse indices."""
    context = context_index.create_context(
        name="Team", entities=[_ref("A"), _ref("B"), _ref("C")], relations=["ab", "bc"]
    )
    assert context.type == "generic"
    assert context.metrics.density == pytest.approx(1 / 3)
    assert context_index.get_contexts_containing_entity(_ref("A")) == [context]
    assert context_index.get_contexts_containing_relation("bc") == [context]
    assert context_index.get_contexts_by_type("generic") == [context]
    assert context_index.get_contexts_containing_entity(_ref("F")) == []


def test_create_context_rejects_duplicate_id(context_index):
    """Context ids are unique within an index."""
    context_index.create_context(name="one", id="fixed")
    with pytest.raises(ValidationError):
        context_index.create_context(name="two", id="fixed")


def test_unknown_context(context_index):
    """Unknown ids give None or ContextNotFoundError."""
    assert context_index.get_context("missing") is None
    with pytest.raises(ContextNotFoundError):
        context_index.require_context("missing")
    with pytest.raises(ContextNotFoundError):
        context_index.update_context("missing", name="x")
    assert not context_index.delete_context("missing")


def test_specialised_constructors(context_index):
    """Specialised constructors set type, scope and properties."""
    evaluation = context_index.create_evaluation_context("Eval", rules={"min_score": 5})
    assert evaluation.type == "evaluation"
    assert evaluation.properties["rules"] == {"min_score": 5}

    view = context_index.create_visualization_context("View", view_options={"theme": "dark"})
    assert view.type == "visualization"
    assert view.properties["view_options"] == {"theme": "dark"}

    domain = context_index.create_domain_context("Sales", domain="sales")
    assert domain.type == "domain"
    assert domain.scope is ContextScope.DOMAIN
    assert domain.domain == "sales"
    with pytest.raises(ValidationError):
        context_index.create_domain_context("Nowhere", domain="")


def test_temporary_context(entity_store, relation_store):
    """Temporary contexts are local and expire after their ttl."""
    index = ContextIndex(entity_store, relation_store, EngineConfig(temporary_context_ttl=60))
    context = index.create_temporary_context(name="Session")
    assert context.scope is ContextScope.LOCAL
    assert context.properties["temporary"] is True
    assert context.valid_to - context.valid_from == timedelta(seconds=60)
    assert context.properties["valid_until"] == context.valid_to
    assert context.is_active()
    assert not context.is_active(utc_now() + timedelta(seconds=120))

    short = index.create_temporary_context(ttl_seconds=5)
    assert short.type == "session"
    assert short.valid_to - short.valid_from == timedelta(seconds=5)
    with pytest.raises(ValidationError):
        index.create_temporary_context(ttl_seconds=0)


def test_neighborhood_context(context_index):
    """Neighbourhood contexts hold the centre and its related entities."""
    context = context_index.create_entity_neighborhood_context(_ref("A"), depth=1)
    assert context.type == "neighborhood"
    assert context.name == "Neighborhood of concept:A"
    assert context.entities == (_ref("A"), _ref("B"), _ref("C"))
    assert context.properties["center_entity"] == _ref("A")
    assert context.properties["depth"] == 1

    outgoing = context_index.create_entity_neighborhood_context(
        _ref("A"), depth=1, direction="outgoing", name="out"
    )
    assert outgoing.entities == (_ref("A"), _ref("B"))


def test_neighborhood_requires_relation_collaborator():
    """Without a relation collaborator neighbourhoods cannot be built."""
    with pytest.raises(ConfigurationError):
        ContextIndex().create_entity_neighborhood_context(_ref("A"))


def test_membership_changes(context_index):
    """Membership changes recompute metrics and reverse indices."""
    context = context_index.create_context(name="c", entities=[_ref("A")])
    assert context.metrics.density == 1.0

    context = context_index.add_entities_to_context(context.id, [_ref("B"), _ref("A")])
    assert context.entities == (_ref("A"), _ref("B"))
    assert context_index.get_contexts_containing_entity(_ref("B")) == [context]

    context = context_index.add_relations_to_context(context.id, ["ab", "ab"])
    assert context.relations == ("ab",)
    assert context.metrics.density == 0.5

    context = context_index.remove_entities_from_context(context.id, [_ref("A"), _ref("Z")])
    assert context.entities == (_ref("B"),)
    assert context_index.get_contexts_containing_entity(_ref("A")) == []

    context = context_index.remove_relations_from_context(context.id, ["ab"])
    assert context.relations == ()
    assert context_index.get_contexts_containing_relation("ab") == []
    assert context_index.get_context(context.id) == context


def test_update_context(context_index):
    """Updates change given fields and merge properties."""
    context = context_index.create_context(name="c", properties={"a": 1, "b": 2})
    updated = context_index.update_context(
        context.id, name="renamed", properties={"b": 3, "c": 4}, scope=ContextScope.LOCAL
    )
    assert updated.name == "renamed"
    assert updated.properties == {"a": 1, "b": 3, "c": 4}
    assert updated.scope is ContextScope.LOCAL
    assert updated.description is None
    assert updated.updated_at >= context.updated_at
    assert context_index.query_contexts(scope=ContextScope.LOCAL) == [updated]


def test_delete_context(context_index):
    """Deleted contexts disappear from every index."""
    context = context_index.create_context(name="c", entities=[_ref("A")], relations=["ab"])
    assert context_index.delete_context(context.id)
    assert context_index.get_context(context.id) is None
    assert context_index.get_contexts_containing_entity(_ref("A")) == []
    assert context_index.get_contexts_containing_relation("ab") == []
    assert context_index.get_contexts_by_type("generic") == []


def test_query_contexts(context_index):
    """Queries combine type, text, validity, property and membership criteria."""
    alpha = context_index.create_context(
        name="Alpha project", entities=[_ref("A")], properties={"priority": 3}
    )
    beta = context_index.create_context(
        name="Beta", description="about the ALPHA release", properties={"priority": 1}
    )
    gamma = context_index.create_domain_context("Gamma", domain="ops")
    context_index.update_context(gamma.id, valid=False)

    assert context_index.query_contexts(text_search="alpha") == [alpha, beta]
    assert context_index.query_contexts(types=["domain"])[0].id == gamma.id
    assert gamma.id not in [c.id for c in context_index.query_contexts(valid_only=True)]
    assert context_index.query_contexts(property_filters={"priority": {"$gte": 2}}) == [alpha]
    assert context_index.query_contexts(contains_entity=_ref("A")) == [alpha]
    assert [c.id for c in context_index.query_contexts(domain="ops")] == [gamma.id]
    assert context_index.query_contexts(types=["generic"], offset=1, limit=1) == [beta]


def test_find_active_contexts(context_index):
    """Active contexts are valid at the given instant."""
    now = utc_now()
    later = context_index.create_context(name="later", valid_from=now + timedelta(days=1))
    active_ids = [c.id for c in context_index.find_active_contexts()]
    assert context_index.system_context_id in active_ids
    assert later.id not in active_ids
    assert later.id in [c.id for c in context_index.find_active_contexts(now + timedelta(days=2))]
    assert later in context_index.query_contexts(active_at=now + timedelta(days=2))


def test_merge_contexts(context_index):
    """Merging creates a new context with the union of members."""
    first = context_index.create_context(name="one", entities=[_ref("A"), _ref("B")])
    second = context_index.create_context(
        name="two", entities=[_ref("B"), _ref("C")], relations=["bc"]
    )
    merged = context_index.merge_contexts([first.id, second.id], name="both")
    assert merged.type == "merged"
    assert merged.entities == (_ref("A"), _ref("B"), _ref("C"))
    assert merged.relations == ("bc",)
    assert merged.properties["merged_from"] == [first.id, second.id]
    assert context_index.get_context(first.id) == first

    with pytest.raises(ValidationError):
        context_index.merge_contexts([], name="none")
    with pytest.raises(ContextNotFoundError):
        context_index.merge_contexts(["missing"], name="none")


def test_export_context_as_graph(context_index):
    """Members become nodes and member relations become edges."""
    context = context_index.create_context(
        name="Chain", entities=[_ref("A"), _ref("B"), _ref("C")], relations=["ab", "bc", "gone"]
    )
    graph = context_index.export_context_as_graph(context.id, layout_type="tree")
    assert graph.node_ids == ("concept:A", "concept:B", "concept:C")
    assert [edge.id for edge in graph.edges] == ["ab", "bc"]
    assert graph.multigraph
    assert graph.properties["context_id"] == context.id
    assert graph.properties["layout_type"] == "tree"
    assert get_node(graph, "concept:A").label == "Entity A"
    assert get_edge(graph, "ab").source == "concept:A"


def test_export_with_center_entity(context_index):
    """A centre entity pulls in its immediate relations and their endpoints."""
    context = context_index.create_context(name="Just B", entities=[_ref("B")])
    graph = context_index.export_context_as_graph(context.id, center_entity=_ref("A"))
    assert set(graph.node_ids) == {"concept:A", "concept:B", "concept:C"}
    assert {edge.id for edge in graph.edges} == {"ab", "ca"}


def test_execute_operation_records_history(context_index):
    """Operations run through the generic executor and are recorded."""
    context = context_index.create_context(name="c")
    result = context_index.execute_operation(context.id, "echo", {"x": 1})
    assert result == {"operation": "echo", "result": {"x": 1}}

    recorded = context_index.get_context(context.id)
    assert recorded.properties["last_operation"]["operation"] == "echo"
    assert recorded.properties["last_operation"]["success"] is True
    assert len(recorded.properties["operation_history"]) == 1


def test_execute_operation_wraps_failures(context_index):
    """Executor failures are recorded and raised as OperationExecutionError."""

    class Failing(ContextExecutor):
        def execute(self, context, operation, params):
            raise RuntimeError("executor exploded")

    context_index.register_executor("fragile", Failing())
    context = context_index.create_context(name="c", type="fragile")

    with pytest.raises(OperationExecutionError) as exc_info:
        context_index.execute_operation(context.id, "run")
    assert str(exc_info.value) == "executor exploded"
    assert exc_info.value.operation == "run"
    assert exc_info.value.context_id == context.id
    assert isinstance(exc_info.value.__cause__, RuntimeError)

    last = context_index.get_context(context.id).properties["last_operation"]
    assert last["success"] is False
    assert last["error"] == "executor exploded"


def test_execute_operation_unknown_context(context_index):
    """Operations on unknown contexts raise ContextNotFoundError."""
    with pytest.raises(ContextNotFoundError):
        context_index.execute_operation("missing", "echo")


def test_indices_are_independent(entity_store, relation_store):
    """Separate indices do not share contexts."""
    first = ContextIndex(entity_store, relation_store)
    second = ContextIndex(entity_store, relation_store)
    first.create_context(name="only here")
    assert first.count_contexts() == 2
    assert second.count_contexts() == 1
