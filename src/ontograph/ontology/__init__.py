"""
Ontology layer: contexts, collaborator protocols and traversal algorithms.
"""

from .context_index import ContextIndex
from .executors import (
    ContextExecutor,
    DomainExecutor,
    EvaluationExecutor,
    GenericExecutor,
    VisualizationExecutor,
)
from .memory import InMemoryEntityStore, InMemoryRelationStore
from .models import (
    Context,
    ContextMetrics,
    ContextScope,
    Entity,
    EntityRef,
    Relation,
    build_context,
)
from .protocols import ContextStore, EntityLookup, RelationQuery
from .traversal import HierarchyNode, OntologyTraversal, TraceResult

__all__ = [
    "ContextIndex",
    "ContextExecutor",
    "DomainExecutor",
    "EvaluationExecutor",
    "GenericExecutor",
    "VisualizationExecutor",
    "InMemoryEntityStore",
    "InMemoryRelationStore",
    "Context",
    "ContextMetrics",
    "ContextScope",
    "Entity",
    "EntityRef",
    "Relation",
    "build_context",
    "ContextStore",
    "EntityLookup",
    "RelationQuery",
    "HierarchyNode",
    "OntologyTraversal",
    "TraceResult",
]
