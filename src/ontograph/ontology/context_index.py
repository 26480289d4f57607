"""
Context index for ontograph.

ContextIndex owns every context of one engine instance together with the
reverse indices used for membership queries:
- entity key -> context ids
- relation id -> context ids
- context type, scope and domain -> context ids

It is an explicit value owned by its caller (service instance, request scope
or test) rather than a process-wide singleton. A protected "system" context is
created when the index is initialised; protected contexts cannot be updated,
have their membership changed or be deleted.

Contexts are immutable snapshots. Every mutating operation replaces the stored
context with a new value whose metrics and ``updated_at`` are recomputed, and
returns it. Callers only ever receive copies: the property map of a returned
context is detached from the stored one, so editing it cannot lift protection
or change the index.
"""

import copy
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from threading import RLock
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from ..config import EngineConfig
from ..core.exceptions import (
    ConfigurationError,
    ContextNotFoundError,
    OperationExecutionError,
    ProtectedResourceError,
    ValidationError,
)
from ..core.filters import filter_by_properties, paginate
from ..core.graph import create_graph
from ..core.models import Graph, GraphEdge, GraphNode, utc_now
from .executors import ContextExecutor, GenericExecutor, default_executors
from .models import Context, ContextScope, EntityRef, Relation, build_context, with_membership
from .protocols import EntityLookup, RelationQuery

logger = logging.getLogger(__name__)

SYSTEM_CONTEXT_TYPE = "system"


class ContextIndex:
    """
    Registry and reverse index of contexts.

    Attributes:
        entity_lookup (Optional[EntityLookup]): Resolves member entities on export
        relation_query (Optional[RelationQuery]): Resolves relations and
            neighbourhoods
        config (EngineConfig): Engine configuration
        system_context_id (str): Id of the protected system context
    """

    def __init__(
        self,
        entity_lookup: Optional[EntityLookup] = None,
        relation_query: Optional[RelationQuery] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.entity_lookup = entity_lookup
        self.relation_query = relation_query
        self.config = config or EngineConfig()

        self._contexts: Dict[str, Context] = {}
        self._entity_index: Dict[str, Set[str]] = {}
        self._relation_index: Dict[str, Set[str]] = {}
        self._type_index: Dict[str, Set[str]] = {}
        self._scope_index: Dict[str, Set[str]] = {}
        self._domain_index: Dict[str, Set[str]] = {}
        self._executors: Dict[str, ContextExecutor] = default_executors()
        self._generic_executor = GenericExecutor()
        self._lock = RLock()

        system = self.create_context(
            name="System",
            type=SYSTEM_CONTEXT_TYPE,
            description="System-wide context",
            properties={"system": True, "protected": True},
        )
        self.system_context_id = system.id

    # Index maintenance

    @staticmethod
    def _add_to(index: Dict[str, Set[str]], key: str, context_id: str) -> None:
        index.setdefault(key, set()).add(context_id)

    @staticmethod
    def _remove_from(index: Dict[str, Set[str]], key: str, context_id: str) -> None:
        ids = index.get(key)
        if ids is None:
            return
        ids.discard(context_id)
        if not ids:
            del index[key]

    def _index(self, context: Context) -> None:
        self._contexts[context.id] = context
        self._add_to(self._type_index, context.type, context.id)
        self._add_to(self._scope_index, context.scope.value, context.id)
        if context.domain:
            self._add_to(self._domain_index, context.domain, context.id)
        for ref in context.entities:
            self._add_to(self._entity_index, ref.key, context.id)
        for relation_id in context.relations:
            self._add_to(self._relation_index, relation_id, context.id)

    def _unindex(self, context: Context) -> None:
        self._remove_from(self._type_index, context.type, context.id)
        self._remove_from(self._scope_index, context.scope.value, context.id)
        if context.domain:
            self._remove_from(self._domain_index, context.domain, context.id)
        for ref in context.entities:
            self._remove_from(self._entity_index, ref.key, context.id)
        for relation_id in context.relations:
            self._remove_from(self._relation_index, relation_id, context.id)

    @staticmethod
    def _snapshot(context: Context) -> Context:
        return replace(context, properties=copy.deepcopy(context.properties))

    def _replace(self, old: Context, new: Context) -> Context:
        # same key, so the context keeps its creation-order position
        with self._lock:
            self._unindex(old)
            self._index(new)
        return self._snapshot(new)

    def _contexts_by_ids(self, ids: Iterable[str]) -> List[Context]:
        wanted = set(ids)
        return [
            self._snapshot(context) for cid, context in self._contexts.items() if cid in wanted
        ]

    def _require_mutable(self, context_id: str, action: str) -> Context:
        context = self.require_context(context_id)
        if context.is_protected:
            raise ProtectedResourceError(f"Cannot {action} protected context {context_id}")
        return context

    # Creation

    def create_context(
        self,
        name: str,
        type: str = "generic",
        description: Optional[str] = None,
        entities: Iterable[EntityRef] = (),
        relations: Iterable[str] = (),
        properties: Optional[Dict[str, Any]] = None,
        valid: bool = True,
        valid_from: Optional[datetime] = None,
        valid_to: Optional[datetime] = None,
        scope: ContextScope = ContextScope.GLOBAL,
        domain: Optional[str] = None,
        id: Optional[str] = None,
    ) -> Context:
        """
        Create and index a context.

        All specialised constructors delegate to this method.

        Raises:
            ValidationError: If a context with the given id already exists
        """
        context = build_context(
            name=name,
            type=type,
            id=id,
            description=description,
            entities=entities,
            relations=relations,
            properties=properties,
            valid=valid,
            valid_from=valid_from,
            valid_to=valid_to,
            scope=scope,
            domain=domain,
        )
        with self._lock:
            if context.id in self._contexts:
                raise ValidationError(f"Context {context.id} already exists")
            self._index(context)
        logger.info(f"Created {context.type} context {context.id} ({context.name})")
        return self._snapshot(context)

    def create_temporary_context(
        self,
        name: Optional[str] = None,
        type: str = "session",
        ttl_seconds: Optional[int] = None,
        description: Optional[str] = None,
        entities: Iterable[EntityRef] = (),
        properties: Optional[Dict[str, Any]] = None,
    ) -> Context:
        """
        Create a local context valid from now for ``ttl_seconds``.

        The lifetime defaults to ``config.temporary_context_ttl``.
        """
        ttl = self.config.temporary_context_ttl if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValidationError(f"ttl_seconds must be positive, got {ttl}")
        now = utc_now()
        valid_until = now + timedelta(seconds=ttl)
        return self.create_context(
            name=name or f"Temporary {type} context",
            type=type,
            description=description,
            entities=entities,
            properties={**(properties or {}), "temporary": True, "valid_until": valid_until},
            valid_from=now,
            valid_to=valid_until,
            scope=ContextScope.LOCAL,
        )

    def create_evaluation_context(
        self,
        name: str,
        rules: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
        entities: Iterable[EntityRef] = (),
        properties: Optional[Dict[str, Any]] = None,
    ) -> Context:
        """Create an ``evaluation`` context holding validation rules."""
        return self.create_context(
            name=name,
            type="evaluation",
            description=description,
            entities=entities,
            properties={
                **(properties or {}),
                "rules": dict(rules or {}),
                "evaluation_created": utc_now(),
            },
        )

    def create_visualization_context(
        self,
        name: str,
        view_options: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
        entities: Iterable[EntityRef] = (),
        properties: Optional[Dict[str, Any]] = None,
    ) -> Context:
        """Create a ``visualization`` context holding view options."""
        return self.create_context(
            name=name,
            type="visualization",
            description=description,
            entities=entities,
            properties={
                **(properties or {}),
                "view_options": dict(view_options or {}),
                "visualization_created": utc_now(),
            },
        )

    def create_domain_context(
        self,
        name: str,
        domain: str,
        description: Optional[str] = None,
        entities: Iterable[EntityRef] = (),
        properties: Optional[Dict[str, Any]] = None,
    ) -> Context:
        """Create a domain-scoped ``domain`` context."""
        if not domain:
            raise ValidationError("Domain contexts require a domain name")
        return self.create_context(
            name=name,
            type="domain",
            description=description,
            entities=entities,
            properties={**(properties or {}), "domain_created": utc_now()},
            scope=ContextScope.DOMAIN,
            domain=domain,
        )

    def create_entity_neighborhood_context(
        self,
        center_entity: EntityRef,
        depth: int = 1,
        direction: str = "both",
        name: Optional[str] = None,
    ) -> Context:
        """
        Create a context holding an entity and its neighbourhood.

        Neighbour discovery is delegated to the relation collaborator.

        Raises:
            ConfigurationError: If the index has no relation collaborator
        """
        if self.relation_query is None:
            raise ConfigurationError("Neighbourhood contexts require a relation collaborator")
        related = self.relation_query.find_related_entities(
            center_entity, depth=depth, direction=direction
        )
        return self.create_context(
            name=name or f"Neighborhood of {center_entity.key}",
            type="neighborhood",
            entities=[center_entity, *related],
            properties={"center_entity": center_entity, "depth": depth, "direction": direction},
        )

    # Retrieval

    def get_context(self, context_id: str) -> Optional[Context]:
        with self._lock:
            context = self._contexts.get(context_id)
            return self._snapshot(context) if context is not None else None

    def require_context(self, context_id: str) -> Context:
        """
        Get a context by id.

        Raises:
            ContextNotFoundError: If the id is unknown
        """
        context = self.get_context(context_id)
        if context is None:
            raise ContextNotFoundError(f"Context not found: {context_id}")
        return context

    def get_all_contexts(self) -> List[Context]:
        with self._lock:
            return [self._snapshot(context) for context in self._contexts.values()]

    def count_contexts(self) -> int:
        with self._lock:
            return len(self._contexts)

    def get_contexts_by_type(self, context_type: str) -> List[Context]:
        with self._lock:
            return self._contexts_by_ids(self._type_index.get(context_type, ()))

    def find_active_contexts(self, at: Optional[datetime] = None) -> List[Context]:
        """Get contexts that are valid at ``at`` (default now)."""
        at = at or utc_now()
        return [context for context in self.get_all_contexts() if context.is_active(at)]

    def get_contexts_containing_entity(self, ref: EntityRef) -> List[Context]:
        with self._lock:
            return self._contexts_by_ids(self._entity_index.get(ref.key, ()))

    def get_contexts_containing_relation(self, relation_id: str) -> List[Context]:
        with self._lock:
            return self._contexts_by_ids(self._relation_index.get(relation_id, ()))

    def query_contexts(
        self,
        types: Optional[Sequence[str]] = None,
        text_search: Optional[str] = None,
        valid_only: bool = False,
        active_at: Optional[datetime] = None,
        property_filters: Optional[Dict[str, Any]] = None,
        scope: Optional[ContextScope] = None,
        domain: Optional[str] = None,
        contains_entity: Optional[EntityRef] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Context]:
        """
        Query contexts by several criteria.

        Args:
            types: Only contexts of these types
            text_search: Case-insensitive substring of name or description
            valid_only: Skip contexts whose ``valid`` flag is False
            active_at: Only contexts whose validity window contains this instant
            property_filters: Property filter over the context properties
            scope: Only contexts with this scope
            domain: Only contexts of this domain
            contains_entity: Only contexts that have this member
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Matching contexts in creation order
        """
        with self._lock:
            if contains_entity is not None:
                contexts = self._contexts_by_ids(self._entity_index.get(contains_entity.key, ()))
            else:
                contexts = [self._snapshot(context) for context in self._contexts.values()]

        if types is not None:
            type_set = set(types)
            contexts = [c for c in contexts if c.type in type_set]
        if scope is not None:
            scope = ContextScope(scope)
            contexts = [c for c in contexts if c.scope == scope]
        if domain is not None:
            contexts = [c for c in contexts if c.domain == domain]
        if valid_only:
            contexts = [c for c in contexts if c.valid]
        if active_at is not None:
            contexts = [c for c in contexts if c.is_active(active_at)]
        if text_search:
            needle = text_search.lower()
            contexts = [
                c
                for c in contexts
                if needle in c.name.lower() or needle in (c.description or "").lower()
            ]
        contexts = filter_by_properties(contexts, property_filters)
        return paginate(contexts, offset=offset, limit=limit)

    # Membership

    def add_entities_to_context(self, context_id: str, refs: Iterable[EntityRef]) -> Context:
        """Add entities to a context; existing members keep their position."""
        with self._lock:
            context = self._require_mutable(context_id, "modify")
            updated = with_membership(context, entities=[*context.entities, *refs])
            return self._replace(context, updated)

    def remove_entities_from_context(self, context_id: str, refs: Iterable[EntityRef]) -> Context:
        """Remove entities from a context; unknown members are ignored."""
        with self._lock:
            context = self._require_mutable(context_id, "modify")
            removed = set(refs)
            updated = with_membership(
                context, entities=[ref for ref in context.entities if ref not in removed]
            )
            return self._replace(context, updated)

    def add_relations_to_context(self, context_id: str, relation_ids: Iterable[str]) -> Context:
        """Add relation ids to a context; existing members keep their position."""
        with self._lock:
            context = self._require_mutable(context_id, "modify")
            updated = with_membership(context, relations=[*context.relations, *relation_ids])
            return self._replace(context, updated)

    def remove_relations_from_context(
        self, context_id: str, relation_ids: Iterable[str]
    ) -> Context:
        """Remove relation ids from a context; unknown ids are ignored."""
        with self._lock:
            context = self._require_mutable(context_id, "modify")
            removed = set(relation_ids)
            updated = with_membership(
                context, relations=[rid for rid in context.relations if rid not in removed]
            )
            return self._replace(context, updated)

    # Update and deletion

    def update_context(
        self,
        context_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
        valid: Optional[bool] = None,
        valid_from: Optional[datetime] = None,
        valid_to: Optional[datetime] = None,
        scope: Optional[ContextScope] = None,
        domain: Optional[str] = None,
    ) -> Context:
        """
        Update context fields.

        Arguments left as None are unchanged. ``properties`` is merged into the
        existing property map.

        Raises:
            ContextNotFoundError: If the id is unknown
            ProtectedResourceError: If the context is protected
        """
        with self._lock:
            context = self._require_mutable(context_id, "update")
            changes: Dict[str, Any] = {}
            if name is not None:
                changes["name"] = name
            if description is not None:
                changes["description"] = description
            if properties is not None:
                changes["properties"] = {**context.properties, **properties}
            if valid is not None:
                changes["valid"] = valid
            if valid_from is not None:
                changes["valid_from"] = valid_from
            if valid_to is not None:
                changes["valid_to"] = valid_to
            if scope is not None:
                changes["scope"] = ContextScope(scope)
            if domain is not None:
                changes["domain"] = domain
            updated = replace(context, updated_at=max(utc_now(), context.created_at), **changes)
            logger.debug(f"Updated context {context_id}: {', '.join(changes) or 'no fields'}")
            return self._replace(context, updated)

    def delete_context(self, context_id: str) -> bool:
        """
        Delete a context and drop it from every index.

        Returns:
            False when the id is unknown

        Raises:
            ProtectedResourceError: If the context is protected
        """
        with self._lock:
            context = self._contexts.get(context_id)
            if context is None:
                return False
            if context.is_protected:
                raise ProtectedResourceError(f"Cannot delete protected context {context_id}")
            del self._contexts[context_id]
            self._unindex(context)
        logger.info(f"Deleted context {context_id}")
        return True

    def merge_contexts(
        self,
        context_ids: Sequence[str],
        name: str,
        type: str = "merged",
        description: Optional[str] = None,
    ) -> Context:
        """
        Create a new context holding the union of several contexts' members.

        The source contexts are left unchanged.
        """
        if not context_ids:
            raise ValidationError("Cannot merge empty list of contexts")
        sources = [self.require_context(cid) for cid in context_ids]
        return self.create_context(
            name=name,
            type=type,
            description=description or f"Merged from {len(sources)} contexts",
            entities=[ref for source in sources for ref in source.entities],
            relations=[rid for source in sources for rid in source.relations],
            properties={"merged_from": [source.id for source in sources]},
        )

    # Export

    def _entity_node(self, ref: EntityRef, include_properties: bool) -> GraphNode:
        entity = None
        if self.entity_lookup is not None:
            entity = self.entity_lookup.get_entity(ref.entity, ref.id)
        label = (entity.name if entity is not None else None) or ref.id
        properties = dict(entity.properties) if entity is not None and include_properties else {}
        return GraphNode(id=ref.key, type=ref.entity, label=label, properties=properties)

    def _relation_edge(self, relation: Relation, include_properties: bool) -> GraphEdge:
        return GraphEdge(
            id=relation.id,
            source=relation.source.key,
            target=relation.target.key,
            type=relation.type,
            directed=relation.directed,
            properties=dict(relation.properties) if include_properties else {},
        )

    def export_context_as_graph(
        self,
        context_id: str,
        center_entity: Optional[EntityRef] = None,
        layout_type: str = "force",
        include_properties: bool = True,
    ) -> Graph:
        """
        Export a context as a graph.

        Members become nodes keyed by entity key and member relations become
        edges. When ``center_entity`` is given, its immediate relations are
        added as well, with any missing endpoint nodes.

        Raises:
            ContextNotFoundError: If the id is unknown
        """
        context = self.require_context(context_id)
        nodes: Dict[str, GraphNode] = {}

        def ensure_node(ref: EntityRef) -> None:
            if ref.key not in nodes:
                nodes[ref.key] = self._entity_node(ref, include_properties)

        for ref in context.entities:
            ensure_node(ref)

        relations: Dict[str, Relation] = {}
        if self.relation_query is not None:
            for relation_id in context.relations:
                relation = self.relation_query.get_relation(relation_id)
                if relation is None:
                    logger.debug(f"Skipping unknown relation {relation_id} of context {context_id}")
                    continue
                relations[relation.id] = relation
            if center_entity is not None:
                ensure_node(center_entity)
                for relation in [
                    *self.relation_query.find_relations_by_source(center_entity),
                    *self.relation_query.find_relations_by_target(center_entity),
                ]:
                    relations.setdefault(relation.id, relation)

        for relation in relations.values():
            ensure_node(relation.source)
            ensure_node(relation.target)

        return create_graph(
            name=context.name,
            description=context.description,
            nodes=nodes.values(),
            edges=[self._relation_edge(r, include_properties) for r in relations.values()],
            multigraph=True,
            properties={
                "context_id": context.id,
                "context_type": context.type,
                "layout_type": layout_type,
                "exported_at": utc_now(),
            },
        )

    # Operations

    def register_executor(self, context_type: str, executor: ContextExecutor) -> None:
        """Register the executor used for contexts of ``context_type``."""
        with self._lock:
            self._executors[context_type] = executor

    def _record_operation(self, context_id: str, entry: Dict[str, Any]) -> None:
        with self._lock:
            context = self._contexts.get(context_id)
            if context is None:
                return
            history = [*context.properties.get("operation_history", []), entry]
            updated = replace(
                context,
                properties={
                    **context.properties,
                    "last_operation": entry,
                    "operation_history": history,
                },
                updated_at=max(utc_now(), context.created_at),
            )
            self._replace(context, updated)

    def execute_operation(
        self, context_id: str, operation: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Execute an operation with the executor registered for the context type.

        The outcome is recorded as ``last_operation`` and appended to
        ``operation_history`` in the context properties, on success and on
        failure.

        Raises:
            ContextNotFoundError: If the id is unknown
            OperationExecutionError: If the executor fails; the original
                exception is chained
        """
        context = self.require_context(context_id)
        with self._lock:
            executor = self._executors.get(context.type, self._generic_executor)

        try:
            result = executor.execute(context, operation, dict(params or {}))
        except Exception as e:
            self._record_operation(
                context_id,
                {
                    "operation": operation,
                    "success": False,
                    "error": str(e),
                    "timestamp": utc_now(),
                },
            )
            logger.error(f"Operation {operation} failed in context {context_id}: {e}")
            raise OperationExecutionError(
                str(e), operation=operation, context_id=context_id
            ) from e

        self._record_operation(
            context_id, {"operation": operation, "success": True, "timestamp": utc_now()}
        )
        return result
