"""
Ontology traversal algorithms.

OntologyTraversal derives answers from context membership and from the
relation graph exposed by the collaborators:
- Membership: which contexts hold an entity, who shares them, overlap
- Consequence: causal reachability forwards and backwards, causal loops
- Inheritance: inherited properties, type hierarchy, siblings

The class keeps no state between calls. All walks use explicit stacks or
queues, so deep relation chains never hit the interpreter's recursion limit;
``max_depth`` bounds walks over cyclic data.
"""

import heapq
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from ..config import TraversalConfig
from .models import Context, Entity, EntityRef, Relation
from .protocols import ContextStore, EntityLookup, RelationQuery

logger = logging.getLogger(__name__)


@dataclass
class TraceResult:
    """An entity reached by a causal trace and the relations leading to it."""

    entity: Entity
    path: List[Relation]


@dataclass
class HierarchyNode:
    """An entity in a type hierarchy with the entities that inherit from it."""

    entity: Entity
    children: List["HierarchyNode"] = field(default_factory=list)


@dataclass
class _LoopFrame:
    ref: EntityRef
    depth: int
    relations: Iterator[Relation]
    via: Optional[Relation] = None


class OntologyTraversal:
    """
    Stateless traversal over contexts, entities and relations.

    Attributes:
        contexts (ContextStore): Context membership collaborator
        entities (EntityLookup): Entity resolution collaborator
        relations (RelationQuery): Relation query collaborator
        config (TraversalConfig): Default relation types and depth limit
    """

    def __init__(
        self,
        contexts: ContextStore,
        entities: EntityLookup,
        relations: RelationQuery,
        config: Optional[TraversalConfig] = None,
    ):
        self.contexts = contexts
        self.entities = entities
        self.relations = relations
        self.config = config or TraversalConfig()

    def _resolve(self, ref: EntityRef) -> Optional[Entity]:
        return self.entities.get_entity(ref.entity, ref.id)

    def _outgoing(self, ref: EntityRef, types: Sequence[str]) -> List[Relation]:
        return self.relations.query_relations(source_entity=ref, types=types, valid_only=True)

    def _incoming(self, ref: EntityRef, types: Sequence[str]) -> List[Relation]:
        return self.relations.query_relations(target_entity=ref, types=types, valid_only=True)

    # Membership

    def get_context_membership(self, ref: EntityRef) -> List[Context]:
        """Get every context that has ``ref`` as a member."""
        return self.contexts.get_contexts_containing_entity(ref)

    def find_co_member_entities(self, ref: EntityRef) -> List[Entity]:
        """Get entities sharing at least one context with ``ref``, excluding ``ref``."""
        members: Dict[str, Entity] = {}
        for context in self.get_context_membership(ref):
            for member in context.entities:
                if member == ref:
                    continue
                entity = self._resolve(member)
                if entity is not None:
                    members.setdefault(entity.key, entity)
        return list(members.values())

    def get_membership_overlap(self, a: EntityRef, b: EntityRef) -> List[Context]:
        """Get the contexts both ``a`` and ``b`` belong to."""
        ids_b = {context.id for context in self.get_context_membership(b)}
        return [context for context in self.get_context_membership(a) if context.id in ids_b]

    # Consequence

    def _trace(
        self, start: EntityRef, types: Sequence[str], max_depth: int, forward: bool
    ) -> Dict[str, TraceResult]:
        results: Dict[str, TraceResult] = {}
        visited: Set[str] = set()
        stack: List[tuple] = [(start, [])]

        while stack:
            ref, path = stack.pop()
            if len(path) > max_depth or ref.key in visited:
                continue
            visited.add(ref.key)

            entity = self._resolve(ref)
            if entity is None:
                continue
            if path:
                results[ref.key] = TraceResult(entity=entity, path=path)

            related = self._outgoing(ref, types) if forward else self._incoming(ref, types)
            # reversed so relations are explored in query order
            for relation in reversed(related):
                next_ref = relation.target if forward else relation.source
                stack.append((next_ref, [*path, relation]))

        return results

    def trace_effects(
        self,
        start: EntityRef,
        types: Optional[Sequence[str]] = None,
        max_depth: Optional[int] = None,
    ) -> Dict[str, TraceResult]:
        """
        Find entities reachable from ``start`` through outgoing causal relations.

        Args:
            start: Entity to trace from
            types: Relation types to follow (default causal types)
            max_depth: Maximum path length

        Returns:
            Mapping of entity key to the entity and the relation path reaching
            it. Each entity is reached once; ``start`` is not included.
        """
        return self._trace(
            start,
            types or self.config.causal_types,
            self.config.max_depth if max_depth is None else max_depth,
            forward=True,
        )

    def trace_causes(
        self,
        end: EntityRef,
        types: Optional[Sequence[str]] = None,
        max_depth: Optional[int] = None,
    ) -> Dict[str, TraceResult]:
        """Find entities reaching ``end`` through causal relations, walking backwards."""
        return self._trace(
            end,
            types or self.config.causal_types,
            self.config.max_depth if max_depth is None else max_depth,
            forward=False,
        )

    def find_causal_loops(
        self,
        start: EntityRef,
        types: Optional[Sequence[str]] = None,
        max_depth: Optional[int] = None,
    ) -> List[List[Relation]]:
        """
        Enumerate relation paths that leave ``start`` and return to it.

        The walk keeps a per-path set of visited relations and entities:
        backtracking removes the relation that led into a frame, so every
        distinct path is explored. Paths through an entity already on the
        current path (other than ``start``) are not followed.

        Returns:
            Loops as relation lists, each starting and ending at ``start``
        """
        types = types or self.config.causal_types
        max_depth = self.config.max_depth if max_depth is None else max_depth

        loops: List[List[Relation]] = []
        path: List[Relation] = []
        path_relations: Set[str] = set()
        path_entities: Set[str] = {start.key}
        stack = [_LoopFrame(start, 0, iter(self._outgoing(start, types)))]

        while stack:
            frame = stack[-1]
            relation = next(frame.relations, None)

            if relation is None:
                stack.pop()
                path_entities.discard(frame.ref.key)
                if frame.via is not None:
                    path.pop()
                    path_relations.discard(frame.via.id)
                continue

            if relation.id in path_relations:
                continue
            target_key = relation.target.key
            if target_key == start.key:
                loops.append([*path, relation])
                continue
            if target_key in path_entities or frame.depth + 1 > max_depth:
                continue

            path.append(relation)
            path_relations.add(relation.id)
            path_entities.add(target_key)
            stack.append(
                _LoopFrame(
                    relation.target,
                    frame.depth + 1,
                    iter(self._outgoing(relation.target, types)),
                    via=relation,
                )
            )

        logger.debug(f"Found {len(loops)} causal loops through {start.key}")
        return loops

    # Inheritance

    def resolve_inherited_properties(
        self, ref: EntityRef, types: Optional[Sequence[str]] = None
    ) -> Dict[str, Any]:
        """
        Merge an entity's properties with those of its ancestors.

        Ancestors are collected breadth-first with a visited set, so shared
        and cyclic ancestry is visited once. They are then applied in
        topological order over the inheritance relations among them: an
        ancestor is merged only after all of its own parents, and the
        entity's own properties go last. An ancestor that is also reachable
        as a grandparent therefore never overrides the parent inheriting
        from it. Among unrelated ancestors the more distant one is applied
        first, and at equal distance the parent discovered earlier wins.
        Relations closing an inheritance cycle are ignored.

        Returns:
            Merged property map, or an empty dict if ``ref`` cannot be resolved
        """
        types = types or self.config.inheritance_types
        entity = self._resolve(ref)
        if entity is None:
            return {}

        ancestors: Dict[str, Entity] = {}
        rank: Dict[str, Tuple[int, int]] = {}
        parents: Dict[str, List[str]] = {}
        visited: Set[str] = {ref.key}
        frontier = [ref]
        distance = 0
        while frontier:
            distance += 1
            next_frontier: List[EntityRef] = []
            for current in frontier:
                current_parents = parents.setdefault(current.key, [])
                for relation in self._outgoing(current, types):
                    parent_ref = relation.target
                    current_parents.append(parent_ref.key)
                    if parent_ref.key in visited:
                        continue
                    visited.add(parent_ref.key)
                    parent = self._resolve(parent_ref)
                    if parent is None:
                        continue
                    ancestors[parent_ref.key] = parent
                    # heap order: most distant first, then latest discovered
                    rank[parent_ref.key] = (-distance, -len(rank))
                    next_frontier.append(parent_ref)
            frontier = next_frontier

        waiting: Dict[str, Set[str]] = {}
        children: Dict[str, List[str]] = {}
        for key in ancestors:
            waiting[key] = {p for p in parents.get(key, ()) if p in ancestors and p != key}
            for parent_key in waiting[key]:
                children.setdefault(parent_key, []).append(key)

        ready = [(*rank[key], key) for key, blocked in waiting.items() if not blocked]
        heapq.heapify(ready)
        applied: Set[str] = set()
        merged: Dict[str, Any] = {}
        while len(applied) < len(ancestors):
            if ready:
                key = heapq.heappop(ready)[-1]
                if key in applied:
                    continue
            else:
                # only cycles remain; release the most distant blocked ancestor
                key = min((k for k in ancestors if k not in applied), key=rank.__getitem__)
            applied.add(key)
            merged.update(ancestors[key].properties or {})
            for child in children.get(key, ()):
                waiting[child].discard(key)
                if not waiting[child] and child not in applied:
                    heapq.heappush(ready, (*rank[child], child))

        merged.update(entity.properties or {})
        return merged

    def build_type_hierarchy(
        self,
        ref: EntityRef,
        types: Optional[Sequence[str]] = None,
        max_depth: Optional[int] = None,
    ) -> List[HierarchyNode]:
        """
        Build the tree of entities inheriting from ``ref``.

        Children of a node are the sources of inheritance relations that
        target it, nested down to ``max_depth`` levels.

        Returns:
            A single-element list holding the root, or an empty list if ``ref``
            cannot be resolved
        """
        types = types or self.config.inheritance_types
        max_depth = self.config.max_depth if max_depth is None else max_depth

        roots: List[HierarchyNode] = []
        stack = [(ref, 0, roots)]
        while stack:
            current, depth, siblings = stack.pop()
            if depth > max_depth:
                continue
            entity = self._resolve(current)
            if entity is None:
                continue
            node = HierarchyNode(entity=entity)
            siblings.append(node)
            for relation in reversed(self._incoming(current, types)):
                stack.append((relation.source, depth + 1, node.children))
        return roots

    def find_siblings(self, ref: EntityRef, types: Optional[Sequence[str]] = None) -> List[Entity]:
        """Get entities sharing at least one inheritance parent with ``ref``."""
        types = types or self.config.inheritance_types
        siblings: Dict[str, Entity] = {}
        for parent_relation in self._outgoing(ref, types):
            for child_relation in self._incoming(parent_relation.target, types):
                candidate = child_relation.source
                if candidate == ref:
                    continue
                entity = self._resolve(candidate)
                if entity is not None:
                    siblings.setdefault(entity.key, entity)
        return list(siblings.values())

