"""
In-memory entity and relation stores.

These stores implement the EntityLookup and RelationQuery protocols over
plain dictionaries. They back tests and embedded use; services with durable
storage provide their own implementations of the same protocols.
"""

import itertools
import logging
from collections import deque
from threading import RLock
from typing import Dict, Iterable, List, Optional, Sequence, Set

from ..core.exceptions import ValidationError
from .models import Entity, EntityRef, Relation

logger = logging.getLogger(__name__)

DIRECTIONS = ("outgoing", "incoming", "both")


class InMemoryEntityStore:
    """
    Entity lookup backed by a dictionary keyed by ``"<type>:<id>"``.

    Attributes:
        _entities (Dict[str, Entity]): Stored entities
        _lock (RLock): Lock guarding ``_entities``
    """

    def __init__(self, entities: Optional[Iterable[Entity]] = None):
        self._entities: Dict[str, Entity] = {}
        self._lock = RLock()
        for entity in entities or ():
            self.add_entity(entity)

    def add_entity(self, entity: Entity) -> Entity:
        """Insert or replace an entity."""
        with self._lock:
            self._entities[entity.key] = entity
        return entity

    def remove_entity(self, ref: EntityRef) -> bool:
        """Remove an entity. Returns False when it was unknown."""
        with self._lock:
            return self._entities.pop(ref.key, None) is not None

    def get_entity(self, entity_type: str, entity_id: str) -> Optional[Entity]:
        with self._lock:
            return self._entities.get(f"{entity_type}:{entity_id}")

    def list_entities(self) -> List[Entity]:
        with self._lock:
            return list(self._entities.values())


class InMemoryRelationStore:
    """
    Relation query backed by a dictionary keyed by relation id.

    Relations are returned in insertion order. Source and target indices keep
    per-entity lookups proportional to the entity's degree.
    """

    def __init__(self, relations: Optional[Iterable[Relation]] = None):
        self._relations: Dict[str, Relation] = {}
        self._sequence: Dict[str, int] = {}
        self._counter = itertools.count()
        self._by_source: Dict[str, List[str]] = {}
        self._by_target: Dict[str, List[str]] = {}
        self._lock = RLock()
        for relation in relations or ():
            self.add_relation(relation)

    def _unindex(self, relation: Relation) -> None:
        self._by_source[relation.source.key].remove(relation.id)
        self._by_target[relation.target.key].remove(relation.id)

    def add_relation(self, relation: Relation) -> Relation:
        """Insert or replace a relation."""
        with self._lock:
            existing = self._relations.get(relation.id)
            if existing is not None:
                self._unindex(existing)
            self._relations[relation.id] = relation
            if relation.id not in self._sequence:
                self._sequence[relation.id] = next(self._counter)
            self._by_source.setdefault(relation.source.key, []).append(relation.id)
            self._by_target.setdefault(relation.target.key, []).append(relation.id)
        logger.debug(f"Stored relation {relation.id} ({relation.type})")
        return relation

    def remove_relation(self, relation_id: str) -> bool:
        """Remove a relation. Returns False when it was unknown."""
        with self._lock:
            relation = self._relations.pop(relation_id, None)
            if relation is None:
                return False
            self._sequence.pop(relation_id, None)
            self._unindex(relation)
            return True

    def get_relation(self, relation_id: str) -> Optional[Relation]:
        with self._lock:
            return self._relations.get(relation_id)

    def _ordered(self, ids: Iterable[str]) -> List[Relation]:
        return [self._relations[rid] for rid in sorted(ids, key=self._sequence.__getitem__)]

    def query_relations(
        self,
        source_entity: Optional[EntityRef] = None,
        target_entity: Optional[EntityRef] = None,
        types: Optional[Sequence[str]] = None,
        valid_only: bool = False,
    ) -> List[Relation]:
        """
        Find relations matching every supplied criterion.

        Args:
            source_entity: Only relations starting at this entity
            target_entity: Only relations ending at this entity
            types: Only relations of these types
            valid_only: Skip relations whose ``valid`` flag is False

        Returns:
            Matching relations in insertion order
        """
        with self._lock:
            if source_entity is not None:
                candidates = self._ordered(self._by_source.get(source_entity.key, []))
            elif target_entity is not None:
                candidates = self._ordered(self._by_target.get(target_entity.key, []))
            else:
                candidates = list(self._relations.values())

        type_set = set(types) if types is not None else None
        return [
            relation
            for relation in candidates
            if (target_entity is None or relation.target == target_entity)
            and (source_entity is None or relation.source == source_entity)
            and (type_set is None or relation.type in type_set)
            and (not valid_only or relation.valid)
        ]

    def find_relations_by_source(self, ref: EntityRef) -> List[Relation]:
        return self.query_relations(source_entity=ref)

    def find_relations_by_target(self, ref: EntityRef) -> List[Relation]:
        return self.query_relations(target_entity=ref)

    def find_related_entities(
        self, ref: EntityRef, depth: int = 1, direction: str = "both"
    ) -> List[EntityRef]:
        """
        Find entities within ``depth`` hops of ``ref``.

        Args:
            ref: Starting entity
            depth: Maximum number of hops
            direction: ``outgoing``, ``incoming`` or ``both``

        Returns:
            Discovered entities in breadth-first order, excluding ``ref``
        """
        if direction not in DIRECTIONS:
            raise ValidationError(
                f"Invalid direction '{direction}', expected one of: {', '.join(DIRECTIONS)}"
            )

        seen: Set[str] = {ref.key}
        found: List[EntityRef] = []
        queue = deque([(ref, 0)])
        while queue:
            current, distance = queue.popleft()
            if distance >= depth:
                continue
            neighbours: List[EntityRef] = []
            if direction in ("outgoing", "both"):
                neighbours.extend(r.target for r in self.find_relations_by_source(current))
            if direction in ("incoming", "both"):
                neighbours.extend(r.source for r in self.find_relations_by_target(current))
            for neighbour in neighbours:
                if neighbour.key not in seen:
                    seen.add(neighbour.key)
                    found.append(neighbour)
                    queue.append((neighbour, distance + 1))
        return found
