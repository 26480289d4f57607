"""
Ontology models for ontograph.

This module defines the values the ontology layer works with:
- EntityRef: reference to a domain entity by (entity type, id)
- Entity: resolved domain entity returned by an entity lookup
- Relation: typed connection between two entity references
- Context: named grouping of entity references and relation ids

Contexts are frozen; ContextIndex changes them by building replacements with
``build_context`` / ``dataclasses.replace`` so metrics and timestamps always
match membership.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from ..core.models import new_id, utc_now
from ..core.models.base import validate_dataclass, validate_date_order, validate_non_empty


class ContextScope(str, Enum):
    """Visibility scope of a context."""

    GLOBAL = "global"
    DOMAIN = "domain"
    LOCAL = "local"


@validate_dataclass
@dataclass(frozen=True)
class EntityRef:
    """
    Reference to a domain entity.

    Attributes:
        entity (str): Entity type, e.g. "user.Person"
        id (str): Entity id within its type
    """

    entity: str
    id: str

    def __post_init__(self):
        validate_non_empty("entity", self.entity)
        validate_non_empty("id", self.id)

    @property
    def key(self) -> str:
        """Index key ``"<entity>:<id>"``."""
        return f"{self.entity}:{self.id}"

    @classmethod
    def from_key(cls, key: str) -> "EntityRef":
        """Parse a ``"<entity>:<id>"`` key; the id may itself contain colons."""
        entity, sep, entity_id = key.partition(":")
        if not sep:
            raise ValueError(f"Invalid entity key: {key}")
        return cls(entity=entity, id=entity_id)

    def to_dict(self) -> Dict[str, str]:
        return {"entity": self.entity, "id": self.id}


@validate_dataclass
@dataclass(frozen=True)
class Entity:
    """
    Domain entity as returned by an entity lookup.

    Attributes:
        id (str): Entity id
        type (str): Entity type
        name (Optional[str]): Display name
        properties (Dict[str, Any]): Property map
    """

    id: str
    type: str
    name: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def ref(self) -> EntityRef:
        return EntityRef(entity=self.type, id=self.id)

    @property
    def key(self) -> str:
        return f"{self.type}:{self.id}"


@validate_dataclass
@dataclass(frozen=True)
class Relation:
    """
    Typed relation between two entities.

    Attributes:
        id (str): Relation id
        source (EntityRef): Source entity
        target (EntityRef): Target entity
        type (str): Relation type, e.g. "causes" or "is_a"
        directed (bool): Whether the relation has a direction
        valid (bool): Whether the relation currently holds
        properties (Dict[str, Any]): Property map
        created_at (datetime): Creation instant
        updated_at (datetime): Last modification instant
    """

    id: str
    source: EntityRef
    target: EntityRef
    type: str
    directed: bool = True
    valid: bool = True
    properties: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        validate_non_empty("id", self.id)
        validate_date_order(self.created_at, self.updated_at)


@dataclass(frozen=True)
class ContextMetrics:
    """
    Membership metrics of a context.

    Attributes:
        entity_count: Number of member entities
        relation_count: Number of member relations
        density: None for an empty context, 1.0 for a single entity,
            otherwise relation_count / (n(n-1))
    """

    entity_count: int = 0
    relation_count: int = 0
    density: Optional[float] = None

    @classmethod
    def compute(cls, entity_count: int, relation_count: int) -> "ContextMetrics":
        if entity_count == 0:
            density = None
        elif entity_count == 1:
            density = 1.0
        else:
            density = relation_count / (entity_count * (entity_count - 1))
        return cls(entity_count=entity_count, relation_count=relation_count, density=density)


@validate_dataclass
@dataclass(frozen=True)
class Context:
    """
    Named grouping of entities and relations.

    Attributes:
        id (str): Context id
        name (str): Display name
        type (str): Discriminant such as "generic", "evaluation" or "system"
        description (Optional[str]): Free text
        entities (Tuple[EntityRef, ...]): Unique members in insertion order
        relations (Tuple[str, ...]): Unique relation ids in insertion order
        properties (Dict[str, Any]): Property map; ``protected`` marks the
            context as immutable
        metrics (ContextMetrics): Membership metrics
        valid (bool): Whether the context is in force
        valid_from (Optional[datetime]): Start of the validity window
        valid_to (Optional[datetime]): End of the validity window
        scope (ContextScope): Visibility scope
        domain (Optional[str]): Domain name for domain-scoped contexts
        created_at (datetime): Creation instant
        updated_at (datetime): Last modification instant
    """

    id: str
    name: str
    type: str
    description: Optional[str] = None
    entities: Tuple[EntityRef, ...] = ()
    relations: Tuple[str, ...] = ()
    properties: Dict[str, Any] = field(default_factory=dict)
    metrics: ContextMetrics = field(default_factory=ContextMetrics)
    valid: bool = True
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    scope: ContextScope = ContextScope.GLOBAL
    domain: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        validate_non_empty("id", self.id)
        validate_date_order(self.created_at, self.updated_at)
        if self.valid_from and self.valid_to and self.valid_to < self.valid_from:
            raise ValueError("valid_to cannot be before valid_from")

    @property
    def is_protected(self) -> bool:
        return bool(self.properties.get("protected"))

    def contains_entity(self, ref: EntityRef) -> bool:
        return ref in self.entities

    def is_active(self, at: Optional[datetime] = None) -> bool:
        """Check whether the context is valid at the given instant (default now)."""
        if not self.valid:
            return False
        at = at or utc_now()
        if self.valid_from is not None and at < self.valid_from:
            return False
        if self.valid_to is not None and at > self.valid_to:
            return False
        return True


def _unique(items: Iterable[Any]) -> Tuple[Any, ...]:
    return tuple(dict.fromkeys(items))


def build_context(
    name: str,
    type: str,
    id: Optional[str] = None,
    description: Optional[str] = None,
    entities: Iterable[EntityRef] = (),
    relations: Iterable[str] = (),
    properties: Optional[Dict[str, Any]] = None,
    valid: bool = True,
    valid_from: Optional[datetime] = None,
    valid_to: Optional[datetime] = None,
    scope: ContextScope = ContextScope.GLOBAL,
    domain: Optional[str] = None,
) -> Context:
    """
    Create a context with deduplicated membership, metrics and timestamps.

    Every context, whatever its type, is created through this function.
    """
    entities = _unique(entities)
    relations = _unique(relations)
    now = utc_now()
    return Context(
        id=id or new_id(),
        name=name,
        type=type,
        description=description,
        entities=entities,
        relations=relations,
        properties=dict(properties or {}),
        metrics=ContextMetrics.compute(len(entities), len(relations)),
        valid=valid,
        valid_from=valid_from,
        valid_to=valid_to,
        scope=ContextScope(scope),
        domain=domain,
        created_at=now,
        updated_at=now,
    )


def with_membership(
    context: Context,
    entities: Optional[Iterable[EntityRef]] = None,
    relations: Optional[Iterable[str]] = None,
) -> Context:
    """Return a copy of ``context`` with new membership and recomputed metrics."""
    new_entities = _unique(entities) if entities is not None else context.entities
    new_relations = _unique(relations) if relations is not None else context.relations
    return replace(
        context,
        entities=new_entities,
        relations=new_relations,
        metrics=ContextMetrics.compute(len(new_entities), len(new_relations)),
        updated_at=max(utc_now(), context.created_at),
    )
