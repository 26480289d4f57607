"""
Collaborator protocols for the ontology layer.

OntologyTraversal and ContextIndex depend on these capability interfaces
rather than on concrete services, so traversal logic runs unchanged against
in-memory stores, remote services or test doubles.
"""

from typing import List, Optional, Protocol, Sequence

from .models import Context, Entity, EntityRef, Relation


class EntityLookup(Protocol):
    """Protocol for resolving entity references."""

    def get_entity(self, entity_type: str, entity_id: str) -> Optional[Entity]:
        """Get an entity by type and id, or None if it does not exist."""
        ...


class RelationQuery(Protocol):
    """Protocol for querying relations between entities."""

    def query_relations(
        self,
        source_entity: Optional[EntityRef] = None,
        target_entity: Optional[EntityRef] = None,
        types: Optional[Sequence[str]] = None,
        valid_only: bool = False,
    ) -> List[Relation]:
        """Find relations matching every supplied criterion."""
        ...

    def find_related_entities(
        self, ref: EntityRef, depth: int = 1, direction: str = "both"
    ) -> List[EntityRef]:
        """Find entities within ``depth`` hops of ``ref``, excluding ``ref``."""
        ...

    def find_relations_by_source(self, ref: EntityRef) -> List[Relation]:
        """Get relations whose source is ``ref``."""
        ...

    def find_relations_by_target(self, ref: EntityRef) -> List[Relation]:
        """Get relations whose target is ``ref``."""
        ...

    def get_relation(self, relation_id: str) -> Optional[Relation]:
        """Get a relation by id, or None."""
        ...


class ContextStore(Protocol):
    """Protocol for context membership lookups."""

    def get_context(self, context_id: str) -> Optional[Context]:
        """Get a context by id, or None."""
        ...

    def get_contexts_containing_entity(self, ref: EntityRef) -> List[Context]:
        """Get every context that has ``ref`` as a member."""
        ...
