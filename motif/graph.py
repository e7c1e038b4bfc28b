"""In-memory entity/relationship graph and the repository protocol."""

from collections import defaultdict
from typing import Iterable, Optional, Protocol, Sequence

from motif.models import Entity, Relationship


class GraphRepository(Protocol):
    """Read-only source of the entity and relationship snapshots.

    Both sequences must stay unchanged for the duration of one search call.
    Their order is significant: it is the candidate order of the search and
    the order in which relationship witnesses are chosen.
    """

    def list_entities(self) -> Sequence[Entity]:
        ...

    def list_relationships(self) -> Sequence[Relationship]:
        ...


def pair_key(entity_id_a: str, entity_id_b: str) -> tuple[str, str]:
    """Order-independent key for an entity pair."""
    if entity_id_a <= entity_id_b:
        return (entity_id_a, entity_id_b)
    return (entity_id_b, entity_id_a)


def index_relationships_by_pair(
    relationships: Iterable[Relationship],
) -> dict[tuple[str, str], list[Relationship]]:
    """Bucket relationships by unordered endpoint pair.

    Buckets keep the input order, so the first relationship in a bucket
    that satisfies an edge is the first one a linear scan would find.
    """
    index = defaultdict(list)
    for relationship in relationships:
        key = pair_key(relationship.source_entity_id, relationship.related_entity_id)
        index[key].append(relationship)
    return index


class EntityGraph:
    """
    Immutable in-memory snapshot of entities and relationships.

    Implements ``GraphRepository`` and adds the id and adjacency lookups used
    by validation and diagnostics.
    """

    def __init__(
        self,
        entities: Iterable[Entity],
        relationships: Iterable[Relationship],
    ):
        """
        Args:
            entities: Entities in candidate order
            relationships: Relationships in witness order
        """
        self._entities = tuple(entities)
        self._relationships = tuple(relationships)
        self.entity_by_id = {}
        for entity in self._entities:
            # First occurrence wins for lookups; the search sees every entry
            self.entity_by_id.setdefault(entity.id, entity)
        self._by_pair = index_relationships_by_pair(self._relationships)
        self._degree = defaultdict(int)
        for relationship in self._relationships:
            self._degree[relationship.source_entity_id] += 1
            self._degree[relationship.related_entity_id] += 1

    @property
    def num_entities(self) -> int:
        return len(self._entities)

    @property
    def num_relationships(self) -> int:
        return len(self._relationships)

    def list_entities(self) -> Sequence[Entity]:
        return self._entities

    def list_relationships(self) -> Sequence[Relationship]:
        return self._relationships

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        """Look up an entity by id."""
        return self.entity_by_id.get(entity_id)

    def relationships_between(self, entity_id_a: str, entity_id_b: str) -> list[Relationship]:
        """All relationships joining two entities, either direction, input order."""
        return list(self._by_pair.get(pair_key(entity_id_a, entity_id_b), ()))

    def degree(self, entity_id: str) -> int:
        """Number of relationships touching an entity."""
        return self._degree.get(entity_id, 0)

    def dangling_relationships(self) -> list[Relationship]:
        """Relationships with an endpoint that is not a known entity."""
        return [
            r
            for r in self._relationships
            if r.source_entity_id not in self.entity_by_id
            or r.related_entity_id not in self.entity_by_id
        ]

    def get_predicate_stats(self) -> list[tuple[str, int]]:
        """Predicate usage counts, most used first."""
        pred_counts = {}
        for relationship in self._relationships:
            pred_counts[relationship.predicate] = pred_counts.get(relationship.predicate, 0) + 1
        return sorted(pred_counts.items(), key=lambda x: x[1], reverse=True)

    def __repr__(self) -> str:
        return (
            f"EntityGraph(entities={self.num_entities:,}, "
            f"relationships={self.num_relationships:,})"
        )
