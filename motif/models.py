"""Entity/relationship records and the pattern search request/response types.

Python code works with snake_case dataclasses. The JSON wire format keeps the
camelCase field names used by the graph-exploration client, so every type
that crosses the wire has a ``from_dict`` / ``to_dict`` pair.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


def _require(data: dict, key: str, kind: str):
    """Fetch a required wire field or raise a ValueError naming it."""
    if not isinstance(data, dict):
        raise ValueError(f"{kind} must be an object, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise ValueError(f"{kind} is missing required field '{key}'")
    return data[key]


# ------------------------------------------------------------------
# Data graph
# ------------------------------------------------------------------


@dataclass(frozen=True)
class Entity:
    """A vertex of the knowledge graph (Person, Organization, ...)."""

    id: str
    label_normalized: str
    type: str

    @classmethod
    def from_dict(cls, data: dict) -> "Entity":
        return cls(
            id=str(_require(data, "id", "Entity")),
            label_normalized=str(_require(data, "labelNormalized", "Entity")),
            type=str(_require(data, "type", "Entity")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "labelNormalized": self.label_normalized,
            "type": self.type,
        }


@dataclass(frozen=True)
class Relationship:
    """An edge of the knowledge graph.

    Direction is recorded (source -> related) but pattern matching treats
    relationships as undirected.
    """

    relationship_id: str
    predicate: str
    source_entity_id: str
    related_entity_id: str

    @classmethod
    def from_dict(cls, data: dict) -> "Relationship":
        return cls(
            relationship_id=str(_require(data, "relationshipId", "Relationship")),
            predicate=str(_require(data, "predicate", "Relationship")),
            source_entity_id=str(_require(data, "sourceEntityId", "Relationship")),
            related_entity_id=str(_require(data, "relatedEntityId", "Relationship")),
        )

    def to_dict(self) -> dict:
        return {
            "relationshipId": self.relationship_id,
            "predicate": self.predicate,
            "sourceEntityId": self.source_entity_id,
            "relatedEntityId": self.related_entity_id,
        }


# ------------------------------------------------------------------
# Pattern graph
# ------------------------------------------------------------------


@dataclass(frozen=True)
class AttributeFilter:
    """One attribute condition. Patterns are OR'd together."""

    attribute: str
    patterns: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "AttributeFilter":
        patterns = data.get("patterns") or []
        if not isinstance(patterns, (list, tuple)):
            raise ValueError("AttributeFilter 'patterns' must be a list")
        return cls(
            attribute=str(_require(data, "attribute", "AttributeFilter")),
            patterns=tuple(str(p) for p in patterns),
        )

    def to_dict(self) -> dict:
        return {"attribute": self.attribute, "patterns": list(self.patterns)}


@dataclass(frozen=True)
class PatternNode:
    """A constraint on one entity of the pattern.

    ``type=None`` matches any entity type. Filters are AND'd together.
    """

    id: str
    label: str
    type: Optional[str] = None
    filters: tuple[AttributeFilter, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "PatternNode":
        # "position" is canvas layout state from the pattern builder; ignored.
        return cls(
            id=str(_require(data, "id", "PatternNode")),
            label=str(_require(data, "label", "PatternNode")),
            type=data.get("type"),
            filters=tuple(
                AttributeFilter.from_dict(f) for f in data.get("filters") or []
            ),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "filters": [f.to_dict() for f in self.filters],
        }


@dataclass(frozen=True)
class PatternEdge:
    """A constraint on the relationship joining two pattern nodes.

    An empty ``predicates`` set matches any predicate.
    """

    id: str
    source_node_id: str
    target_node_id: str
    predicates: frozenset[str] = frozenset()

    @classmethod
    def from_dict(cls, data: dict) -> "PatternEdge":
        return cls(
            id=str(_require(data, "id", "PatternEdge")),
            source_node_id=str(_require(data, "sourceNodeId", "PatternEdge")),
            target_node_id=str(_require(data, "targetNodeId", "PatternEdge")),
            predicates=frozenset(str(p) for p in data.get("predicates") or []),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sourceNodeId": self.source_node_id,
            "targetNodeId": self.target_node_id,
            "predicates": sorted(self.predicates),
        }


@dataclass(frozen=True)
class SearchPattern:
    nodes: tuple[PatternNode, ...] = ()
    edges: tuple[PatternEdge, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "SearchPattern":
        if not isinstance(data, dict):
            raise ValueError("SearchPattern must be an object")
        return cls(
            nodes=tuple(PatternNode.from_dict(n) for n in data.get("nodes") or []),
            edges=tuple(PatternEdge.from_dict(e) for e in data.get("edges") or []),
        )

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


# ------------------------------------------------------------------
# Request / response
# ------------------------------------------------------------------


@dataclass(frozen=True)
class PatternSearchParams:
    """Search request.

    ``sort_attribute`` and ``sort_direction`` are part of the wire contract
    but have no effect on the result order.
    """

    pattern: SearchPattern
    page_size: int
    page_number: int
    sort_attribute: Optional[str] = None
    sort_direction: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "PatternSearchParams":
        return cls(
            pattern=SearchPattern.from_dict(_require(data, "pattern", "PatternSearchParams")),
            page_size=_require(data, "pageSize", "PatternSearchParams"),
            page_number=_require(data, "pageNumber", "PatternSearchParams"),
            sort_attribute=data.get("sortAttribute"),
            sort_direction=data.get("sortDirection"),
        )


@dataclass(frozen=True)
class PatternMatch:
    """One occurrence of the pattern.

    ``entities`` follow the pattern nodes sorted by label; ``relationships``
    are the witnesses found for each satisfied pattern edge.
    """

    entities: tuple[Entity, ...]
    relationships: tuple[Relationship, ...]

    def to_dict(self) -> dict:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relationships": [r.to_dict() for r in self.relationships],
        }


@dataclass(frozen=True)
class PatternSearchResponse:
    matches: tuple[PatternMatch, ...]
    total_count: int
    page_number: int
    page_size: int

    def to_dict(self) -> dict:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "totalCount": self.total_count,
            "pageNumber": self.page_number,
            "pageSize": self.page_size,
        }


@dataclass
class WorkspaceData:
    """Entities and relationships merged from many matches, deduplicated."""

    entities: list[Entity] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relationships": [r.to_dict() for r in self.relationships],
        }
