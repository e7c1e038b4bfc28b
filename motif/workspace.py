"""Merge pattern matches into a flat set of entities and relationships.

Search results repeat entities and relationships across matches (every match
carries its own witnesses). When results are imported into a workspace they
are flattened here, first occurrence wins.
"""

from __future__ import annotations

from typing import Iterable

from motif.models import PatternMatch, WorkspaceData


def merge_matches(matches: Iterable[PatternMatch]) -> WorkspaceData:
    """Deduplicate entities by id and relationships by relationship id.

    Order is the order of first appearance across the matches.

    Args:
        matches: Pattern matches, e.g. ``response.matches``

    Returns:
        WorkspaceData with unique entities and relationships.
    """
    entity_map = {}
    relationship_map = {}

    for match in matches:
        for entity in match.entities:
            entity_map.setdefault(entity.id, entity)
        for relationship in match.relationships:
            relationship_map.setdefault(relationship.relationship_id, relationship)

    return WorkspaceData(
        entities=list(entity_map.values()),
        relationships=list(relationship_map.values()),
    )
