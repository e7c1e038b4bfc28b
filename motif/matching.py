"""Constraint evaluators used to prune the pattern search.

Three layers, leaf first:

- ``matches``: a string value against a list of OR'd patterns.
- ``entity_matches_node``: an entity against a pattern node's type and
  attribute filters.
- ``relationship_matches_edge``: a relationship against a pattern edge's
  predicate filter, in either direction.
"""

import enum
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence

from motif.models import Entity, PatternEdge, PatternNode, Relationship


# Attributes a filter may name, mapped to the Entity field that holds them.
# Anything else is treated as absent on every entity.
ENTITY_ATTRIBUTES = {
    "id": "id",
    "labelNormalized": "label_normalized",
    "type": "type",
}


def get_attribute(entity: Entity, name: str) -> Optional[str]:
    """Read a declared entity attribute by its wire name, or None."""
    field_name = ENTITY_ATTRIBUTES.get(name)
    if field_name is None:
        return None
    value = getattr(entity, field_name)
    return None if value is None else str(value)


_BOUNDED_REPEAT = re.compile(r"\{(?:\d+(?:,\d*)?|,\d+)\}$")


def _has_unsupported_syntax(pattern: str) -> bool:
    """
    Detect possessive quantifiers (``*+``, ``++``, ``?+``, ``{n}+``) and
    atomic groups ``(?>...)``.

    The ``re`` module accepts these since Python 3.11, but filter patterns
    use the common regex dialect where they are errors, so ``c++`` must stay
    a literal.
    """
    in_class = False
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            i += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
            # "]" right after "[" or "[^" is a literal
            if pattern.startswith("^", i + 1):
                i += 1
            if pattern.startswith("]", i + 1):
                i += 1
        elif pattern.startswith("(?>", i):
            return True
        elif pattern.startswith("+", i + 1):
            if char in "*+?":
                return True
            if char == "}" and _BOUNDED_REPEAT.search(pattern, 0, i + 1):
                return True
        i += 1
    return False


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> Optional[re.Pattern]:
    """Compile a filter pattern case-insensitively, or None if it is not a regex."""
    if _has_unsupported_syntax(pattern):
        return None
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return None


def _pattern_matches(value: str, pattern: str) -> bool:
    regex = _compile(pattern)
    if regex is None:
        # Not a valid regex: treat it as a literal
        return pattern.lower() in value.lower()
    return regex.search(value) is not None


def matches(value: Optional[str], patterns: Sequence[str]) -> bool:
    """
    Test a value against OR'd patterns.

    Each pattern is tried as a case-insensitive regular expression searched
    anywhere in the value. Patterns that fail to compile fall back to a
    case-insensitive substring check, so that strings such as ``*Cloud*``
    still work as literal filters.

    Args:
        value: The attribute value, or None if the entity does not have it
        patterns: Patterns to try; an empty list is no constraint

    Returns:
        True if ``patterns`` is empty or any pattern matches ``value``.
    """
    if not patterns:
        return True
    if value is None:
        return False
    return any(_pattern_matches(value, pattern) for pattern in patterns)


def entity_matches_node(entity: Entity, node: PatternNode) -> bool:
    """Check an entity against a pattern node's type and attribute filters."""
    if node.type is not None and entity.type != node.type:
        return False
    for attribute_filter in node.filters:
        value = get_attribute(entity, attribute_filter.attribute)
        if not matches(value, attribute_filter.patterns):
            return False
    return True


class Direction(enum.Enum):
    """Orientation of a relationship relative to the pair being checked."""

    FORWARD = "forward"
    REVERSE = "reverse"


@dataclass(frozen=True)
class EdgeCheck:
    matches: bool
    direction: Optional[Direction] = None


NO_MATCH = EdgeCheck(matches=False)


def relationship_matches_edge(
    relationship: Relationship,
    edge: PatternEdge,
    candidate_id_a: str,
    candidate_id_b: str,
) -> EdgeCheck:
    """
    Check whether a relationship can stand in for a pattern edge.

    The relationship must join the two candidate entities, in either
    direction. If the edge lists predicates, the relationship's predicate
    must be one of them; the same predicate satisfies the edge whichever
    side is the source.

    Args:
        relationship: Relationship to test
        edge: Pattern edge it should satisfy
        candidate_id_a: Entity bound to one end of the edge
        candidate_id_b: Entity bound to the other end

    Returns:
        EdgeCheck with the direction the relationship was found in.
    """
    if (
        relationship.source_entity_id == candidate_id_a
        and relationship.related_entity_id == candidate_id_b
    ):
        direction = Direction.FORWARD
    elif (
        relationship.source_entity_id == candidate_id_b
        and relationship.related_entity_id == candidate_id_a
    ):
        direction = Direction.REVERSE
    else:
        return NO_MATCH

    if edge.predicates and relationship.predicate not in edge.predicates:
        return NO_MATCH

    return EdgeCheck(matches=True, direction=direction)
