"""Validation utilities for verifying search results against the graph.

This module provides tools for development and testing to ensure that
pattern search responses are consistent with the pattern and the data
they were produced from.
"""

from dataclasses import dataclass
from typing import Optional

from motif.graph import EntityGraph
from motif.matching import entity_matches_node, relationship_matches_edge
from motif.models import PatternMatch, PatternSearchResponse, SearchPattern
from motif.search import plan_edge_checks, sort_pattern_nodes


@dataclass
class ValidationError:
    """Represents a validation error found in a match."""
    error_type: str
    message: str
    match_index: Optional[int] = None
    entity_id: Optional[str] = None
    relationship_id: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of validating search results against the graph."""
    valid: bool
    total_matches: int
    valid_matches: int
    errors: list[ValidationError]

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            f"Validation {'PASSED' if self.valid else 'FAILED'}",
            f"  Total matches: {self.total_matches}",
            f"  Valid matches: {self.valid_matches}",
            f"  Invalid matches: {self.total_matches - self.valid_matches}",
        ]
        if self.errors:
            lines.append(f"  Errors ({len(self.errors)}):")
            for err in self.errors[:10]:  # Show first 10 errors
                lines.append(f"    - [{err.error_type}] {err.message}")
            if len(self.errors) > 10:
                lines.append(f"    ... and {len(self.errors) - 10} more errors")
        return "\n".join(lines)


def validate_match(
    pattern: SearchPattern,
    match: PatternMatch,
    graph: EntityGraph,
    match_index: Optional[int] = None,
) -> list[ValidationError]:
    """
    Check one match against the pattern and the graph.

    This function checks that:
    1. There is exactly one entity per pattern node, none repeated
    2. Every entity exists in the graph and satisfies its pattern node
    3. There is one relationship per pattern edge check, each existing in
       the graph and satisfying its edge between the bound entities

    Args:
        pattern: The pattern the match was produced for
        match: The match to check
        graph: The EntityGraph the match was produced from
        match_index: Position of the match, copied onto errors

    Returns:
        List of errors; empty if the match is valid.
    """
    errors = []
    sorted_nodes = sort_pattern_nodes(pattern.nodes)

    if len(match.entities) != len(sorted_nodes):
        return [ValidationError(
            error_type="ENTITY_COUNT",
            message=f"Expected {len(sorted_nodes)} entities, got {len(match.entities)}",
            match_index=match_index,
        )]

    seen = set()
    for entity in match.entities:
        if entity.id in seen:
            errors.append(ValidationError(
                error_type="DUPLICATE_ENTITY",
                message=f"Entity '{entity.id}' appears more than once",
                match_index=match_index,
                entity_id=entity.id,
            ))
        seen.add(entity.id)

    assignment = {}
    for node, entity in zip(sorted_nodes, match.entities):
        assignment[node.id] = entity
        if graph.get_entity(entity.id) is None:
            errors.append(ValidationError(
                error_type="ENTITY_NOT_FOUND",
                message=f"Entity '{entity.id}' not found in graph",
                match_index=match_index,
                entity_id=entity.id,
            ))
        if not entity_matches_node(entity, node):
            errors.append(ValidationError(
                error_type="NODE_CONSTRAINT",
                message=f"Entity '{entity.id}' does not satisfy node '{node.label}'",
                match_index=match_index,
                entity_id=entity.id,
            ))

    # Witnesses come in the order the search checks edges
    checks = [
        (node.id, edge, neighbor_node_id)
        for node, node_checks in zip(sorted_nodes, plan_edge_checks(sorted_nodes, pattern.edges))
        for edge, neighbor_node_id in node_checks
    ]
    if len(checks) != len(match.relationships):
        errors.append(ValidationError(
            error_type="RELATIONSHIP_COUNT",
            message=f"Expected {len(checks)} relationships, got {len(match.relationships)}",
            match_index=match_index,
        ))
        return errors

    for (node_id, edge, neighbor_node_id), relationship in zip(checks, match.relationships):
        entity_id = assignment[node_id].id
        neighbor_id = assignment[neighbor_node_id].id
        if relationship not in graph.relationships_between(
            relationship.source_entity_id, relationship.related_entity_id
        ):
            errors.append(ValidationError(
                error_type="RELATIONSHIP_NOT_FOUND",
                message=f"Relationship '{relationship.relationship_id}' not found in graph",
                match_index=match_index,
                relationship_id=relationship.relationship_id,
            ))
        if not relationship_matches_edge(relationship, edge, entity_id, neighbor_id).matches:
            errors.append(ValidationError(
                error_type="EDGE_UNSATISFIED",
                message=(
                    f"Relationship '{relationship.relationship_id}' does not satisfy edge "
                    f"'{edge.id}' between '{entity_id}' and '{neighbor_id}'"
                ),
                match_index=match_index,
                relationship_id=relationship.relationship_id,
            ))

    return errors


def validate_response(
    pattern: SearchPattern,
    response: PatternSearchResponse,
    graph: EntityGraph,
    verbose: bool = False,
) -> ValidationResult:
    """
    Validate every match of a search response.

    Args:
        pattern: The pattern that was searched
        response: The search response
        graph: The EntityGraph that was searched
        verbose: Print progress information

    Returns:
        ValidationResult with validation status and any errors found
    """
    errors = []
    valid_matches = 0

    if verbose:
        print(f"Validating {len(response.matches)} matches "
              f"(totalCount={response.total_count})")

    if len(response.matches) > response.page_size:
        errors.append(ValidationError(
            error_type="PAGE_OVERFLOW",
            message=f"{len(response.matches)} matches on a page of size {response.page_size}",
        ))

    for i, match in enumerate(response.matches):
        match_errors = validate_match(pattern, match, graph, match_index=i)
        if match_errors:
            errors.extend(match_errors)
        else:
            valid_matches += 1

    if verbose:
        print(f"  {valid_matches} valid, {len(errors)} errors")

    return ValidationResult(
        valid=len(errors) == 0,
        total_matches=len(response.matches),
        valid_matches=valid_matches,
        errors=errors,
    )
