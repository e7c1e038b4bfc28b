"""Pattern (subgraph) search over an entity/relationship graph."""

import logging
import time
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from motif.graph import GraphRepository, index_relationships_by_pair, pair_key
from motif.matching import entity_matches_node, relationship_matches_edge
from motif.models import (
    Entity,
    PatternEdge,
    PatternMatch,
    PatternNode,
    PatternSearchParams,
    PatternSearchResponse,
    Relationship,
)

logger = logging.getLogger(__name__)


class MotifError(Exception):
    """Base class for errors raised by motif."""


class SearchBudgetExceeded(MotifError):
    """The search ran past its step or time budget and was abandoned."""

    def __init__(
        self,
        steps: int,
        elapsed: float,
        max_steps: Optional[int] = None,
        max_seconds: Optional[float] = None,
    ):
        self.steps = steps
        self.elapsed = elapsed
        self.max_steps = max_steps
        self.max_seconds = max_seconds
        if max_steps is not None and steps > max_steps:
            reason = f"step budget of {max_steps:,} exceeded"
        else:
            reason = f"time budget of {max_seconds}s exceeded"
        super().__init__(
            f"Pattern search abandoned: {reason} after {steps:,} steps ({elapsed:.2f}s)"
        )


@dataclass(frozen=True)
class SearchBudget:
    """
    Limits for one search call. ``None`` disables a limit.

    A step is one candidate entity considered for one pattern node.
    """

    max_steps: Optional[int] = None
    max_seconds: Optional[float] = None


class SearchProgress:
    """Step counter and clock for a single search call."""

    def __init__(self, budget: Optional[SearchBudget] = None):
        self.budget = budget or SearchBudget()
        self.steps = 0
        self.started = time.perf_counter()

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started

    def step(self):
        """Count one step, raising SearchBudgetExceeded when over budget."""
        self.steps += 1
        max_steps = self.budget.max_steps
        max_seconds = self.budget.max_seconds
        if max_steps is not None and self.steps > max_steps:
            raise SearchBudgetExceeded(self.steps, self.elapsed, max_steps, max_seconds)
        if max_seconds is not None:
            elapsed = self.elapsed
            if elapsed > max_seconds:
                raise SearchBudgetExceeded(self.steps, elapsed, max_steps, max_seconds)


def collation_key(text: str) -> tuple[str, str]:
    """
    Sort key for user-facing strings, independent of the process locale.

    Case is ignored first ("node a" < "Node B"); among strings that differ
    only in case, lowercase sorts first ("a" < "A").
    """
    return text.casefold(), text.swapcase()


def sort_pattern_nodes(nodes: Sequence[PatternNode]) -> list[PatternNode]:
    """Order pattern nodes by label. This order drives the search and the output."""
    return sorted(nodes, key=lambda node: collation_key(node.label))


def plan_edge_checks(
    sorted_nodes: list[PatternNode], edges: Sequence[PatternEdge]
) -> list[list[tuple[PatternEdge, str]]]:
    """For each node position, the edges back to already-assigned nodes.

    Entries are ``(edge, neighbor_node_id)`` in pattern edge order.
    """
    plan = []
    assigned = set()
    for node in sorted_nodes:
        checks = []
        for edge in edges:
            if edge.source_node_id == node.id and edge.target_node_id in assigned:
                checks.append((edge, edge.target_node_id))
            elif edge.target_node_id == node.id and edge.source_node_id in assigned:
                checks.append((edge, edge.source_node_id))
        plan.append(checks)
        assigned.add(node.id)
    return plan


def _find_witnesses(candidate, edge_checks, assignment, relationships_by_pair):
    """
    Pick one relationship per edge joining the candidate to its assigned neighbors.

    The first qualifying relationship in input order is taken for each edge;
    alternatives are not enumerated.

    Returns:
        List of witnesses in edge order, or None if some edge has none.
    """
    witnesses = []
    for edge, neighbor_node_id in edge_checks:
        neighbor = assignment[neighbor_node_id]
        bucket = relationships_by_pair.get(pair_key(candidate.id, neighbor.id), ())
        for relationship in bucket:
            if relationship_matches_edge(relationship, edge, candidate.id, neighbor.id).matches:
                witnesses.append(relationship)
                break
        else:
            return None
    return witnesses


def iter_matching_entity_sets(
    nodes: Sequence[PatternNode],
    edges: Sequence[PatternEdge],
    entities: Sequence[Entity],
    relationships: Sequence[Relationship],
    budget: Optional[SearchBudget] = None,
    progress: Optional[SearchProgress] = None,
) -> Iterator[tuple[dict[str, Entity], tuple[Relationship, ...]]]:
    """
    Lazily enumerate every assignment of entities to pattern nodes.

    Nodes are assigned one at a time in label order. For each node the
    entities are tried in input order; an entity is rejected if it is already
    used in the assignment, fails the node's constraints, or cannot be joined
    to every already-assigned neighbor by a relationship satisfying the
    connecting pattern edge.

    Each recursion level receives its own copies of the assignment, the used
    ids and the witnesses, so yielded values are never modified afterwards.

    Args:
        nodes: Pattern nodes
        edges: Pattern edges
        entities: Entity snapshot, in candidate order
        relationships: Relationship snapshot, in witness order
        budget: Optional step/time limits
        progress: Optional per-call counter to report steps back to the caller

    Yields:
        ``(assignment, relationships)`` where assignment maps pattern node id
        to Entity and relationships holds the edge witnesses in discovery
        order.

    Raises:
        SearchBudgetExceeded: if a budget limit is exceeded.
    """
    if not nodes:
        return

    if progress is None:
        progress = SearchProgress(budget)
    sorted_nodes = sort_pattern_nodes(nodes)
    edge_plan = plan_edge_checks(sorted_nodes, edges)
    relationships_by_pair = index_relationships_by_pair(relationships)
    # Node constraints do not depend on the partial assignment
    candidates = [
        [entity for entity in entities if entity_matches_node(entity, node)]
        for node in sorted_nodes
    ]
    num_nodes = len(sorted_nodes)

    def extend(node_index, assignment, used_ids, matched):
        if node_index == num_nodes:
            yield assignment, matched
            return
        node_id = sorted_nodes[node_index].id
        for candidate in candidates[node_index]:
            progress.step()
            if candidate.id in used_ids:
                continue
            witnesses = _find_witnesses(
                candidate, edge_plan[node_index], assignment, relationships_by_pair
            )
            if witnesses is None:
                continue
            yield from extend(
                node_index + 1,
                {**assignment, node_id: candidate},
                used_ids | {candidate.id},
                matched + tuple(witnesses),
            )

    yield from extend(0, {}, frozenset(), ())


def find_matching_entity_sets(
    nodes: Sequence[PatternNode],
    edges: Sequence[PatternEdge],
    entities: Sequence[Entity],
    relationships: Sequence[Relationship],
    budget: Optional[SearchBudget] = None,
) -> list[tuple[dict[str, Entity], tuple[Relationship, ...]]]:
    """Enumerate all matches eagerly. See ``iter_matching_entity_sets``."""
    return list(iter_matching_entity_sets(nodes, edges, entities, relationships, budget))


def assemble_match(
    sorted_nodes: Sequence[PatternNode],
    assignment: dict[str, Entity],
    relationships: Sequence[Relationship],
) -> PatternMatch:
    """Shape a raw assignment into a PatternMatch ordered by node label."""
    return PatternMatch(
        entities=tuple(assignment[node.id] for node in sorted_nodes),
        relationships=tuple(relationships),
    )


def page_bounds(page_number: int, page_size: int) -> tuple[int, int]:
    """Slice bounds of a 1-indexed page."""
    start = (page_number - 1) * page_size
    return start, start + page_size


def paginate(matches: Sequence, page_number: int, page_size: int) -> list:
    """Return one 1-indexed page. Out-of-range pages are empty."""
    start, stop = page_bounds(page_number, page_size)
    return list(matches[start:stop])


def read_snapshot(
    repository: GraphRepository,
) -> tuple[Sequence[Entity], Sequence[Relationship]]:
    """Entities and relationships as one consistent pair.

    Repositories that can read both at once expose ``snapshot()``.
    """
    snapshot = getattr(repository, "snapshot", None)
    if snapshot is not None:
        return snapshot()
    return repository.list_entities(), repository.list_relationships()


def search_pattern(
    repository: GraphRepository,
    params: PatternSearchParams,
    budget: Optional[SearchBudget] = None,
) -> PatternSearchResponse:
    """
    Find every occurrence of a pattern and return one page of them.

    The full enumeration always runs so that ``total_count`` is exact, but
    only matches that fall on the requested page are assembled and kept.

    Args:
        repository: Source of the entity and relationship snapshots
        params: Pattern and page request; sort fields are ignored
        budget: Optional step/time limits

    Returns:
        PatternSearchResponse for the requested page.

    Raises:
        SearchBudgetExceeded: if a budget limit is exceeded.
    """
    pattern = params.pattern
    page_number = params.page_number
    page_size = params.page_size

    if not pattern.nodes:
        return PatternSearchResponse(
            matches=(), total_count=0, page_number=page_number, page_size=page_size
        )

    if params.sort_attribute is not None or params.sort_direction is not None:
        logger.debug(
            f"Ignoring sort parameters (attribute={params.sort_attribute}, "
            f"direction={params.sort_direction})"
        )

    entities, relationships = read_snapshot(repository)
    logger.debug(
        f"Searching pattern with {len(pattern.nodes)} nodes, {len(pattern.edges)} edges "
        f"against {len(entities):,} entities, {len(relationships):,} relationships"
    )

    sorted_nodes = sort_pattern_nodes(pattern.nodes)
    progress = SearchProgress(budget)
    found = iter_matching_entity_sets(
        pattern.nodes, pattern.edges, entities, relationships, progress=progress
    )

    start, stop = page_bounds(page_number, page_size)
    if start < 0 or stop < start:
        # Degenerate page request: fall back to plain slicing over everything
        everything = [assemble_match(sorted_nodes, a, r) for a, r in found]
        total_count = len(everything)
        page = paginate(everything, page_number, page_size)
    else:
        total_count = 0
        page = []
        for assignment, witnesses in found:
            if start <= total_count < stop:
                page.append(assemble_match(sorted_nodes, assignment, witnesses))
            total_count += 1

    logger.info(
        f"Found {total_count:,} matches in {progress.elapsed:.3f}s "
        f"({progress.steps:,} steps), returning {len(page)} on page {page_number}"
    )

    return PatternSearchResponse(
        matches=tuple(page),
        total_count=total_count,
        page_number=page_number,
        page_size=page_size,
    )


def get_predicates(repository: GraphRepository) -> list[str]:
    """Distinct relationship predicates, sorted for display in filter menus."""
    predicates = {r.predicate for r in repository.list_relationships()}
    return sorted(predicates, key=lambda p: (collation_key(p), p))
