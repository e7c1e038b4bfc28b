"""Unit tests for motif.search module, specifically the search_pattern function."""

import inspect
import math
from typing import Optional

import pytest

from motif.graph import EntityGraph
from motif.models import Entity, PatternNode, PatternSearchParams, Relationship
from motif.search import (
    SearchBudget,
    SearchBudgetExceeded,
    find_matching_entity_sets,
    get_predicates,
    iter_matching_entity_sets,
    paginate,
    read_snapshot,
    search_pattern,
    sort_pattern_nodes,
)


def _search(graph, pattern, page_size=50, page_number=1, **extra):
    params = PatternSearchParams.from_dict(
        {"pattern": pattern, "pageSize": page_size, "pageNumber": page_number, **extra}
    )
    return search_pattern(graph, params)


def _node(node_id, label, type=None, **filters):
    return {
        "id": node_id,
        "label": label,
        "type": type,
        "filters": [
            {"attribute": attribute, "patterns": patterns}
            for attribute, patterns in filters.items()
        ],
        "position": {"x": 0, "y": 0},
    }


def _edge(edge_id, source, target, predicates=()):
    return {
        "id": edge_id,
        "sourceNodeId": source,
        "targetNodeId": target,
        "predicates": list(predicates),
    }


def _ids(match):
    return [e.id for e in match.entities]


def _rel_ids(match):
    return [r.relationship_id for r in match.relationships]


EMPLOYMENT = {
    "nodes": [
        _node("n1", "Company", "Organization"),
        _node("n2", "Employee", "Person"),
    ],
    "edges": [_edge("e1", "n1", "n2", ["works_for"])],
}


class TestDocumentedScenarios:
    """Concrete scenarios from the engine's contract."""

    def test_single_node_by_type_and_label(self):
        """One organization named Google, no edges: exactly that entity."""
        o1 = Entity(id="o1", label_normalized="Google", type="Organization")
        graph = EntityGraph([o1], [])
        pattern = {
            "nodes": [_node("n1", "Node A", "Organization", labelNormalized=["Google"])],
            "edges": [],
        }

        response = _search(graph, pattern, page_size=10)

        assert response.total_count == 1
        assert list(response.matches[0].entities) == [o1]
        assert response.matches[0].relationships == ()

    def test_two_connected_nodes_with_predicate(self):
        """Two organizations joined by 'manages' produce one match."""
        o1 = Entity(id="o1", label_normalized="Google", type="Organization")
        o2 = Entity(id="o2", label_normalized="Google Cloud", type="Organization")
        r1 = Relationship(
            relationship_id="r1", predicate="manages",
            source_entity_id="o1", related_entity_id="o2",
        )
        graph = EntityGraph([o1, o2], [r1])
        pattern = {
            "nodes": [
                _node("n1", "Node A", "Organization", labelNormalized=["^Google$"]),
                _node("n2", "Node B", "Organization", labelNormalized=["Cloud"]),
            ],
            "edges": [_edge("e1", "n1", "n2", ["manages"])],
        }

        response = _search(graph, pattern, page_size=10)

        assert response.total_count == 1
        match = response.matches[0]
        assert len(match.entities) == 2
        assert list(match.relationships) == [r1]

    def test_pages_are_disjoint(self, graph):
        """Pages 1 and 2 of a 12-match pattern hold different entities."""
        pattern = {"nodes": [_node("n1", "Node A", "Person")], "edges": []}

        page1 = _search(graph, pattern, page_size=5, page_number=1)
        page2 = _search(graph, pattern, page_size=5, page_number=2)

        assert page1.total_count == page2.total_count == 12
        assert len(page1.matches) == 5
        assert len(page2.matches) == 5
        page1_ids = {m.entities[0].id for m in page1.matches}
        page2_ids = {m.entities[0].id for m in page2.matches}
        assert page1_ids.isdisjoint(page2_ids)


class TestSearchPattern:
    """Tests for search_pattern against the fixture graph."""

    def test_empty_pattern(self, graph):
        response = _search(graph, {"nodes": [], "edges": []}, page_size=10, page_number=3)

        assert response.matches == ()
        assert response.total_count == 0
        assert response.page_number == 3
        assert response.page_size == 10

    def test_single_node_respects_type(self, graph):
        response = _search(graph, {"nodes": [_node("n1", "A", "Organization")], "edges": []})

        assert response.total_count == 4
        assert all(m.entities[0].type == "Organization" for m in response.matches)

    def test_candidates_follow_entity_input_order(self, graph):
        response = _search(graph, {"nodes": [_node("n1", "A", "Organization")], "edges": []})

        assert [_ids(m)[0] for m in response.matches] == ["o1", "o2", "o3", "o4"]

    def test_regex_filter(self, graph):
        pattern = {
            "nodes": [_node("n1", "A", "Organization", labelNormalized=["cloud$"])],
            "edges": [],
        }
        response = _search(graph, pattern)

        assert [_ids(m)[0] for m in response.matches] == ["o2", "o4"]

    def test_one_hop_with_predicate(self, graph):
        """Every (organization, employee) pair joined by works_for."""
        response = _search(graph, EMPLOYMENT)

        assert response.total_count == 5
        assert [_ids(m) for m in response.matches] == [
            ["o1", "p1"],
            ["o1", "p2"],
            ["o2", "p5"],
            ["o3", "p3"],
            ["o3", "p4"],
        ]
        for match in response.matches:
            assert [r.predicate for r in match.relationships] == ["works_for"]

    def test_relationships_are_undirected(self, graph):
        """works_for runs person -> organization, but the edge is drawn the other way."""
        response = _search(graph, EMPLOYMENT)
        first = response.matches[0]

        assert first.relationships[0].source_entity_id == "p1"
        assert first.relationships[0].related_entity_id == "o1"

    def test_dangling_relationship_never_matches(self, graph):
        response = _search(graph, EMPLOYMENT)

        assert "r13" not in {r.relationship_id for m in response.matches for r in m.relationships}

    def test_no_matching_predicate(self, graph):
        pattern = {
            "nodes": EMPLOYMENT["nodes"],
            "edges": [_edge("e1", "n1", "n2", ["founded"])],
        }
        response = _search(graph, pattern)

        assert response.total_count == 0
        assert response.matches == ()

    def test_entities_ordered_by_node_label(self, graph):
        """Output order follows node labels, not the order nodes were given in."""
        pattern = {
            "nodes": [
                _node("n1", "Zeta", "Person", labelNormalized=["^Alice"]),
                _node("n2", "Alpha", "Organization"),
            ],
            "edges": [_edge("e1", "n1", "n2", ["works_for"])],
        }
        response = _search(graph, pattern)

        assert response.total_count == 1
        assert _ids(response.matches[0]) == ["o1", "p1"]

    def test_node_labels_ordered_ignoring_case(self):
        """Labels compare without regard to case: 'node a' before 'Node B'."""
        graph = EntityGraph(
            [
                Entity(id="b", label_normalized="Beta", type="U"),
                Entity(id="a", label_normalized="Alpha", type="T"),
            ],
            [],
        )
        pattern = {
            "nodes": [_node("n2", "Node B", "U"), _node("n1", "node a", "T")],
            "edges": [],
        }
        response = _search(graph, pattern)

        assert response.total_count == 1
        assert _ids(response.matches[0]) == ["a", "b"]

    def test_sort_pattern_nodes(self):
        nodes = [
            PatternNode(id="n1", label="b"),
            PatternNode(id="n2", label="A"),
            PatternNode(id="n3", label="a"),
            PatternNode(id="n4", label="b"),
        ]

        assert [n.id for n in sort_pattern_nodes(nodes)] == ["n3", "n2", "n1", "n4"]

    def test_first_relationship_wins(self, graph):
        """p1 and p2 are joined by r5 (knows) then r6 (manages); only the first is kept."""
        pattern = {
            "nodes": [
                _node("n1", "A", "Person", labelNormalized=["^Alice"]),
                _node("n2", "B", "Person", labelNormalized=["^Bob"]),
            ],
            "edges": [_edge("e1", "n1", "n2")],
        }
        response = _search(graph, pattern)

        assert response.total_count == 1
        assert _rel_ids(response.matches[0]) == ["r5"]

    def test_predicate_filter_selects_later_relationship(self, graph):
        pattern = {
            "nodes": [
                _node("n1", "A", "Person", labelNormalized=["^Alice"]),
                _node("n2", "B", "Person", labelNormalized=["^Bob"]),
            ],
            "edges": [_edge("e1", "n1", "n2", ["manages"])],
        }
        response = _search(graph, pattern)

        assert _rel_ids(response.matches[0]) == ["r6"]

    def test_triangle(self, graph):
        """Two colleagues who know each other and work for the same organization."""
        pattern = {
            "nodes": [
                _node("a", "A", "Person"),
                _node("b", "B", "Person"),
                _node("c", "C", "Organization"),
            ],
            "edges": [
                _edge("ab", "a", "b"),
                _edge("ac", "a", "c", ["works_for"]),
                _edge("bc", "b", "c", ["works_for"]),
            ],
        }
        response = _search(graph, pattern)

        assert response.total_count == 2
        assert [_ids(m) for m in response.matches] == [["p1", "p2", "o1"], ["p2", "p1", "o1"]]
        assert _rel_ids(response.matches[0]) == ["r5", "r2", "r3"]
        assert _rel_ids(response.matches[1]) == ["r5", "r3", "r2"]

    def test_disconnected_pattern_is_cross_product(self, graph):
        pattern = {
            "nodes": [_node("n1", "A", "Organization"), _node("n2", "B", "Location")],
            "edges": [],
        }
        response = _search(graph, pattern)

        assert response.total_count == 4
        assert [_ids(m) for m in response.matches] == [
            ["o1", "l1"], ["o2", "l1"], ["o3", "l1"], ["o4", "l1"],
        ]

    def test_no_entity_repeats_within_match(self, graph):
        pattern = {
            "nodes": [_node("n1", "A", "Organization"), _node("n2", "B", "Organization")],
            "edges": [_edge("e1", "n1", "n2")],
        }
        response = _search(graph, pattern)

        # o1-o2 (manages), o3-o1 (partners_with), o3-o4 (owns), each both ways
        assert response.total_count == 6
        for match in response.matches:
            ids = _ids(match)
            assert len(ids) == 2
            assert len(set(ids)) == 2

    def test_sort_parameters_are_ignored(self, graph):
        plain = _search(graph, EMPLOYMENT)
        sorted_desc = _search(
            graph, EMPLOYMENT, sortAttribute="labelNormalized", sortDirection="desc"
        )

        assert sorted_desc.matches == plain.matches

    def test_deterministic(self, graph):
        first = _search(graph, EMPLOYMENT, page_size=2, page_number=2)
        second = _search(graph, EMPLOYMENT, page_size=2, page_number=2)

        assert first.to_dict() == second.to_dict()


class TestPagination:
    """Tests for paging over the full match list."""

    PEOPLE = {"nodes": [_node("n1", "A", "Person")], "edges": []}

    def test_pages_concatenate_to_full_list(self, graph):
        full = _search(graph, self.PEOPLE, page_size=100)
        page_size = 5
        pages = []
        for page_number in range(1, math.ceil(full.total_count / page_size) + 1):
            pages.extend(_search(graph, self.PEOPLE, page_size, page_number).matches)

        assert pages == list(full.matches)

    def test_last_page_is_partial(self, graph):
        response = _search(graph, self.PEOPLE, page_size=5, page_number=3)

        assert [_ids(m)[0] for m in response.matches] == ["p11", "p12"]

    def test_out_of_range_page_is_empty(self, graph):
        response = _search(graph, self.PEOPLE, page_size=5, page_number=10)

        assert response.matches == ()
        assert response.total_count == 12

    def test_paginate_slices(self):
        items = list(range(12))
        assert paginate(items, 1, 5) == [0, 1, 2, 3, 4]
        assert paginate(items, 3, 5) == [10, 11]
        assert paginate(items, 4, 5) == []


class TestFindMatchingEntitySets:
    """Tests for the raw backtracking engine."""

    def test_empty_nodes(self, graph):
        assert find_matching_entity_sets(
            [], [], graph.list_entities(), graph.list_relationships()
        ) == []

    def test_assignments_are_independent(self, graph):
        params = PatternSearchParams.from_dict({"pattern": EMPLOYMENT, "pageSize": 1, "pageNumber": 1})
        pattern = params.pattern
        results = find_matching_entity_sets(
            pattern.nodes, pattern.edges, graph.list_entities(), graph.list_relationships()
        )

        assert len(results) == 5
        first_assignment, _ = results[0]
        first_assignment["n2"] = None
        assert results[1][0]["n1"].id == "o1"
        assert results[1][0]["n2"].id == "p2"

    def test_is_lazy(self, graph):
        params = PatternSearchParams.from_dict({"pattern": EMPLOYMENT, "pageSize": 1, "pageNumber": 1})
        pattern = params.pattern
        found = iter_matching_entity_sets(
            pattern.nodes, pattern.edges, graph.list_entities(), graph.list_relationships()
        )

        assignment, relationships = next(found)
        assert assignment["n1"].id == "o1"
        assert [r.relationship_id for r in relationships] == ["r2"]


class TestSearchBudget:
    """Tests for fail-closed search limits."""

    def test_step_budget_exceeded(self, graph):
        params = PatternSearchParams.from_dict(
            {"pattern": TestPagination.PEOPLE, "pageSize": 5, "pageNumber": 1}
        )
        with pytest.raises(SearchBudgetExceeded) as exc_info:
            search_pattern(graph, params, budget=SearchBudget(max_steps=3))

        assert exc_info.value.steps == 4
        assert "step budget" in str(exc_info.value)

    def test_generous_budget_is_transparent(self, graph):
        params = PatternSearchParams.from_dict(
            {"pattern": TestPagination.PEOPLE, "pageSize": 5, "pageNumber": 1}
        )
        response = search_pattern(
            graph, params, budget=SearchBudget(max_steps=1000, max_seconds=60)
        )

        assert response.total_count == 12

    def test_time_budget_exceeded(self, graph):
        params = PatternSearchParams.from_dict(
            {"pattern": TestPagination.PEOPLE, "pageSize": 5, "pageNumber": 1}
        )
        with pytest.raises(SearchBudgetExceeded, match="time budget"):
            search_pattern(graph, params, budget=SearchBudget(max_seconds=-1))

    def test_exception_carries_limits(self):
        error = SearchBudgetExceeded(11, 0.5, max_steps=10, max_seconds=2.5)

        assert (error.steps, error.max_steps, error.max_seconds) == (11, 10, 2.5)
        assert "step budget of 10 exceeded" in str(error)
        parameters = inspect.signature(SearchBudgetExceeded.__init__).parameters
        assert parameters["max_steps"].annotation == Optional[int]
        assert parameters["max_seconds"].annotation == Optional[float]


class TestGetPredicates:
    """Tests for the predicate catalog."""

    def test_distinct_and_sorted(self, graph):
        assert get_predicates(graph) == [
            "knows",
            "located_in",
            "manages",
            "owns",
            "partners_with",
            "works_for",
        ]

    def test_empty_graph(self):
        assert get_predicates(EntityGraph([], [])) == []

    def test_mixed_case_sorted_ignoring_case(self):
        relationships = [
            Relationship("r1", "Manages", "a", "b"),
            Relationship("r2", "employs", "a", "b"),
            Relationship("r3", "manages", "b", "a"),
            Relationship("r4", "Manages", "b", "a"),
        ]
        graph = EntityGraph([], relationships)

        assert get_predicates(graph) == ["employs", "manages", "Manages"]


class _SnapshotOnlyRepository:
    """Repository whose per-list reads must not be used."""

    def __init__(self, graph):
        self.graph = graph
        self.snapshots = 0

    def list_entities(self):
        raise AssertionError("list_entities called")

    def list_relationships(self):
        raise AssertionError("list_relationships called")

    def snapshot(self):
        self.snapshots += 1
        return self.graph.list_entities(), self.graph.list_relationships()


class TestReadSnapshot:
    """Entities and relationships are read as one pair when possible."""

    def test_plain_repository(self, graph):
        entities, relationships = read_snapshot(graph)
        assert entities is graph.list_entities()
        assert relationships is graph.list_relationships()

    def test_search_prefers_snapshot(self, graph):
        repository = _SnapshotOnlyRepository(graph)
        params = PatternSearchParams.from_dict(
            {"pattern": EMPLOYMENT, "pageSize": 10, "pageNumber": 1}
        )

        response = search_pattern(repository, params)

        assert repository.snapshots == 1
        assert response == search_pattern(graph, params)
