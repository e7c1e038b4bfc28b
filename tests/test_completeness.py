"""Unit tests for pattern readiness checks."""

from motif.completeness import (
    INCOMPLETE_DISCONNECTED,
    INCOMPLETE_NO_FILTER,
    are_all_nodes_connected,
    connected_edges,
    get_pattern_incomplete_reason,
    has_at_least_one_filter,
    is_pattern_complete,
)
from motif.models import AttributeFilter, PatternEdge, PatternNode


def _node(node_id, type=None, *patterns):
    filters = (AttributeFilter("labelNormalized", tuple(patterns)),) if patterns else ()
    return PatternNode(id=node_id, label=node_id.upper(), type=type, filters=filters)


def _edge(edge_id, source, target):
    return PatternEdge(id=edge_id, source_node_id=source, target_node_id=target)


class TestAreAllNodesConnected:
    """Tests for the connectivity check."""

    def test_empty_pattern(self):
        assert are_all_nodes_connected([], []) is False

    def test_single_node(self):
        assert are_all_nodes_connected([_node("a")], []) is True

    def test_two_nodes_without_edge(self):
        assert are_all_nodes_connected([_node("a"), _node("b")], []) is False

    def test_chain(self):
        nodes = [_node("a"), _node("b"), _node("c")]
        edges = [_edge("e1", "a", "b"), _edge("e2", "c", "b")]
        assert are_all_nodes_connected(nodes, edges) is True

    def test_two_components(self):
        nodes = [_node("a"), _node("b"), _node("c"), _node("d")]
        edges = [_edge("e1", "a", "b"), _edge("e2", "c", "d")]
        assert are_all_nodes_connected(nodes, edges) is False

    def test_joined_through_unknown_endpoint(self):
        nodes = [_node("a"), _node("b")]
        edges = [_edge("e1", "a", "ghost"), _edge("e2", "ghost", "b")]
        assert are_all_nodes_connected(nodes, edges) is True


class TestHasAtLeastOneFilter:
    """Tests for the filter presence check."""

    def test_type_counts(self):
        assert has_at_least_one_filter([_node("a"), _node("b", "Person")]) is True

    def test_non_blank_pattern_counts(self):
        assert has_at_least_one_filter([_node("a", None, "Google")]) is True

    def test_blank_patterns_do_not_count(self):
        assert has_at_least_one_filter([_node("a", None, "", "   ")]) is False

    def test_no_constraints(self):
        assert has_at_least_one_filter([_node("a"), _node("b")]) is False


class TestPatternReadiness:
    """Tests for is_pattern_complete and get_pattern_incomplete_reason."""

    def test_empty_pattern(self):
        assert is_pattern_complete([], []) is False
        assert get_pattern_incomplete_reason([], []) is None

    def test_disconnected(self):
        nodes = [_node("a", "Person"), _node("b", "Person")]
        assert is_pattern_complete(nodes, []) is False
        assert get_pattern_incomplete_reason(nodes, []) == INCOMPLETE_DISCONNECTED

    def test_disconnected_reported_before_missing_filter(self):
        nodes = [_node("a"), _node("b")]
        assert get_pattern_incomplete_reason(nodes, []) == INCOMPLETE_DISCONNECTED

    def test_no_filter(self):
        nodes = [_node("a"), _node("b")]
        edges = [_edge("e1", "a", "b")]
        assert is_pattern_complete(nodes, edges) is False
        assert get_pattern_incomplete_reason(nodes, edges) == INCOMPLETE_NO_FILTER

    def test_complete(self):
        nodes = [_node("a", "Organization"), _node("b")]
        edges = [_edge("e1", "a", "b")]
        assert is_pattern_complete(nodes, edges) is True
        assert get_pattern_incomplete_reason(nodes, edges) is None


class TestConnectedEdges:
    """Tests for connected_edges."""

    def test_outgoing_and_incoming(self):
        edges = [_edge("e1", "a", "b"), _edge("e2", "c", "a"), _edge("e3", "b", "c")]
        assert connected_edges(edges, "a") == (["e1"], ["e2"])
        assert connected_edges(edges, "d") == ([], [])
