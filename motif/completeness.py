"""Readiness checks for a pattern before it is searched.

These mirror the checks the pattern builder runs before asking for a preview.
The search engine does not call them: a disconnected pattern is searched as
the cross product of its components.
"""

from typing import Optional, Sequence

from motif.models import PatternEdge, PatternNode

INCOMPLETE_DISCONNECTED = "Connect all nodes to see preview"
INCOMPLETE_NO_FILTER = "Add a filter to see preview"


def connected_edges(edges: Sequence[PatternEdge], node_id: str):
    """Find edges connected to a pattern node."""
    outgoing = []
    incoming = []
    for edge in edges:
        if node_id == edge.source_node_id:
            outgoing.append(edge.id)
        if node_id == edge.target_node_id:
            incoming.append(edge.id)
    return outgoing, incoming


def are_all_nodes_connected(nodes: Sequence[PatternNode], edges: Sequence[PatternEdge]) -> bool:
    """
    Check that the pattern forms a single connected component.

    Uses union-find over the node ids. Edge endpoints that are not pattern
    nodes still join components, as the builder does.

    Returns:
        False for an empty pattern, True for a single node.
    """
    if not nodes:
        return False
    if len(nodes) == 1:
        return True

    parent = {node.id: node.id for node in nodes}

    def find(node_id):
        parent.setdefault(node_id, node_id)
        root = node_id
        while parent[root] != root:
            root = parent[root]
        # Path compression
        while parent[node_id] != root:
            parent[node_id], node_id = root, parent[node_id]
        return root

    for edge in edges:
        parent[find(edge.source_node_id)] = find(edge.target_node_id)

    return len({find(node.id) for node in nodes}) == 1


def has_at_least_one_filter(nodes: Sequence[PatternNode]) -> bool:
    """True if some node has a type or a non-blank attribute pattern."""
    for node in nodes:
        if node.type is not None:
            return True
        for attribute_filter in node.filters:
            if any(pattern.strip() for pattern in attribute_filter.patterns):
                return True
    return False


def is_pattern_complete(nodes: Sequence[PatternNode], edges: Sequence[PatternEdge]) -> bool:
    """A pattern is ready when it is non-empty, connected and filtered."""
    if not nodes:
        return False
    return are_all_nodes_connected(nodes, edges) and has_at_least_one_filter(nodes)


def get_pattern_incomplete_reason(
    nodes: Sequence[PatternNode], edges: Sequence[PatternEdge]
) -> Optional[str]:
    """User-facing reason a pattern is not ready, or None.

    An empty pattern has no reason: there is nothing to explain yet.
    """
    if not nodes:
        return None
    if not are_all_nodes_connected(nodes, edges):
        return INCOMPLETE_DISCONNECTED
    if not has_at_least_one_filter(nodes):
        return INCOMPLETE_NO_FILTER
    return None
