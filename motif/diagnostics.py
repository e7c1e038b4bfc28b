"""Diagnostic tools for patterns that enumerate too many matches."""
from collections import Counter

import numpy as np

from motif.completeness import are_all_nodes_connected, connected_edges
from motif.graph import EntityGraph
from motif.matching import entity_matches_node
from motif.models import SearchPattern
from motif.search import sort_pattern_nodes


def candidate_counts(pattern: SearchPattern, graph: EntityGraph):
    """
    Count the entities satisfying each pattern node on its own.

    Returns:
        List of (PatternNode, count) in search order (sorted by label).
    """
    entities = graph.list_entities()
    return [
        (node, sum(1 for entity in entities if entity_matches_node(entity, node)))
        for node in sort_pattern_nodes(pattern.nodes)
    ]


def estimate_search_space(counts) -> dict:
    """
    Upper bound on the number of complete assignments, ignoring edges.

    Entities cannot repeat within a match, so the i-th node (0-based) can
    use at most ``count - i`` entities when all nodes share the same pool.
    The bound uses the per-node candidate count, reduced that way.

    Args:
        counts: Candidate counts per node in search order

    Returns:
        Dict with ``upper_bound`` (exact int) and ``log10_upper_bound``.
    """
    if len(counts) == 0:
        return {"upper_bound": 0, "log10_upper_bound": float("-inf")}
    counts = np.asarray(counts, dtype=np.int64)
    available = np.maximum(counts - np.arange(len(counts)), 0)
    if np.any(available == 0):
        return {"upper_bound": 0, "log10_upper_bound": float("-inf")}
    upper_bound = 1
    for n in available.tolist():
        upper_bound *= n
    return {
        "upper_bound": upper_bound,
        "log10_upper_bound": float(np.sum(np.log10(available))),
    }


def degree_stats(graph: EntityGraph, entity_ids) -> dict:
    """Mean, median and max relationship degree over some entities."""
    degrees = np.array([graph.degree(entity_id) for entity_id in entity_ids], dtype=np.int64)
    if len(degrees) == 0:
        return {"mean": 0.0, "median": 0.0, "max": 0}
    return {
        "mean": float(np.mean(degrees)),
        "median": float(np.median(degrees)),
        "max": int(np.max(degrees)),
    }


def diagnose_pattern(pattern: SearchPattern, graph: EntityGraph) -> dict:
    """
    Diagnose how large the search for a pattern can get.
    """
    print("=== PATTERN SEARCH DIAGNOSIS ===")
    print(f"Graph: {graph.num_entities:,} entities, {graph.num_relationships:,} relationships")
    print()

    # 1. Pattern shape
    print("1. PATTERN SHAPE")
    print(f"   Nodes: {len(pattern.nodes)}")
    print(f"   Edges: {len(pattern.edges)}")
    connected = are_all_nodes_connected(pattern.nodes, pattern.edges)
    if len(pattern.nodes) > 1 and not connected:
        print("   ⚠️  WARNING: pattern is disconnected, components multiply!")
    isolated = []
    if len(pattern.nodes) > 1:
        isolated = [
            node.label
            for node in pattern.nodes
            if not any(connected_edges(pattern.edges, node.id))
        ]
    for label in isolated:
        print(f"   ⚠️  Node '{label}' has no edges")
    print()

    # 2. Candidates per node
    print("2. CANDIDATES PER NODE (search order)")
    counts = candidate_counts(pattern, graph)
    for node, count in counts:
        type_desc = node.type or "any type"
        print(f"   {node.label} ({type_desc}): {count:,} candidates")
    print()

    # 3. Search space
    print("3. SEARCH SPACE (ignoring edges)")
    space = estimate_search_space([count for _, count in counts])
    if space["upper_bound"] == 0:
        print("   Some node has no candidates: no matches possible")
    else:
        print(f"   Upper bound: ~10^{space['log10_upper_bound']:.1f} assignments")
    print()

    # 4. Degree of candidates
    print("4. CANDIDATE DEGREES")
    entities = graph.list_entities()
    per_node_degrees = {}
    for node, _ in counts:
        ids = [e.id for e in entities if entity_matches_node(e, node)]
        stats = degree_stats(graph, ids)
        per_node_degrees[node.id] = stats
        print(
            f"   {node.label}: mean {stats['mean']:.1f}, "
            f"median {stats['median']:.1f}, max {stats['max']:,}"
        )
    print()

    # 5. Recommendations
    print("5. RECOMMENDATIONS")
    unfiltered = [
        node.label
        for node in pattern.nodes
        if node.type is None and not any(p.strip() for f in node.filters for p in f.patterns)
    ]
    if unfiltered:
        print(f"   ⚠️  Unconstrained nodes: {', '.join(unfiltered)}")
        print("      Add a type or attribute filter to narrow candidates")
    if space["log10_upper_bound"] > 6:
        print("   ⚠️  Large search space!")
        print("      Connect nodes with edges and restrict edge predicates")
    if not unfiltered and space["log10_upper_bound"] <= 6:
        print("   ✓ Pattern is well constrained")

    return {
        "connected": connected,
        "isolated_nodes": isolated,
        "candidate_counts": {node.id: count for node, count in counts},
        "upper_bound": space["upper_bound"],
        "log10_upper_bound": space["log10_upper_bound"],
        "degrees": per_node_degrees,
    }


def analyze_entity_types(graph: EntityGraph, top=10):
    """Most common entity types in the graph."""
    print("=== ENTITY TYPE ANALYSIS ===")
    type_counts = Counter(entity.type for entity in graph.list_entities())
    for entity_type, count in type_counts.most_common(top):
        print(f"  {entity_type}: {count:,}")
    print()
    return type_counts


def analyze_predicates(graph: EntityGraph, top=10):
    """Most common predicates in the graph."""
    print("=== PREDICATE ANALYSIS ===")
    stats = graph.get_predicate_stats()
    for predicate, count in stats[:top]:
        print(f"  {predicate}: {count:,}")
    print()
    return stats
