"""
Motif - Pattern (subgraph) search in entity/relationship graphs
"""

__version__ = "0.1.0"

from motif.completeness import (
    are_all_nodes_connected,
    get_pattern_incomplete_reason,
    has_at_least_one_filter,
    is_pattern_complete,
)
from motif.diagnostics import (
    analyze_entity_types,
    analyze_predicates,
    diagnose_pattern,
)
from motif.graph import EntityGraph, GraphRepository
from motif.lmdb_store import LMDBGraphStore
from motif.loader import (
    build_graph_from_directory,
    build_graph_from_jsonl,
    load_entities_jsonl,
    load_relationships_jsonl,
)
from motif.matching import (
    Direction,
    EdgeCheck,
    entity_matches_node,
    get_attribute,
    matches,
    relationship_matches_edge,
)
from motif.models import (
    AttributeFilter,
    Entity,
    PatternEdge,
    PatternMatch,
    PatternNode,
    PatternSearchParams,
    PatternSearchResponse,
    Relationship,
    SearchPattern,
    WorkspaceData,
)
from motif.search import (
    MotifError,
    SearchBudget,
    SearchBudgetExceeded,
    assemble_match,
    find_matching_entity_sets,
    get_predicates,
    iter_matching_entity_sets,
    paginate,
    search_pattern,
)
from motif.validation import (
    ValidationError,
    ValidationResult,
    validate_match,
    validate_response,
)
from motif.workspace import merge_matches

__all__ = [
    # Models
    "Entity",
    "Relationship",
    "AttributeFilter",
    "PatternNode",
    "PatternEdge",
    "SearchPattern",
    "PatternSearchParams",
    "PatternMatch",
    "PatternSearchResponse",
    "WorkspaceData",
    # Repositories
    "GraphRepository",
    "EntityGraph",
    "LMDBGraphStore",
    # Loading
    "build_graph_from_jsonl",
    "build_graph_from_directory",
    "load_entities_jsonl",
    "load_relationships_jsonl",
    # Matching
    "matches",
    "get_attribute",
    "entity_matches_node",
    "relationship_matches_edge",
    "Direction",
    "EdgeCheck",
    # Search
    "search_pattern",
    "get_predicates",
    "find_matching_entity_sets",
    "iter_matching_entity_sets",
    "assemble_match",
    "paginate",
    "SearchBudget",
    "SearchBudgetExceeded",
    "MotifError",
    # Completeness
    "are_all_nodes_connected",
    "has_at_least_one_filter",
    "is_pattern_complete",
    "get_pattern_incomplete_reason",
    # Workspace
    "merge_matches",
    # Diagnostics
    "diagnose_pattern",
    "analyze_entity_types",
    "analyze_predicates",
    # Validation
    "ValidationError",
    "ValidationResult",
    "validate_match",
    "validate_response",
]
