#!/usr/bin/env python3
"""
CLI tool to diagnose search-space explosion for a pattern.

Example:
    motif-diagnose --data data/ --pattern pattern.json
"""

import argparse
import json
import sys
from pathlib import Path

from motif import (
    EntityGraph,
    SearchPattern,
    analyze_entity_types,
    analyze_predicates,
    diagnose_pattern,
)
from motif.server import load_repository


def main():
    parser = argparse.ArgumentParser(
        description="Diagnose search-space explosion for a pattern",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full diagnosis
  motif-diagnose --data data/ --pattern pattern.json

  # Just the pattern analysis
  motif-diagnose --data data/ --pattern pattern.json \\
      --skip-entity-types --skip-predicates
        """,
    )

    parser.add_argument(
        "--data", "-d", required=True, type=Path,
        help="LMDB store or directory with entities.jsonl and relationships.jsonl",
    )

    parser.add_argument(
        "--pattern", "-p", required=True, type=Path, help="Pattern JSON file"
    )

    parser.add_argument(
        "--skip-entity-types", action="store_true", help="Skip entity type analysis"
    )

    parser.add_argument(
        "--skip-predicates", action="store_true", help="Skip predicate analysis"
    )

    args = parser.parse_args()

    if not args.pattern.exists():
        print(f"Error: Pattern file not found: {args.pattern}", file=sys.stderr)
        sys.exit(1)

    print(f"Loading data from {args.data}\n")

    try:
        with open(args.pattern, "r", encoding="utf-8") as f:
            data = json.load(f)
        pattern = SearchPattern.from_dict(data.get("pattern", data))
        repository = load_repository(str(args.data))
        graph = EntityGraph(repository.list_entities(), repository.list_relationships())
    except Exception as e:
        print(f"Error loading inputs: {e}", file=sys.stderr)
        sys.exit(1)

    results = diagnose_pattern(pattern, graph)

    if not args.skip_entity_types:
        print()
        analyze_entity_types(graph)

    if not args.skip_predicates:
        print()
        analyze_predicates(graph)

    # Summary recommendations
    print("\n" + "=" * 70)
    print("SUMMARY")
    print("=" * 70)

    log_bound = results["log10_upper_bound"]
    if log_bound > 9:
        print("⚠️  SEVERE search-space explosion possible!")
        print(f"   Up to ~10^{log_bound:.0f} assignments before edge pruning.")
        print()
        print("Recommended actions:")
        print("  1. Give every node a type")
        print("  2. Add attribute filters to the broadest nodes")
        print("  3. Restrict edge predicates")
    elif log_bound > 6:
        print("⚠️  Large search space")
        print("   The server's step budget may abort this search.")
    else:
        print("✓ Search space is small")

    print()


if __name__ == "__main__":
    main()
