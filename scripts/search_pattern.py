#!/usr/bin/env python3
"""
CLI tool to search a pattern in an entity/relationship graph.

Example:
    motif-search --data data/store --pattern pattern.json --page-size 20
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

from motif import PatternSearchParams, SearchBudget, SearchBudgetExceeded, search_pattern
from motif.server import load_repository


def main():
    parser = argparse.ArgumentParser(
        description="Search a pattern in an entity/relationship graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Pattern files hold either a bare pattern ({"nodes": [...], "edges": [...]})
or a full search request ({"pattern": {...}, "pageSize": 50, "pageNumber": 1}).

Examples:
  # First page from a JSONL directory
  motif-search --data data/ --pattern pattern.json

  # Third page of 20 from an LMDB store, with a step budget
  motif-search --data store/ --pattern pattern.json \\
      --page-size 20 --page 3 --max-steps 1000000

  # Save results
  motif-search --data store/ --pattern pattern.json --output results.json
        """,
    )

    parser.add_argument(
        "--data", "-d", required=True, type=Path,
        help="LMDB store or directory with entities.jsonl and relationships.jsonl",
    )

    parser.add_argument(
        "--format", default="auto", choices=["auto", "jsonl", "lmdb"],
        help="Data format (default: auto)",
    )

    parser.add_argument(
        "--pattern", "-p", required=True, type=Path, help="Pattern JSON file"
    )

    parser.add_argument("--page-size", type=int, default=50, help="Matches per page")

    parser.add_argument("--page", type=int, default=1, help="Page number (1-indexed)")

    parser.add_argument("--max-steps", type=int, help="Abort after N search steps")

    parser.add_argument("--max-seconds", type=float, help="Abort after N seconds")

    parser.add_argument(
        "--output", "-o", type=Path, help="Output JSON file for results"
    )

    parser.add_argument(
        "--quiet", "-q", action="store_true", help="Suppress progress output"
    )

    args = parser.parse_args()

    if args.page_size < 1 or args.page < 1:
        print("Error: --page-size and --page must be >= 1", file=sys.stderr)
        sys.exit(1)

    if not args.pattern.exists():
        print(f"Error: Pattern file not found: {args.pattern}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    try:
        with open(args.pattern, "r", encoding="utf-8") as f:
            request = json.load(f)
        if "pattern" not in request:
            request = {"pattern": request}
        request["pageSize"] = args.page_size
        request["pageNumber"] = args.page
        params = PatternSearchParams.from_dict(request)
    except ValueError as e:
        print(f"Error reading pattern: {e}", file=sys.stderr)
        sys.exit(1)

    if not args.quiet:
        print(f"Loading data from {args.data}")

    try:
        repository = load_repository(str(args.data), args.format)
    except Exception as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        sys.exit(1)

    start_time = time.time()
    try:
        response = search_pattern(
            repository,
            params,
            budget=SearchBudget(max_steps=args.max_steps, max_seconds=args.max_seconds),
        )
    except SearchBudgetExceeded as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    elapsed = time.time() - start_time

    if not args.quiet:
        print(f"\n✓ Found {response.total_count:,} matches in {elapsed:.1f} seconds")

    output_data = response.to_dict()
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, "w") as f:
            json.dump(output_data, f, indent=2)
        if not args.quiet:
            print(f"Results saved to {args.output}")
    else:
        for i, match in enumerate(response.matches, 1):
            labels = " | ".join(e.label_normalized for e in match.entities)
            preds = ", ".join(r.predicate for r in match.relationships)
            print(f"{i}. {labels}" + (f"  [{preds}]" if preds else ""))


if __name__ == "__main__":
    main()
