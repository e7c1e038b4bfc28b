#!/usr/bin/env python3
"""
CLI tool to build an LMDB entity/relationship store from JSONL files.

Example:
    motif-build --entities data/entities.jsonl \
        --relationships data/relationships.jsonl --output data/store
"""

import argparse
import sys
import time
from pathlib import Path

from motif.lmdb_store import LMDBGraphStore
from motif.loader import iter_entities_jsonl, iter_relationships_jsonl


def main():
    parser = argparse.ArgumentParser(
        description="Build an LMDB store from entity and relationship JSONL files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic usage
  motif-build --entities entities.jsonl --relationships relationships.jsonl \\
      --output store

  # Smaller transactions for constrained machines
  motif-build --entities entities.jsonl --relationships relationships.jsonl \\
      --output store --commit-every 10000
        """,
    )

    parser.add_argument(
        "--entities", required=True, type=Path, help="Path to entities JSONL file"
    )

    parser.add_argument(
        "--relationships", required=True, type=Path, help="Path to relationships JSONL file"
    )

    parser.add_argument(
        "--output", "-o", required=True, type=Path, help="Output LMDB directory"
    )

    parser.add_argument(
        "--commit-every",
        type=int,
        default=50_000,
        help="Commit every N records (default: 50000)",
    )

    args = parser.parse_args()

    # Validate input files
    for path in (args.entities, args.relationships):
        if not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            sys.exit(1)

    print(f"Building store from {args.entities} and {args.relationships}")
    start_time = time.time()

    try:
        store = LMDBGraphStore.build(
            args.output,
            iter_entities_jsonl(args.entities),
            iter_relationships_jsonl(args.relationships),
            commit_every=args.commit_every,
        )
        num_entities, num_relationships = store.count()
        store.close()
    except Exception as e:
        print(f"Error building store: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\n✓ Store built in {time.time() - start_time:.1f} seconds")
    print(f"  Entities: {num_entities:,}")
    print(f"  Relationships: {num_relationships:,}")


if __name__ == "__main__":
    main()
