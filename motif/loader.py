"""Load entities and relationships from JSONL files.

One JSON object per line, using the wire field names:

entities.jsonl::

    {"id": "o1", "labelNormalized": "Google", "type": "Organization"}

relationships.jsonl::

    {"relationshipId": "r1", "predicate": "manages",
     "sourceEntityId": "o1", "relatedEntityId": "o2"}

File order is preserved: it becomes the candidate order and witness order of
the search.
"""

import json
import logging
import time
from pathlib import Path
from typing import Callable, Iterator, TypeVar

from motif.graph import EntityGraph
from motif.models import Entity, Relationship

logger = logging.getLogger(__name__)

ENTITIES_FILENAME = "entities.jsonl"
RELATIONSHIPS_FILENAME = "relationships.jsonl"

T = TypeVar("T")


def _iter_jsonl(path, parse: Callable[[dict], T]) -> Iterator[T]:
    """Stream records from a JSONL file, skipping blank lines."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield parse(json.loads(line))
            except (json.JSONDecodeError, ValueError) as e:
                raise ValueError(f"{path}:{line_number}: {e}") from e


def iter_entities_jsonl(path) -> Iterator[Entity]:
    return _iter_jsonl(path, Entity.from_dict)


def iter_relationships_jsonl(path) -> Iterator[Relationship]:
    return _iter_jsonl(path, Relationship.from_dict)


def load_entities_jsonl(path) -> list[Entity]:
    """Read every entity from a JSONL file, in file order."""
    return list(iter_entities_jsonl(path))


def load_relationships_jsonl(path) -> list[Relationship]:
    """Read every relationship from a JSONL file, in file order."""
    return list(iter_relationships_jsonl(path))


def build_graph_from_jsonl(entity_jsonl_path, relationship_jsonl_path) -> EntityGraph:
    """Build an in-memory EntityGraph from entity and relationship JSONL files.

    Relationships that reference unknown entities are kept (they can never
    be matched) and reported as a warning.
    """
    t0 = time.perf_counter()
    entities = load_entities_jsonl(entity_jsonl_path)
    relationships = load_relationships_jsonl(relationship_jsonl_path)
    graph = EntityGraph(entities, relationships)

    dangling = graph.dangling_relationships()
    if dangling:
        logger.warning(
            f"{len(dangling):,} relationships reference unknown entities "
            f"(first: {dangling[0].relationship_id})"
        )
    logger.info(
        f"Loaded {graph.num_entities:,} entities and {graph.num_relationships:,} "
        f"relationships in {time.perf_counter() - t0:.2f}s"
    )
    return graph


def build_graph_from_directory(directory) -> EntityGraph:
    """Load ``entities.jsonl`` and ``relationships.jsonl`` from one directory."""
    directory = Path(directory)
    return build_graph_from_jsonl(
        directory / ENTITIES_FILENAME, directory / RELATIONSHIPS_FILENAME
    )
