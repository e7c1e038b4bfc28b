"""Pytest fixtures shared across all test modules."""

import os

import pytest

from motif.loader import build_graph_from_jsonl


FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
ENTITIES_FILE = os.path.join(FIXTURES_DIR, "entities.jsonl")
RELATIONSHIPS_FILE = os.path.join(FIXTURES_DIR, "relationships.jsonl")


@pytest.fixture(scope="session")
def graph():
    """Build the fixture graph once for the entire test run.

    The graph is immutable, so sharing it across tests is safe.
    """
    return build_graph_from_jsonl(ENTITIES_FILE, RELATIONSHIPS_FILE)
