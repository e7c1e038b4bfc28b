"""MOTIF HTTP API."""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from motif import (
    PatternSearchParams,
    SearchBudget,
    SearchBudgetExceeded,
    are_all_nodes_connected,
    build_graph_from_directory,
    get_predicates,
    search_pattern,
)
from motif.lmdb_store import LMDBGraphStore, is_lmdb_store

logger = logging.getLogger(__name__)

REPOSITORY = None

# Configuration via environment variables
DATA_PATH = os.environ.get("MOTIF_DATA_PATH", "data")
DATA_FORMAT = os.environ.get("MOTIF_DATA_FORMAT", "auto")  # "auto", "jsonl", or "lmdb"
MAX_STEPS = int(os.environ.get("MOTIF_MAX_STEPS", "1000000"))  # 0 disables
MAX_SECONDS = float(os.environ.get("MOTIF_MAX_SECONDS", "30"))  # 0 disables
LOG_LEVEL = os.environ.get("MOTIF_LOG_LEVEL", "INFO")

SORT_DIRECTIONS = ("asc", "desc")


def load_repository(path: str, format: str = "auto"):
    """
    Load the entity/relationship repository from disk.

    Args:
        path: LMDB directory, or directory with entities.jsonl and
            relationships.jsonl
        format: "auto" (detect from path), "jsonl", or "lmdb"

    Returns:
        A GraphRepository
    """
    path = Path(path)

    # Auto-detect format
    if format == "auto":
        if is_lmdb_store(path):
            format = "lmdb"
        elif path.is_dir():
            format = "jsonl"
        else:
            raise ValueError(f"Cannot auto-detect format for: {path}")

    if format == "lmdb":
        return LMDBGraphStore(path, readonly=True)
    elif format == "jsonl":
        return build_graph_from_directory(path)
    else:
        raise ValueError(f"Unknown format: {format}")


def search_budget() -> SearchBudget:
    """Build the per-request search budget from configuration."""
    return SearchBudget(
        max_steps=MAX_STEPS or None,
        max_seconds=MAX_SECONDS or None,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle repository loading on startup."""
    global REPOSITORY
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Loading repository from {DATA_PATH} (format={DATA_FORMAT})...")
    REPOSITORY = load_repository(DATA_PATH, DATA_FORMAT)
    logger.info("Server ready!")
    yield
    if isinstance(REPOSITORY, LMDBGraphStore):
        REPOSITORY.close()
    REPOSITORY = None


APP = FastAPI(
    title="MOTIF",
    description="Pattern search over entity/relationship graphs",
    lifespan=lifespan,
)

APP.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_repository():
    if REPOSITORY is None:
        raise HTTPException(503, "repository not loaded")
    return REPOSITORY


def _check_page_field(name: str, value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise HTTPException(400, f"{name} must be an integer >= 1")


@APP.post("/patterns/search")
def pattern_search(request: dict):
    """Search for pattern matches in the entity graph."""
    try:
        params = PatternSearchParams.from_dict(request)
    except ValueError as e:
        raise HTTPException(400, str(e))

    _check_page_field("pageSize", params.page_size)
    _check_page_field("pageNumber", params.page_number)
    if params.sort_direction is not None and params.sort_direction not in SORT_DIRECTIONS:
        raise HTTPException(400, "sortDirection must be 'asc' or 'desc'")

    nodes = params.pattern.nodes
    if len(nodes) > 1 and not are_all_nodes_connected(nodes, params.pattern.edges):
        logger.warning(
            f"Searching disconnected pattern ({len(nodes)} nodes, "
            f"{len(params.pattern.edges)} edges); matches are a cross product"
        )

    try:
        response = search_pattern(_get_repository(), params, budget=search_budget())
    except SearchBudgetExceeded as e:
        logger.warning(str(e))
        raise HTTPException(422, f"Pattern too complex: {e}")

    return response.to_dict()


@APP.get("/patterns/predicates")
def predicates():
    """Get available relationship predicates for the edge filter."""
    return get_predicates(_get_repository())
