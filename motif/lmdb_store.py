"""LMDB-backed read-only entity/relationship repository.

Entities and relationships live in two named LMDB databases as msgpack blobs
of their wire dicts. Keys are sequence numbers encoded as 4-byte big-endian
integers, so a cursor walk returns records in the order they were written,
which is the order the search depends on.

LMDB is a memory-mapped B-tree. Multiple worker processes share the same
physical memory pages via the OS.
"""

import logging
import shutil
import struct
from pathlib import Path
from typing import Iterable

import lmdb
import msgpack

from motif.models import Entity, Relationship

logger = logging.getLogger(__name__)

# 10 GB virtual address space (not allocated until used)
_DEFAULT_MAP_SIZE = 10 * 1024 * 1024 * 1024

_ENTITIES_DB = b"entities"
_RELATIONSHIPS_DB = b"relationships"


def _encode_key(seq: int) -> bytes:
    """Encode a sequence number as 4-byte big-endian for correct LMDB sort order."""
    return struct.pack(">I", seq)


class LMDBGraphStore:
    """Disk-backed ``GraphRepository``.

    Every ``list_*`` call reads inside its own read transaction; ``snapshot()``
    reads both record sets inside one.
    """

    def __init__(self, path, readonly=True):
        self._path = Path(path)
        self._env = lmdb.open(
            str(self._path),
            readonly=readonly,
            max_dbs=2,
            map_size=_DEFAULT_MAP_SIZE,
            readahead=False,
            lock=not readonly,  # No lock file needed for read-only
        )
        self._entities_db = self._env.open_db(_ENTITIES_DB, create=not readonly)
        self._relationships_db = self._env.open_db(_RELATIONSHIPS_DB, create=not readonly)

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def _read_all(txn, db, parse):
        return [
            parse(msgpack.unpackb(val, raw=False)) for _, val in txn.cursor(db=db)
        ]

    def list_entities(self) -> list[Entity]:
        with self._env.begin(buffers=True) as txn:
            return self._read_all(txn, self._entities_db, Entity.from_dict)

    def list_relationships(self) -> list[Relationship]:
        with self._env.begin(buffers=True) as txn:
            return self._read_all(txn, self._relationships_db, Relationship.from_dict)

    def snapshot(self) -> tuple[list[Entity], list[Relationship]]:
        """Entities and relationships read inside a single read transaction."""
        with self._env.begin(buffers=True) as txn:
            return (
                self._read_all(txn, self._entities_db, Entity.from_dict),
                self._read_all(txn, self._relationships_db, Relationship.from_dict),
            )

    def count(self) -> tuple[int, int]:
        """Number of stored (entities, relationships)."""
        with self._env.begin() as txn:
            return (
                txn.stat(self._entities_db)["entries"],
                txn.stat(self._relationships_db)["entries"],
            )

    def close(self):
        """Close the LMDB environment."""
        if getattr(self, "_env", None) is not None:
            self._env.close()
            self._env = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __del__(self):
        self.close()

    @staticmethod
    def build(
        db_path,
        entities: Iterable[Entity],
        relationships: Iterable[Relationship],
        commit_every=50_000,
    ) -> "LMDBGraphStore":
        """Write a store from entity and relationship streams.

        Any existing directory at ``db_path`` is replaced.

        Args:
            db_path: Path for the LMDB directory.
            entities: Entities in candidate order.
            relationships: Relationships in witness order.
            commit_every: Commit transaction every N records to limit memory.

        Returns:
            LMDBGraphStore opened in read-only mode.
        """
        db_path = Path(db_path)
        if db_path.exists():
            shutil.rmtree(db_path)
        db_path.mkdir(parents=True, exist_ok=True)

        env = lmdb.open(
            str(db_path),
            map_size=_DEFAULT_MAP_SIZE,
            readonly=False,
            max_dbs=2,
            readahead=False,
        )
        try:
            entities_db = env.open_db(_ENTITIES_DB)
            relationships_db = env.open_db(_RELATIONSHIPS_DB)
            num_entities = _write_records(env, entities_db, entities, commit_every)
            num_relationships = _write_records(
                env, relationships_db, relationships, commit_every
            )
        finally:
            env.close()

        logger.info(
            f"LMDB: wrote {num_entities:,} entities and {num_relationships:,} "
            f"relationships to {db_path}"
        )
        return LMDBGraphStore(db_path, readonly=True)


def _write_records(env, db, records, commit_every) -> int:
    """Write records under sequential keys, committing in batches."""
    txn = env.begin(write=True, db=db)
    count = 0
    try:
        for record in records:
            txn.put(_encode_key(count), msgpack.packb(record.to_dict(), use_bin_type=True))
            count += 1
            if count % commit_every == 0:
                txn.commit()
                if count % 1_000_000 == 0:
                    logger.info(f"    LMDB: wrote {count:,} records...")
                txn = env.begin(write=True, db=db)
        txn.commit()
    except BaseException:
        txn.abort()
        raise
    return count


def is_lmdb_store(path) -> bool:
    """True if ``path`` is a directory holding an LMDB environment."""
    path = Path(path)
    return path.is_dir() and (path / "data.mdb").exists()
