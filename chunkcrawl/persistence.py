"""
SQLite-backed chunk store

Every visited chunk is kept as one JSON record under the key
prefix:seed:cx:cy. Only plain data survives a round trip; callers
load-or-generate and repair what serialization drops (see quests.py).
A refused write is logged and reported as False so the caller carries on
with the in-memory chunk.
"""
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from chunkcrawl.constants import STORE_PREFIX
from chunkcrawl.errors import PersistenceReadCorrupt, PersistenceWriteFailure
from chunkcrawl.world import Chunk

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS chunks (
    key     TEXT    PRIMARY KEY,
    seed    INTEGER NOT NULL,
    value   TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_chunks_seed ON chunks(seed);
"""


class ChunkStore:
    """Key/value store of serialized chunks"""

    def __init__(self, db_path: str = ":memory:", prefix: str = STORE_PREFIX) -> None:
        """
        Open (and create if needed) a chunk store

        Args:
            db_path: Path to the SQLite database file, ":memory:" for a throwaway store
            prefix: Namespace of the keys; stores with different prefixes can
                share one database file
        """
        self._db_path = db_path
        self.prefix = prefix
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path)
        self._conn.executescript(_SCHEMA)
        self._conn.commit()
        logger.debug("Chunk store opened: %s", db_path)

    def close(self) -> None:
        self._conn.close()

    def chunk_key(self, seed: int, cx: int, cy: int) -> str:
        return f"{self.prefix}:{seed}:{cx}:{cy}"

    def save(self, seed: int, cx: int, cy: int, chunk: Chunk) -> bool:
        """
        Serialize and store a chunk

        Args:
            seed: World seed
            cx: Chunk x-coordinate the record is filed under
            cy: Chunk y-coordinate the record is filed under
            chunk: Chunk to store

        Returns:
            False if the chunk could not be encoded or the write was refused
        """
        return self._save(self.chunk_key(seed, cx, cy), seed, lambda: self._encode(chunk))

    def save_raw(self, seed: int, cx: int, cy: int, record: Dict[str, Any]) -> bool:
        """Store an already plain-data chunk record (last writer wins)"""
        return self._save(self.chunk_key(seed, cx, cy), seed, lambda: record)

    def _save(self, key: str, seed: int, build: Callable[[], Dict[str, Any]]) -> bool:
        try:
            self._write(key, seed, build())
        except PersistenceWriteFailure as exc:
            logger.warning("Chunk %s not saved: %s", key, exc)
            return False
        return True

    @staticmethod
    def _encode(chunk: Chunk) -> Dict[str, Any]:
        try:
            return chunk.to_dict()
        except (AttributeError, TypeError, ValueError) as exc:
            raise PersistenceWriteFailure(f"chunk is not plain data: {exc!r}") from exc

    def _write(self, key: str, seed: int, record: Dict[str, Any]) -> None:
        try:
            value = json.dumps(record, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceWriteFailure(f"unserializable record: {exc}") from exc
        try:
            self._conn.execute(
                "INSERT OR REPLACE INTO chunks (key, seed, value) VALUES (?, ?, ?)",
                (key, seed, value),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceWriteFailure(str(exc)) from exc

    def clear(self, seed: int) -> int:
        """Delete every chunk of one world. Returns the number removed."""
        namespace = f"{self.prefix}:{seed}:"
        try:
            cur = self._conn.execute(
                "DELETE FROM chunks WHERE seed = ? AND substr(key, 1, ?) = ?",
                (seed, len(namespace), namespace),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Could not clear world %s: %s", seed, exc)
            return 0
        logger.info("Cleared %d chunks of world %s", cur.rowcount, seed)
        return cur.rowcount

    def load_raw(self, seed: int, cx: int, cy: int) -> Optional[Dict[str, Any]]:
        """Return the decoded JSON record of a chunk, or None if absent or corrupt."""
        key = self.chunk_key(seed, cx, cy)
        try:
            row = self._conn.execute("SELECT value FROM chunks WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Chunk %s could not be read: %s", key, exc)
            return None
        if row is None:
            return None
        try:
            record = json.loads(row[0])
        except ValueError:
            logger.warning("Chunk %s holds invalid JSON; ignoring it", key)
            return None
        if not isinstance(record, dict):
            logger.warning("Chunk %s is not an object; ignoring it", key)
            return None
        return record

    def load(self, seed: int, cx: int, cy: int) -> Optional[Chunk]:
        """Return the stored chunk, or None when absent or undecodable."""
        record = self.load_raw(seed, cx, cy)
        if record is None:
            return None
        try:
            return self._decode(record)
        except PersistenceReadCorrupt as exc:
            logger.warning("Chunk %s is corrupt, it will be regenerated: %s",
                           self.chunk_key(seed, cx, cy), exc)
            return None

    @staticmethod
    def _decode(record: Dict[str, Any]) -> Chunk:
        try:
            return Chunk.from_dict(record)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise PersistenceReadCorrupt(repr(exc)) from exc

    def has(self, seed: int, cx: int, cy: int) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM chunks WHERE key = ?", (self.chunk_key(seed, cx, cy),)
        ).fetchone()
        return row is not None

    def coordinates(self, seed: int) -> List[Tuple[int, int]]:
        """Coordinates of every stored chunk of one world, sorted."""
        namespace = f"{self.prefix}:{seed}:"
        rows = self._conn.execute(
            "SELECT key FROM chunks WHERE seed = ? AND substr(key, 1, ?) = ?",
            (seed, len(namespace), namespace),
        ).fetchall()
        coords = []
        for (key,) in rows:
            cx, cy = key[len(namespace):].split(":")
            coords.append((int(cx), int(cy)))
        return sorted(coords)
