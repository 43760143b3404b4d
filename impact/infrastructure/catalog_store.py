"""Track catalog persistence keyed by integer id."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from impact.core.models import NewTrack, TrackRecord
from impact.errors import DuplicatePath, NotFound

logger = logging.getLogger(__name__)

_SCHEMA_VERSION = 1
_COLUMNS = "id, path, title, artist, album"


class CatalogStore:
    """SQLite-backed store for track records.

    Ids come from ``AUTOINCREMENT`` so a deleted id is never handed out
    again, not even after the database is reopened.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.path)
        try:
            self._init_schema()
        except Exception:
            self._conn.close()
            raise

    def __enter__(self) -> CatalogStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _init_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_metadata (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tracks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                path TEXT NOT NULL UNIQUE CHECK(length(path) > 0),
                title TEXT NOT NULL DEFAULT '',
                artist TEXT NOT NULL DEFAULT '',
                album TEXT NOT NULL DEFAULT ''
            )
            """
        )
        self._ensure_schema_version()
        self._conn.commit()

    def _ensure_schema_version(self) -> None:
        version = self._get_metadata("schema_version")
        if version is None:
            self._set_metadata("schema_version", str(_SCHEMA_VERSION))
            return
        if int(version) > _SCHEMA_VERSION:
            raise ValueError(
                f"Catalog schema {version} > supported {_SCHEMA_VERSION}. "
                "Please upgrade impact."
            )

    def _get_metadata(self, key: str) -> Optional[str]:
        row = self._conn.execute(
            "SELECT value FROM schema_metadata WHERE key = ?",
            (key,),
        ).fetchone()
        return row[0] if row else None

    def _set_metadata(self, key: str, value: str) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO schema_metadata (key, value) VALUES (?, ?)",
            (key, value),
        )

    def close(self) -> None:
        self._conn.close()

    def add(self, track: NewTrack) -> int:
        """Insert a track and return its new id.

        Raises:
            DuplicatePath: a record with the same path is already stored
        """
        if self.find_by_path(track.path) is not None:
            raise DuplicatePath(track.path)
        try:
            cursor = self._conn.execute(
                "INSERT INTO tracks (path, title, artist, album) VALUES (?, ?, ?, ?)",
                (track.path, track.title or "", track.artist or "", track.album or ""),
            )
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            raise DuplicatePath(track.path) from exc
        self._conn.commit()
        track_id = int(cursor.lastrowid)
        logger.info("Cataloged %s as id %d", track.path, track_id)
        return track_id

    def remove(self, track_id: int) -> None:
        """Delete a record. Unknown ids are ignored."""
        cursor = self._conn.execute("DELETE FROM tracks WHERE id = ?", (track_id,))
        self._conn.commit()
        if cursor.rowcount:
            logger.info("Removed id %d from catalog", track_id)

    def list_all(self) -> list[TrackRecord]:
        """Snapshot of every record in insertion order."""
        rows = self._conn.execute(
            f"SELECT {_COLUMNS} FROM tracks ORDER BY id ASC"
        ).fetchall()
        return [_row_to_record(row) for row in rows]

    def get(self, track_id: int) -> TrackRecord:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM tracks WHERE id = ?",
            (track_id,),
        ).fetchone()
        if not row:
            raise NotFound(str(track_id), f"Unknown track id: {track_id}")
        return _row_to_record(row)

    def find_by_path(self, path: str) -> Optional[TrackRecord]:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM tracks WHERE path = ?",
            (path,),
        ).fetchone()
        return _row_to_record(row) if row else None


def _row_to_record(row: tuple) -> TrackRecord:
    return TrackRecord(
        id=row[0],
        path=row[1],
        title=row[2],
        artist=row[3],
        album=row[4],
    )
