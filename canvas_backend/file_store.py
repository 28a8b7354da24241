"""
JSON-file store: one file per entity kind, each a top-level JSON array.

Every mutation re-reads the whole collection, modifies it in memory and
rewrites the file. Collections here are small (menus, galleries, a handful
of admins), so O(n) work per call is fine; this store is not meant for large
or high-throughput collections.

Mutations on the same file are serialized with a per-path lock held for the
full read-modify-write. This covers threads in one process only; several
processes writing the same directory will still lose updates.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from canvas_backend.records import (
    ID_FIELD,
    Record,
    matches,
    merge_patch,
    stamp_new,
    timestamp_identifier,
    utc_now,
)

logger = logging.getLogger(__name__)

_locks: Dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def lock_for(path: Path) -> threading.RLock:
    key = str(Path(path).resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


class FileStore:
    """Record store backed by a single JSON file."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self._lock = lock_for(self.path)

    def read_all(self) -> List[Record]:
        """
        Load the collection. Never raises.

        A missing file is simply "no data yet". Unreadable or malformed
        content is also returned as an empty list, but logged as a warning so
        corruption does not go unnoticed.
        """
        with self._lock:
            try:
                raw = self.path.read_text(encoding="utf-8")
            except FileNotFoundError:
                logger.debug("Storage file %s does not exist yet", self.path)
                return []
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Could not read storage file %s: %s", self.path, exc)
                return []

        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.warning(
                "Storage file %s is not valid JSON, treating as empty: %s",
                self.path,
                exc,
            )
            return []
        if not isinstance(data, list):
            logger.warning(
                "Storage file %s does not hold a JSON array, treating as empty",
                self.path,
            )
            return []
        records = [item for item in data if isinstance(item, dict)]
        if len(records) != len(data):
            # Dropped entries are lost on the next write.
            logger.warning(
                "Storage file %s has %d non-object entries, ignoring them",
                self.path,
                len(data) - len(records),
            )
        return records

    def write_all(self, records: List[Record]) -> bool:
        """Replace the file with ``records``. Returns False on failure."""
        with self._lock:
            tmp_name = None
            try:
                payload = json.dumps(records, indent=2, ensure_ascii=False)
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
                )
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self.path)
                return True
            except (OSError, TypeError, ValueError) as exc:
                logger.error("File write error for %s: %s", self.path, exc)
                if tmp_name and os.path.exists(tmp_name):
                    try:
                        os.unlink(tmp_name)
                    except OSError:
                        logger.debug("Could not remove temp file %s", tmp_name)
                return False

    def find_by_id(self, record_id: str) -> Optional[Record]:
        return self.find_one({ID_FIELD: record_id})

    def find_one(self, query: Mapping[str, Any]) -> Optional[Record]:
        for record in self.read_all():
            if matches(record, query):
                return record
        return None

    def find(self, query: Optional[Mapping[str, Any]] = None) -> List[Record]:
        records = self.read_all()
        if not query:
            return records
        return [record for record in records if matches(record, query)]

    def create(self, fields: Mapping[str, Any]) -> Optional[Record]:
        with self._lock:
            records = self.read_all()
            now = utc_now()
            record = stamp_new(fields, now)
            taken = {str(item.get(ID_FIELD)) for item in records}
            if record.get(ID_FIELD):
                record[ID_FIELD] = str(record[ID_FIELD])
                if record[ID_FIELD] in taken:
                    logger.error(
                        "Refusing to create %s: id %r already exists",
                        self.path.name,
                        record[ID_FIELD],
                    )
                    return None
            else:
                record[ID_FIELD] = timestamp_identifier(now, taken)
            records.append(record)
            if not self.write_all(records):
                return None
            return record

    def update(self, record_id: str, patch: Mapping[str, Any]) -> Optional[Record]:
        with self._lock:
            records = self.read_all()
            for index, record in enumerate(records):
                if matches(record, {ID_FIELD: record_id}):
                    updated = merge_patch(record, patch)
                    records[index] = updated
                    if not self.write_all(records):
                        return None
                    return updated
            return None

    def delete(self, record_id: str) -> bool:
        with self._lock:
            records = self.read_all()
            remaining = [
                record for record in records if not matches(record, {ID_FIELD: record_id})
            ]
            if len(remaining) == len(records):
                return False
            return self.write_all(remaining)
