"""
One-time choice between the MongoDB and JSON-file backends.

``select_backend`` runs once while the app is being created. Its result is
an immutable ``BackendSelection`` that is handed to whatever needs to build
stores; nothing re-checks the database afterwards. Switching backends means
restarting the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from canvas_backend.config import Settings
from canvas_backend.document_store import MongoDocumentStore
from canvas_backend.file_store import FileStore
from canvas_backend.records import EntityKind
from canvas_backend.store import RecordStore, StorageFacade

logger = logging.getLogger(__name__)

EMPTY_COLLECTION = "[]"


class BackendKind(str, Enum):
    DATABASE = "database"
    FILE = "file"


@dataclass(frozen=True)
class BackendSelection:
    kind: BackendKind
    ready: bool
    database: Optional[Database] = None
    storage_dir: Optional[Path] = None

    def store_for(self, entity: EntityKind) -> RecordStore:
        if self.kind is BackendKind.DATABASE:
            return MongoDocumentStore(self.database[entity.collection])
        return FileStore(self.storage_dir / entity.filename)

    def facade_for(self, entity: EntityKind) -> StorageFacade:
        return StorageFacade(self.store_for(entity))


def provision_file_storage(storage_dir: Path) -> bool:
    """
    Make sure the storage directory and every entity file exist.

    Missing files are created holding an empty array. Existing files are
    never touched, whatever they contain.
    """
    try:
        storage_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Could not create storage directory %s: %s", storage_dir, exc)
        return False

    ready = True
    for entity in EntityKind:
        path = storage_dir / entity.filename
        try:
            # "x" fails instead of truncating when the file already exists.
            with path.open("x", encoding="utf-8") as handle:
                handle.write(EMPTY_COLLECTION)
        except FileExistsError:
            continue
        except OSError as exc:
            logger.error("Could not create storage file %s: %s", path, exc)
            ready = False
    return ready


def connect_database(settings: Settings) -> Database:
    """Open a client and ping the server. Raises PyMongoError or ValueError on failure."""
    options = {}
    if settings.mongodb_timeout_ms is not None:
        options["serverSelectionTimeoutMS"] = settings.mongodb_timeout_ms
    client = MongoClient(settings.mongodb_uri, **options)
    try:
        client.admin.command("ping")
        return client[settings.mongodb_db_name]
    except (PyMongoError, ValueError):
        client.close()
        raise


def select_backend(settings: Settings) -> BackendSelection:
    if settings.mongodb_uri:
        try:
            database = connect_database(settings)
        except (PyMongoError, ValueError) as exc:
            logger.warning("MongoDB connection failed, using local file storage: %s", exc)
        else:
            logger.info("Storage backend: MongoDB database %r", settings.mongodb_db_name)
            return BackendSelection(kind=BackendKind.DATABASE, ready=True, database=database)
    else:
        logger.warning("No MongoDB URI configured, using local file storage")

    storage_dir = Path(settings.storage_dir)
    ready = provision_file_storage(storage_dir)
    logger.info("Storage backend: local file storage in %s", storage_dir.resolve())
    return BackendSelection(kind=BackendKind.FILE, ready=ready, storage_dir=storage_dir)
