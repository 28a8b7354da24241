"""
MongoDB implementation of the record store contract.

A thin adapter over a pymongo collection. Results are converted to the same
shape the file store returns: string ``_id`` and ISO timestamp strings.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from canvas_backend.records import (
    ID_FIELD,
    TIMESTAMP_FIELDS,
    UPDATED_AT,
    Record,
    clean_patch,
    format_timestamp,
    next_timestamp,
    parse_timestamp,
    stamp_new,
)

logger = logging.getLogger(__name__)


def _id_filter(record_id: Any) -> dict:
    # Ids minted by Mongo are ObjectIds; caller-supplied ids stay strings.
    record_id = str(record_id)
    if ObjectId.is_valid(record_id):
        return {ID_FIELD: {"$in": [ObjectId(record_id), record_id]}}
    return {ID_FIELD: record_id}


def to_document(fields: Mapping[str, Any]) -> dict:
    document = dict(fields)
    for key in TIMESTAMP_FIELDS:
        value = document.get(key)
        if isinstance(value, str):
            try:
                document[key] = parse_timestamp(value)
            except ValueError:
                pass
    return document


def from_document(document: Mapping[str, Any]) -> Record:
    record: Record = {}
    for key, value in document.items():
        if isinstance(value, ObjectId):
            value = str(value)
        elif isinstance(value, datetime):
            value = format_timestamp(value)
        record[key] = value
    return record


def to_query(query: Optional[Mapping[str, Any]]) -> dict:
    if not query:
        return {}
    translated = dict(query)
    if ID_FIELD in translated:
        translated.update(_id_filter(translated[ID_FIELD]))
    return to_document(translated)


class MongoDocumentStore:
    """Record store over one MongoDB collection."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def find(self, query: Optional[Mapping[str, Any]] = None) -> List[Record]:
        try:
            return [from_document(doc) for doc in self.collection.find(to_query(query))]
        except PyMongoError as exc:
            logger.error("MongoDB find on %s failed: %s", self.collection.name, exc)
            return []

    def find_one(self, query: Mapping[str, Any]) -> Optional[Record]:
        try:
            document = self.collection.find_one(to_query(query))
        except PyMongoError as exc:
            logger.error("MongoDB find_one on %s failed: %s", self.collection.name, exc)
            return None
        return from_document(document) if document else None

    def find_by_id(self, record_id: str) -> Optional[Record]:
        return self.find_one({ID_FIELD: record_id})

    def create(self, fields: Mapping[str, Any]) -> Optional[Record]:
        document = to_document(stamp_new(fields))
        if not document.get(ID_FIELD):
            document.pop(ID_FIELD, None)
        else:
            document[ID_FIELD] = str(document[ID_FIELD])
        try:
            result = self.collection.insert_one(document)
        except PyMongoError as exc:
            logger.error("MongoDB insert into %s failed: %s", self.collection.name, exc)
            return None
        document[ID_FIELD] = result.inserted_id
        return from_document(document)

    def update(self, record_id: str, patch: Mapping[str, Any]) -> Optional[Record]:
        existing = self.find_by_id(record_id)
        if existing is None:
            return None
        changes = to_document(clean_patch(patch))
        changes[UPDATED_AT] = parse_timestamp(next_timestamp(existing.get(UPDATED_AT)))
        try:
            document = self.collection.find_one_and_update(
                _id_filter(record_id),
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            logger.error("MongoDB update on %s failed: %s", self.collection.name, exc)
            return None
        return from_document(document) if document else None

    def delete(self, record_id: str) -> bool:
        try:
            result = self.collection.delete_one(_id_filter(record_id))
        except PyMongoError as exc:
            logger.error("MongoDB delete on %s failed: %s", self.collection.name, exc)
            return False
        return result.deleted_count > 0
