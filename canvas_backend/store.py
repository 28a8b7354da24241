"""
Storage contract shared by every backend, and the facade callers depend on.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Union

from pydantic import BaseModel

from canvas_backend.records import Record

Patch = Union[Mapping[str, Any], BaseModel]


class RecordStore(Protocol):
    """Operations every concrete store provides for one entity kind."""

    def find(self, query: Optional[Mapping[str, Any]] = None) -> List[Record]:
        ...

    def find_one(self, query: Mapping[str, Any]) -> Optional[Record]:
        ...

    def find_by_id(self, record_id: str) -> Optional[Record]:
        ...

    def create(self, fields: Mapping[str, Any]) -> Optional[Record]:
        ...

    def update(self, record_id: str, patch: Mapping[str, Any]) -> Optional[Record]:
        ...

    def delete(self, record_id: str) -> bool:
        ...


def fields_to_dict(fields: Patch) -> dict:
    if isinstance(fields, BaseModel):
        return fields.model_dump(by_alias=True)
    return dict(fields)


def patch_to_fields(patch: Patch) -> dict:
    """Typed partial updates only contribute the fields the caller set."""
    if isinstance(patch, BaseModel):
        return patch.model_dump(exclude_unset=True, by_alias=True)
    return dict(patch)


class StorageFacade:
    """
    The single storage interface handlers see.

    Bound to one concrete store for its whole lifetime; it never inspects
    which backend that store talks to.
    """

    def __init__(self, store: RecordStore):
        self._store = store

    @property
    def store(self) -> RecordStore:
        return self._store

    def find(self, query: Optional[Mapping[str, Any]] = None) -> List[Record]:
        return self._store.find(query or {})

    def find_one(self, query: Mapping[str, Any]) -> Optional[Record]:
        return self._store.find_one(query)

    def find_by_id(self, record_id: str) -> Optional[Record]:
        return self._store.find_by_id(str(record_id))

    def create(self, fields: Patch) -> Optional[Record]:
        return self._store.create(fields_to_dict(fields))

    def update(self, record_id: str, patch: Patch) -> Optional[Record]:
        return self._store.update(str(record_id), patch_to_fields(patch))

    def delete(self, record_id: str) -> bool:
        return self._store.delete(str(record_id))
