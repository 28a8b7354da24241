"""
Record codec shared by both storage backends.

Records are plain JSON-like dicts. Every record carries an ``_id`` identity
field plus ``createdAt``/``updatedAt`` timestamps serialised the way a JS
``Date`` is (ISO-8601, millisecond precision, ``Z`` suffix).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

Record = Dict[str, Any]

ID_FIELD = "_id"
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"
TIMESTAMP_FIELDS = (CREATED_AT, UPDATED_AT)

# Fields a patch is never allowed to overwrite.
IMMUTABLE_FIELDS = (ID_FIELD, CREATED_AT)


class EntityKind(str, Enum):
    ADMINS = "admins"
    MENU = "menu"
    GALLERY = "gallery"

    @property
    def filename(self) -> str:
        return f"{self.value}.json"

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self]


_COLLECTIONS = {
    EntityKind.ADMINS: "admins",
    EntityKind.MENU: "menuitems",
    EntityKind.GALLERY: "galleries",
}


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def next_timestamp(previous: Optional[str], now: Optional[datetime] = None) -> str:
    """
    Return a timestamp strictly later than ``previous``.

    Two mutations inside the same millisecond would otherwise share an
    ``updatedAt``; in that case the new value is bumped by one millisecond.
    """
    now = now or utc_now()
    if previous:
        try:
            floor = parse_timestamp(previous) + timedelta(milliseconds=1)
        except ValueError:
            floor = now
        if now < floor:
            now = floor
    return format_timestamp(now)


def timestamp_identifier(now: datetime, taken: Iterable[str] = ()) -> str:
    """Decimal epoch-millisecond id, incremented past any id already in use."""
    taken = set(taken)
    candidate = int(now.timestamp() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def stamp_new(fields: Mapping[str, Any], now: Optional[datetime] = None) -> Record:
    """Copy ``fields`` and set both timestamps. Identity is left to the caller."""
    stamp = format_timestamp(now or utc_now())
    record: Record = dict(fields)
    record[CREATED_AT] = stamp
    record[UPDATED_AT] = stamp
    return record


def clean_patch(patch: Mapping[str, Any]) -> Record:
    return {
        key: value
        for key, value in patch.items()
        if key not in IMMUTABLE_FIELDS and key != UPDATED_AT
    }


def merge_patch(existing: Mapping[str, Any], patch: Mapping[str, Any]) -> Record:
    """Shallow merge: patch fields overwrite, everything else is preserved."""
    merged: Record = dict(existing)
    merged.update(clean_patch(patch))
    merged[UPDATED_AT] = next_timestamp(existing.get(UPDATED_AT))
    return merged


def matches(record: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
    """
    Conjunctive equality match; identity is compared as a string.

    A missing field compares equal to None, as it does in a MongoDB query.
    """
    for key, expected in query.items():
        actual = record.get(key)
        if key == ID_FIELD:
            if str(actual) != str(expected):
                return False
        elif actual != expected:
            return False
    return True


def public_view(record: Mapping[str, Any], hidden: Iterable[str] = ()) -> Record:
    hidden = set(hidden)
    return {key: value for key, value in record.items() if key not in hidden}
