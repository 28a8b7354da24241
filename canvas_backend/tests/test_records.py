import unittest
from datetime import datetime, timezone

from canvas_backend.records import (
    EntityKind,
    format_timestamp,
    matches,
    merge_patch,
    next_timestamp,
    parse_timestamp,
    public_view,
    stamp_new,
    timestamp_identifier,
)


class RecordCodecTests(unittest.TestCase):
    def test_timestamp_format_matches_js_dates(self):
        value = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)
        self.assertEqual(format_timestamp(value), "2024-05-01T12:30:45.123Z")
        self.assertEqual(
            parse_timestamp("2024-05-01T12:30:45.123Z"),
            datetime(2024, 5, 1, 12, 30, 45, 123000, tzinfo=timezone.utc),
        )

    def test_naive_datetimes_are_treated_as_utc(self):
        self.assertEqual(
            format_timestamp(datetime(2024, 1, 2, 3, 4, 5)), "2024-01-02T03:04:05.000Z"
        )

    def test_next_timestamp_is_strictly_later(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        previous = format_timestamp(now)
        self.assertEqual(next_timestamp(previous, now), "2024-01-01T00:00:00.001Z")
        later = datetime(2024, 1, 1, 0, 0, 5, tzinfo=timezone.utc)
        self.assertEqual(next_timestamp(previous, later), "2024-01-01T00:00:05.000Z")
        self.assertEqual(next_timestamp(None, now), previous)

    def test_timestamp_identifier_skips_taken_ids(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        base = str(int(now.timestamp() * 1000))
        self.assertEqual(timestamp_identifier(now), base)
        self.assertEqual(
            timestamp_identifier(now, [base, str(int(base) + 1)]), str(int(base) + 2)
        )

    def test_stamp_new_sets_both_timestamps(self):
        record = stamp_new({"name": "Tea"})
        self.assertEqual(record["createdAt"], record["updatedAt"])
        self.assertNotIn("_id", record)

    def test_merge_patch_preserves_unset_fields(self):
        existing = stamp_new({"_id": "1", "a": 1, "b": 2})
        merged = merge_patch(existing, {"b": 3, "_id": "2", "updatedAt": "x"})
        self.assertEqual(merged["_id"], "1")
        self.assertEqual((merged["a"], merged["b"]), (1, 3))
        self.assertNotEqual(merged["updatedAt"], "x")
        self.assertEqual(existing["b"], 2)

    def test_matches_compares_identity_as_string(self):
        record = {"_id": "1700000000000", "category": "Lunch"}
        self.assertTrue(matches(record, {"_id": 1700000000000}))
        self.assertTrue(matches(record, {}))
        self.assertFalse(matches(record, {"category": "Lunch", "featured": False}))

    def test_entity_kinds_map_to_files_and_collections(self):
        self.assertEqual(EntityKind.ADMINS.filename, "admins.json")
        self.assertEqual(EntityKind.MENU.filename, "menu.json")
        self.assertEqual(EntityKind.GALLERY.filename, "gallery.json")
        self.assertEqual(EntityKind.MENU.collection, "menuitems")

    def test_public_view_hides_fields(self):
        self.assertEqual(public_view({"a": 1, "password": "x"}, ["password"]), {"a": 1})


if __name__ == "__main__":
    unittest.main()
