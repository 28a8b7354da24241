import json
import tempfile
import threading
import unittest
from pathlib import Path

from canvas_backend.file_store import FileStore
from canvas_backend.records import parse_timestamp


class FileStoreTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.path = self.dir / "menu.json"
        self.path.write_text("[]", encoding="utf-8")
        self.store = FileStore(self.path)

    def tearDown(self):
        self._tmp.cleanup()

    def test_create_then_find_by_id_returns_same_record(self):
        created = self.store.create({"name": "Latte", "price": 3.5})
        self.assertIsNotNone(created)
        self.assertIsInstance(created["_id"], str)
        self.assertTrue(created["_id"].isdigit())
        self.assertEqual(created["createdAt"], created["updatedAt"])

        fetched = self.store.find_by_id(created["_id"])
        self.assertEqual(fetched, created)

    def test_create_keeps_caller_supplied_id(self):
        created = self.store.create({"_id": "custom-1", "name": "Mocha"})
        self.assertEqual(created["_id"], "custom-1")
        self.assertEqual(self.store.find_by_id("custom-1")["name"], "Mocha")

    def test_ids_stay_unique_for_rapid_creates(self):
        ids = [self.store.create({"n": i})["_id"] for i in range(20)]
        self.assertEqual(len(set(ids)), 20)

    def test_update_merges_and_advances_updated_at(self):
        created = self.store.create({"a": 1, "b": 2})
        updated = self.store.update(created["_id"], {"b": 3})

        self.assertEqual(updated["a"], 1)
        self.assertEqual(updated["b"], 3)
        self.assertEqual(updated["createdAt"], created["createdAt"])
        self.assertGreater(
            parse_timestamp(updated["updatedAt"]), parse_timestamp(created["updatedAt"])
        )
        self.assertEqual(self.store.find_by_id(created["_id"]), updated)

    def test_update_cannot_change_identity_or_creation_time(self):
        created = self.store.create({"a": 1})
        updated = self.store.update(
            created["_id"], {"_id": "other", "createdAt": "2000-01-01T00:00:00.000Z"}
        )
        self.assertEqual(updated["_id"], created["_id"])
        self.assertEqual(updated["createdAt"], created["createdAt"])

    def test_update_missing_id_returns_none_without_writing(self):
        self.store.create({"a": 1})
        before = self.path.read_bytes()
        self.assertIsNone(self.store.update("does-not-exist", {"a": 2}))
        self.assertEqual(self.path.read_bytes(), before)

    def test_delete_missing_id_leaves_file_untouched(self):
        self.store.create({"a": 1})
        before = self.path.read_bytes()
        mtime = self.path.stat().st_mtime_ns

        self.assertFalse(self.store.delete("does-not-exist"))
        self.assertEqual(self.path.read_bytes(), before)
        self.assertEqual(self.path.stat().st_mtime_ns, mtime)

    def test_delete_removes_record(self):
        keep = self.store.create({"name": "keep"})
        drop = self.store.create({"name": "drop"})
        self.assertTrue(self.store.delete(drop["_id"]))
        self.assertIsNone(self.store.find_by_id(drop["_id"]))
        self.assertEqual(self.store.find(), [keep])

    def test_find_with_empty_query_returns_everything(self):
        for i in range(5):
            self.store.create({"n": i})
        self.assertEqual(len(self.store.find({})), 5)
        self.assertEqual(len(self.store.find()), 5)

    def test_find_uses_conjunctive_equality(self):
        self.store.create({"category": "Lunch", "isAvailable": True})
        self.store.create({"category": "Lunch", "isAvailable": False})
        self.store.create({"category": "Dinner", "isAvailable": True})

        self.assertEqual(len(self.store.find({"category": "Lunch"})), 2)
        both = self.store.find({"category": "Lunch", "isAvailable": True})
        self.assertEqual(len(both), 1)
        self.assertEqual(self.store.find({"category": "Lun"}), [])
        self.assertEqual(len(self.store.find({"missing": None})), 3)

    def test_find_one_returns_first_match_or_none(self):
        self.store.create({"username": "chef"})
        self.assertEqual(self.store.find_one({"username": "chef"})["username"], "chef")
        self.assertIsNone(self.store.find_one({"username": "nobody"}))

    def test_missing_file_reads_as_empty(self):
        store = FileStore(self.dir / "absent.json")
        self.assertEqual(store.read_all(), [])
        self.assertIsNone(store.find_by_id("1"))

    def test_corrupt_file_reads_as_empty_and_is_logged(self):
        self.path.write_text('[{"_id": "1", "name": "trunc', encoding="utf-8")
        with self.assertLogs("canvas_backend.file_store", level="WARNING"):
            self.assertEqual(self.store.read_all(), [])
        self.assertEqual(self.store.find(), [])

        created = self.store.create({"name": "Espresso"})
        self.assertIsNotNone(created)
        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]["_id"], created["_id"])

    def test_non_object_entries_are_dropped_with_a_warning(self):
        self.path.write_text('[{"_id": "1"}, 7, "x", null]', encoding="utf-8")
        with self.assertLogs("canvas_backend.file_store", level="WARNING") as logs:
            self.assertEqual(self.store.read_all(), [{"_id": "1"}])
        self.assertIn("3 non-object entries", logs.output[0])

    def test_non_array_json_reads_as_empty(self):
        self.path.write_text('{"not": "a list"}', encoding="utf-8")
        with self.assertLogs("canvas_backend.file_store", level="WARNING"):
            self.assertEqual(self.store.read_all(), [])

    def test_write_failure_is_reported_not_raised(self):
        target = self.dir / "blocked.json"
        target.mkdir()
        store = FileStore(target)
        with self.assertLogs("canvas_backend.file_store", level="ERROR"):
            self.assertFalse(store.write_all([{"_id": "1"}]))

    def test_create_returns_none_when_write_fails(self):
        with self.assertLogs("canvas_backend.file_store", level="ERROR"):
            self.assertIsNone(self.store.create({"when": object()}))
        self.assertEqual(self.store.find(), [])

    def test_sequential_updates_compose(self):
        created = self.store.create({"a": 0, "b": 0})
        self.store.update(created["_id"], {"a": 1})
        second = self.store.update(created["_id"], {"b": 2})
        self.assertEqual(second["a"], 1)
        self.assertEqual(second["b"], 2)

    def test_concurrent_creates_are_not_lost(self):
        stores = [FileStore(self.path) for _ in range(4)]

        def worker(store, offset):
            for i in range(10):
                store.create({"n": offset + i})

        threads = [
            threading.Thread(target=worker, args=(store, idx * 10))
            for idx, store in enumerate(stores)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        records = self.store.find()
        self.assertEqual(len(records), 40)
        self.assertEqual(len({record["_id"] for record in records}), 40)


if __name__ == "__main__":
    unittest.main()
