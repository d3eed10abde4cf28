import json
import os
import tempfile
import unittest
from unittest.mock import patch

from rugby_scoring.services import InMemoryStore, JsonFileStore, PersistenceError


class InMemoryStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryStore()

    def test_insert_assigns_id_and_timestamp(self) -> None:
        row = self.store.insert("teams", {"name": "Lions"})
        self.assertTrue(row["id"])
        self.assertIn("created_at", row)
        self.assertEqual(self.store.get("teams", row["id"])["name"], "Lions")

    def test_rows_are_copies(self) -> None:
        row = self.store.insert("teams", {"name": "Lions"})
        row["name"] = "Changed"
        self.assertEqual(self.store.get("teams", row["id"])["name"], "Lions")

    def test_select_filters(self) -> None:
        self.store.insert("players", {"name": "A", "team_id": "t1"})
        self.store.insert("players", {"name": "B", "team_id": "t2"})
        self.assertEqual([r["name"] for r in self.store.select("players", team_id="t2")], ["B"])

    def test_duplicate_id_rejected(self) -> None:
        self.store.insert("teams", {"id": "t1", "name": "Lions"})
        with self.assertRaises(PersistenceError):
            self.store.insert("teams", {"id": "t1", "name": "Tigers"})

    def test_update_missing_row_raises(self) -> None:
        with self.assertRaises(PersistenceError):
            self.store.update("teams", "nope", {"name": "x"})

    def test_upsert_by_custom_key(self) -> None:
        self.store.upsert("coach_permissions", {"coach_id": "c1", "teams": False}, key="coach_id")
        self.store.upsert("coach_permissions", {"coach_id": "c1", "teams": True}, key="coach_id")
        rows = self.store.select("coach_permissions", coach_id="c1")
        self.assertEqual(len(rows), 1)
        self.assertTrue(rows[0]["teams"])

    def test_delete(self) -> None:
        row = self.store.insert("teams", {"name": "Lions"})
        self.assertTrue(self.store.delete("teams", row["id"]))
        self.assertFalse(self.store.delete("teams", row["id"]))

    def test_unknown_table(self) -> None:
        with self.assertRaises(PersistenceError):
            self.store.select("referees")


class JsonFileStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "data.json")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_data_survives_reload(self) -> None:
        store = JsonFileStore(self.path)
        row = store.insert("tournaments", {"name": "Sevens"})
        reloaded = JsonFileStore(self.path)
        self.assertEqual(reloaded.get("tournaments", row["id"])["name"], "Sevens")

    def test_failed_write_leaves_no_change(self) -> None:
        store = JsonFileStore(self.path)
        store.insert("teams", {"id": "t1", "name": "Lions"})
        with patch("rugby_scoring.services.persistence_service.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(PersistenceError):
                store.insert("teams", {"id": "t2", "name": "Tigers"})
            with self.assertRaises(PersistenceError):
                store.update("teams", "t1", {"name": "Renamed"})
        self.assertIsNone(store.get("teams", "t2"))
        self.assertEqual(store.get("teams", "t1")["name"], "Lions")

    def test_corrupt_file_raises(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{not json")
        with self.assertRaises(PersistenceError):
            JsonFileStore(self.path)

    def test_unknown_tables_ignored_on_load(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"teams": [{"id": "t1", "name": "Lions"}], "legacy": []}, f)
        store = JsonFileStore(self.path)
        self.assertEqual(len(store.select("teams")), 1)
        self.assertNotIn("legacy", store.snapshot())


if __name__ == "__main__":
    unittest.main()
