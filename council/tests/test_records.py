import json
import os
import tempfile
import unittest
from unittest import mock

from botocore.exceptions import ClientError

from council.content import EVENTS, TEAM
from council.errors import Conflict, NotFound, StorageUnavailable
from council.records import (
    BlobRecordStore,
    FileRecordStore,
    InMemoryRecordStore,
    next_timestamp,
    parse_timestamp,
    slugify,
    unique_identifier,
)
from council.storage import InMemoryStorageClient

HACK_DAY = {
    "title": "Hack Day",
    "description": "Twenty-four hours of building",
    "date": "2024-09-01",
    "location": "IITGN Campus",
    "duration": "1 day",
    "participants": "100+",
    "organizer": "Technical Council",
    "category": "hackathon",
    "highlights": ["Mentors on site"],
    "gallery": [],
    "draft": False,
}

MEMBER = {
    "name": "Riya Shah",
    "position": "Web Lead",
    "email": "riya@iitgn.ac.in",
    "initials": "RS",
    "gradientFrom": "from-blue-600",
    "gradientTo": "to-purple-600",
    "category": "core",
    "photoPath": None,
    "isSecretary": False,
    "isCoordinator": False,
}


class _BrokenClient:
    def get_bytes(self, path):
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetObject")

    def upload_json(self, path, payload):
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")


class IdentifierTests(unittest.TestCase):
    def test_slugify(self):
        self.assertEqual(slugify("Hack Day!"), "hack-day")
        self.assertEqual(slugify("  Multiple   Spaces  "), "multiple-spaces")
        self.assertEqual(slugify("C++ & Rust: 2024"), "c-rust-2024")
        self.assertEqual(len(slugify("a" * 80)), 50)
        self.assertEqual(slugify("!!!"), "")

    def test_unique_identifier_appends_counter(self):
        taken = {"hack-day", "hack-day-1"}
        self.assertEqual(unique_identifier("hack-day", taken.__contains__), "hack-day-2")
        self.assertEqual(unique_identifier("fresh", taken.__contains__), "fresh")

    def test_next_timestamp_moves_past_future_value(self):
        future = "2999-01-01T00:00:00.000000+00:00"
        self.assertGreater(next_timestamp(future), parse_timestamp(future))


class RecordStoreContract:
    """Behavior every backend must share; mixed into a TestCase per backend."""

    def make_store(self, content_type=EVENTS):
        raise NotImplementedError

    def test_create_then_get(self):
        store = self.make_store()
        created = store.create(HACK_DAY)
        self.assertEqual(created["id"], "hack-day")
        self.assertEqual(created["createdAt"], created["updatedAt"])

        fetched = store.get_by_id("hack-day")
        for key, value in HACK_DAY.items():
            self.assertEqual(fetched[key], value)
        self.assertEqual(parse_timestamp(fetched["createdAt"]), parse_timestamp(created["createdAt"]))

    def test_colliding_titles_get_distinct_ids(self):
        store = self.make_store()
        ids = [store.create(HACK_DAY)["id"] for _ in range(3)]
        self.assertEqual(ids, ["hack-day", "hack-day-1", "hack-day-2"])
        self.assertEqual(len(store.get_all()), 3)

    def test_blank_slug_falls_back_to_label(self):
        store = self.make_store()
        created = store.create({**HACK_DAY, "title": "!!!"})
        self.assertEqual(created["id"], "event")

    def test_update_merges_and_bumps_updated_at(self):
        store = self.make_store()
        created = store.create(HACK_DAY)
        updated = store.update(
            "hack-day", {"location": "Lab 1", "id": "elsewhere", "createdAt": "1999-01-01"}
        )
        self.assertEqual(updated["id"], "hack-day")
        self.assertEqual(updated["location"], "Lab 1")
        self.assertEqual(updated["title"], "Hack Day")
        self.assertEqual(parse_timestamp(updated["createdAt"]), parse_timestamp(created["createdAt"]))
        self.assertGreater(
            parse_timestamp(updated["updatedAt"]), parse_timestamp(created["updatedAt"])
        )
        self.assertIsNone(store.get_by_id("elsewhere"))

    def test_update_with_stale_timestamp_is_rejected(self):
        store = self.make_store()
        store.create(HACK_DAY)
        with self.assertRaises(Conflict):
            store.update(
                "hack-day",
                {"location": "Lab 1"},
                expected_updated_at="2020-01-01T00:00:00.000000+00:00",
            )
        self.assertEqual(store.get_by_id("hack-day")["location"], "IITGN Campus")

    def test_update_with_current_timestamp_succeeds(self):
        store = self.make_store()
        created = store.create(HACK_DAY)
        updated = store.update(
            "hack-day", {"location": "Lab 1"}, expected_updated_at=created["updatedAt"]
        )
        self.assertEqual(updated["location"], "Lab 1")

    def test_update_missing_raises_not_found(self):
        store = self.make_store()
        with self.assertRaises(NotFound):
            store.update("nope", {"title": "x"})

    def test_delete(self):
        store = self.make_store()
        store.create(HACK_DAY)
        store.delete("hack-day")
        self.assertIsNone(store.get_by_id("hack-day"))
        before = store.get_all()
        with self.assertRaises(NotFound):
            store.delete("hack-day")
        self.assertEqual(store.get_all(), before)

    def test_display_excludes_drafts(self):
        store = self.make_store()
        store.create(HACK_DAY)
        store.create({**HACK_DAY, "title": "Secret Plans", "draft": True})
        ids = [event["id"] for event in store.get_for_display()]
        self.assertEqual(ids, ["hack-day"])

    def test_duplicate_team_email_conflicts(self):
        store = self.make_store(TEAM)
        store.create(MEMBER)
        with self.assertRaises(Conflict):
            store.create({**MEMBER, "name": "Someone Else"})
        self.assertEqual(len(store.get_all()), 1)

    def test_import_keeps_identifier_and_timestamps(self):
        store = self.make_store()
        stored = store.import_record(
            {**HACK_DAY, "id": "legacy-hack", "createdAt": "2022-05-01T10:00:00+00:00"}
        )
        self.assertEqual(stored["id"], "legacy-hack")
        self.assertEqual(
            parse_timestamp(store.get_by_id("legacy-hack")["createdAt"]),
            parse_timestamp("2022-05-01T10:00:00+00:00"),
        )

    def test_clear(self):
        store = self.make_store()
        store.create(HACK_DAY)
        store.create({**HACK_DAY, "title": "Demo Night"})
        self.assertEqual(store.clear(), 2)
        self.assertEqual(store.get_all(), {})

    def test_get_stored_never_includes_defaults(self):
        store = self.make_store()
        store.defaults = EVENTS.defaults
        self.assertEqual(store.get_stored(), {})
        store.create(HACK_DAY)
        self.assertIn("hack-day", store.get_stored())


class InMemoryRecordStoreTests(RecordStoreContract, unittest.TestCase):
    def make_store(self, content_type=EVENTS):
        return InMemoryRecordStore(content_type)

    def test_missing_resource_serves_defaults(self):
        store = InMemoryRecordStore(EVENTS, EVENTS.defaults)
        self.assertIn("tech-expo-2024", store.get_all())
        store.create(HACK_DAY)
        self.assertEqual(set(store.get_all()), {"tech-expo-2024", "hack-day"})


class FileRecordStoreTests(RecordStoreContract, unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def make_store(self, content_type=EVENTS):
        return FileRecordStore(content_type, self.tmp.name)

    def test_writes_one_json_document(self):
        store = self.make_store()
        store.create(HACK_DAY)
        self.assertEqual(os.listdir(self.tmp.name), ["events.json"])
        with open(os.path.join(self.tmp.name, "events.json"), encoding="utf-8") as f:
            self.assertIn("hack-day", json.load(f))

    def test_failed_write_leaves_previous_file_intact(self):
        store = self.make_store()
        store.create(HACK_DAY)
        path = os.path.join(self.tmp.name, "events.json")
        with open(path, encoding="utf-8") as f:
            before = f.read()

        with mock.patch("council.records.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(StorageUnavailable):
                store.create({**HACK_DAY, "title": "Demo Night"})

        with open(path, encoding="utf-8") as f:
            self.assertEqual(f.read(), before)
        self.assertEqual(os.listdir(self.tmp.name), ["events.json"])

    def test_corrupt_file_is_unavailable(self):
        with open(os.path.join(self.tmp.name, "events.json"), "w", encoding="utf-8") as f:
            f.write("{not json")
        with self.assertRaises(StorageUnavailable) as ctx:
            self.make_store().get_all()
        self.assertEqual(ctx.exception.message, "Failed to fetch events")

    def test_non_object_file_is_unavailable(self):
        for document in ("[1, 2]", "\"x\""):
            with open(os.path.join(self.tmp.name, "events.json"), "w", encoding="utf-8") as f:
                f.write(document)
            store = self.make_store()
            with self.assertRaises(StorageUnavailable):
                store.get_all()
            with self.assertRaises(StorageUnavailable) as ctx:
                store.get_for_display()
            self.assertEqual(ctx.exception.message, "Failed to fetch events")


class BlobRecordStoreTests(RecordStoreContract, unittest.TestCase):
    def setUp(self):
        self.client = InMemoryStorageClient()

    def make_store(self, content_type=EVENTS):
        return BlobRecordStore(content_type, self.client)

    def test_document_lives_at_well_known_key(self):
        self.make_store().create(HACK_DAY)
        self.assertIn("hack-day", self.client.stored_objects["events-data.json"])

    def test_non_object_blob_is_unavailable(self):
        self.client.stored_objects["events-data.json"] = b"[1, 2]"
        with self.assertRaises(StorageUnavailable) as ctx:
            self.make_store().get_for_display()
        self.assertEqual(ctx.exception.message, "Failed to fetch events")

    def test_unreachable_bucket_is_unavailable(self):
        store = BlobRecordStore(EVENTS, _BrokenClient(), EVENTS.defaults)
        with self.assertRaises(StorageUnavailable):
            store.get_all()


if __name__ == "__main__":
    unittest.main()
