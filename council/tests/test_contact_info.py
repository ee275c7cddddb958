import unittest

from council.content import CONTACT_INFO
from council.db import Database, DatabaseRecordStore
from council.errors import ValidationError
from council.records import InMemoryRecordStore
from council.site_settings import ContactInfoService

ADMIN = "admin@iitgn.ac.in"


class ContactInfoServiceTests(unittest.TestCase):
    def make_store(self):
        return InMemoryRecordStore(CONTACT_INFO, CONTACT_INFO.defaults)

    def setUp(self):
        self.service = ContactInfoService(self.make_store())

    def test_defaults_before_first_write(self):
        contact = self.service.get()
        self.assertEqual(contact["email"], "technical.secretary@iitgn.ac.in")
        self.assertEqual(contact["address"]["postalCode"], "382355")

    def test_nested_field_update_keeps_siblings(self):
        contact = self.service.update_field("socialMedia.youtube", "https://youtube.com/x", ADMIN)
        self.assertEqual(contact["socialMedia"]["youtube"], "https://youtube.com/x")
        self.assertEqual(
            contact["socialMedia"]["facebook"], "https://www.facebook.com/tech.iitgn"
        )
        self.assertEqual(contact["modifiedBy"], ADMIN)
        self.assertEqual(self.service.get()["socialMedia"]["youtube"], "https://youtube.com/x")

    def test_unknown_fields_are_rejected(self):
        for field in ("fax", "address.planet", "lastModified", "id"):
            with self.assertRaises(ValidationError):
                self.service.update_field(field, "x", ADMIN)

    def test_partial_document_is_filled_from_defaults(self):
        self.service.store.import_record({"id": "contact", "phone": "+91-1"})
        contact = self.service.get()
        self.assertEqual(contact["phone"], "+91-1")
        self.assertEqual(contact["address"]["country"], "India")

    def test_reset(self):
        self.service.update_field("phone", "+91-1", ADMIN)
        self.assertEqual(self.service.reset(ADMIN)["phone"], "+91-79-2395-2001")


class DatabaseContactInfoServiceTests(ContactInfoServiceTests):
    def make_store(self):
        database = Database("sqlite+pysqlite:///:memory:")
        self.addCleanup(database.dispose)
        return DatabaseRecordStore(CONTACT_INFO, database, CONTACT_INFO.defaults)

    def test_first_write_inserts_the_row(self):
        self.assertEqual(self.service.store.get_stored(), {})
        self.service.replace({"phone": "+91-2", "email": "tech@iitgn.ac.in"}, ADMIN)
        stored = self.service.store.get_stored()["contact"]
        self.assertEqual(stored["phone"], "+91-2")
        self.assertEqual(stored["address"]["city"], "Palaj, Gandhinagar")


if __name__ == "__main__":
    unittest.main()
