import os
import unittest
from unittest import mock

from fastapi.testclient import TestClient

from council.app import create_app
from council.auth import issue_session_token
from council.content import EVENTS
from council.dependencies import get_registry, get_storage_client, reset_dependencies
from council.records import BlobRecordStore
from council.tests.test_records import _BrokenClient

SECRET = "api-test-session-secret-with-enough-bytes"
ADMIN = "admin@iitgn.ac.in"

HACK_DAY = {
    "title": "Hack Day",
    "description": "Twenty-four hours of building",
    "date": "2024-09-01",
    "category": "hackathon",
}


class CouncilApiTests(unittest.TestCase):
    def setUp(self):
        env = mock.patch.dict(
            os.environ,
            {
                "USE_IN_MEMORY_BACKENDS": "true",
                "ADMIN_EMAILS": ADMIN,
                "SESSION_SECRET": SECRET,
                "LOG_LEVEL": "WARNING",
            },
        )
        env.start()
        self.addCleanup(env.stop)
        reset_dependencies()
        self.addCleanup(reset_dependencies)

        self.client = TestClient(create_app())
        self.admin = self._auth(ADMIN)

    def _auth(self, email):
        return {"Authorization": f"Bearer {issue_session_token(email, SECRET)}"}

    # -- content CRUD --------------------------------------------------------

    def test_admin_creates_event_and_public_sees_it(self):
        response = self.client.post("/api/admin/events", json=HACK_DAY, headers=self.admin)
        self.assertEqual(response.status_code, 201)
        created = response.json()
        self.assertEqual(created["id"], "hack-day")
        self.assertEqual(created["location"], "IITGN Campus")
        self.assertEqual(created["organizer"], "Technical Council")
        self.assertEqual(
            response.headers["Cache-Control"], "no-cache, no-store, must-revalidate"
        )

        public = self.client.get("/api/events")
        self.assertEqual(public.status_code, 200)
        ids = [event["id"] for event in public.json()]
        self.assertIn("hack-day", ids)
        self.assertIn("tech-expo-2024", ids)
        self.assertNotIn("Cache-Control", public.headers)

        single = self.client.get("/api/events/hack-day")
        self.assertEqual(single.status_code, 200)
        self.assertEqual(single.json()["image"], "/events/placeholder-1.svg")

    def test_category_filter(self):
        self.client.post("/api/admin/events", json=HACK_DAY, headers=self.admin)
        response = self.client.get("/api/events", params={"category": "hackathon"})
        self.assertEqual([event["id"] for event in response.json()], ["hack-day"])

    def test_draft_event_is_admin_only(self):
        self.client.post(
            "/api/admin/events", json={**HACK_DAY, "draft": True}, headers=self.admin
        )
        self.assertEqual(self.client.get("/api/events/hack-day").status_code, 404)
        self.assertNotIn(
            "hack-day", [event["id"] for event in self.client.get("/api/events").json()]
        )
        admin = self.client.get("/api/admin/events/hack-day", headers=self.admin)
        self.assertEqual(admin.status_code, 200)
        self.assertTrue(admin.json()["draft"])

    def test_validation_failure(self):
        response = self.client.post(
            "/api/admin/events", json={"description": "no title"}, headers=self.admin
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["error"], "Validation failed")
        self.assertTrue(any(detail["loc"] == ["title"] for detail in body["details"]))

    def test_not_found(self):
        response = self.client.get("/api/events/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Event not found"})
        response = self.client.put(
            "/api/admin/clubs/nope", json={"name": "x"}, headers=self.admin
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Club not found"})

    def test_update_and_stale_update(self):
        created = self.client.post(
            "/api/admin/events", json=HACK_DAY, headers=self.admin
        ).json()

        response = self.client.put(
            "/api/admin/events/hack-day",
            json={"location": "Lab 1", "expectedUpdatedAt": created["updatedAt"]},
            headers=self.admin,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["location"], "Lab 1")
        self.assertEqual(response.json()["title"], "Hack Day")

        stale = self.client.put(
            "/api/admin/events/hack-day",
            json={"location": "Lab 2", "expectedUpdatedAt": created["updatedAt"]},
            headers=self.admin,
        )
        self.assertEqual(stale.status_code, 409)
        self.assertIn("error", stale.json())

    def test_delete(self):
        self.client.post("/api/admin/events", json=HACK_DAY, headers=self.admin)
        response = self.client.delete("/api/admin/events/hack-day", headers=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"message": "Event deleted successfully", "success": True}
        )
        again = self.client.delete("/api/admin/events/hack-day", headers=self.admin)
        self.assertEqual(again.status_code, 404)

    def test_duplicate_team_email(self):
        member = {
            "name": "Riya Shah",
            "position": "Web Lead",
            "email": "riya@iitgn.ac.in",
            "category": "core",
        }
        first = self.client.post("/api/admin/team", json=member, headers=self.admin)
        self.assertEqual(first.status_code, 201)
        self.assertEqual(first.json()["initials"], "RS")
        second = self.client.post(
            "/api/admin/team", json={**member, "name": "Other"}, headers=self.admin
        )
        self.assertEqual(second.status_code, 409)

    def test_team_leadership(self):
        response = self.client.get("/api/team/leadership")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [member["id"] for member in response.json()], ["chandrabhan-patel", "anmol-kumar"]
        )

    def test_only_verified_achievements_are_public(self):
        achievement = {
            "achievementType": "gold-medal",
            "competitionName": "Inter IIT Tech Meet",
            "interIITEdition": "13th",
            "year": "2024",
            "hostIIT": "IIT Bombay",
            "location": "Mumbai",
            "achievementDescription": "First place in the drone challenge",
            "significance": "First gold for the institute",
            "competitionCategory": "technical",
            "achievementDate": "2024-12-15",
        }
        created = self.client.post(
            "/api/admin/inter-iit-achievements", json=achievement, headers=self.admin
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["id"], "inter-iit-tech-meet-2024")
        self.assertEqual(created.json()["status"], "pending-verification")
        self.assertEqual(self.client.get("/api/inter-iit-achievements").json(), [])

        self.client.put(
            "/api/admin/inter-iit-achievements/inter-iit-tech-meet-2024",
            json={"status": "verified"},
            headers=self.admin,
        )
        public = self.client.get("/api/inter-iit-achievements").json()
        self.assertEqual([a["id"] for a in public], ["inter-iit-tech-meet-2024"])

    # -- admin gate ----------------------------------------------------------

    def test_unauthenticated_write_never_reaches_the_store(self):
        response = self.client.post("/api/admin/events", json=HACK_DAY)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Unauthorized"})
        self.assertNotIn("hack-day", get_registry().store("events").get_all())

    def test_rejected_tokens(self):
        for headers in (
            {"Authorization": "Bearer not-a-jwt"},
            self._auth("student@iitgn.ac.in"),
            {"Authorization": f"Bearer {issue_session_token(ADMIN, 'some-other-secret-value-0123456789')}"},
        ):
            response = self.client.get("/api/admin/events", headers=headers)
            self.assertEqual(response.status_code, 401)

    def test_invalid_body_without_auth_is_still_unauthorized(self):
        response = self.client.post("/api/admin/events", json={"title": ""})
        self.assertEqual(response.status_code, 401)

    def test_session_cookie(self):
        token = issue_session_token(ADMIN, SECRET)
        response = self.client.get(
            "/api/admin/events", headers={"Cookie": f"council_session={token}"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("tech-expo-2024", response.json())

    def test_missing_session_secret_refuses_admin_routes(self):
        with mock.patch.dict(os.environ, {"SESSION_SECRET": ""}):
            reset_dependencies()
            client = TestClient(create_app())
            for secret in (SECRET, "change-me"):
                token = issue_session_token(ADMIN, secret)
                response = client.delete(
                    "/api/admin/events/tech-expo-2024",
                    headers={"Authorization": f"Bearer {token}"},
                )
                self.assertEqual(response.status_code, 401)
            self.assertEqual(client.get("/api/events/tech-expo-2024").status_code, 200)

    # -- settings and admin emails -------------------------------------------

    def test_hiding_hackathons(self):
        hackathon = {
            "name": "HackIITGN",
            "description": "Annual hackathon",
            "date": "2025-02-01",
            "location": "IITGN Campus",
            "category": "software",
        }
        self.client.post("/api/admin/hackathons", json=hackathon, headers=self.admin)
        self.assertEqual(len(self.client.get("/api/hackathons").json()), 1)

        response = self.client.put(
            "/api/admin/settings",
            json={"setting": "hackathonsVisible", "value": False},
            headers=self.admin,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["settings"]["modifiedBy"], ADMIN)

        self.assertEqual(self.client.get("/api/hackathons").json(), [])
        self.assertEqual(self.client.get("/api/hackathons/hackiitgn").status_code, 404)
        self.assertEqual(self.client.get("/api/settings").json(), {"hackathonsVisible": False})
        admin_view = self.client.get("/api/admin/hackathons", headers=self.admin).json()
        self.assertIn("hackiitgn", admin_view)

    def test_unknown_setting_key(self):
        response = self.client.put(
            "/api/admin/settings", json={"setting": "maintenance", "value": True}, headers=self.admin
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid setting key")

    def test_admin_email_lifecycle(self):
        listed = self.client.get("/api/admin/admin-emails", headers=self.admin).json()
        self.assertEqual(listed["adminEmails"], [ADMIN])

        added = self.client.post(
            "/api/admin/admin-emails", json={"email": "New@IITGN.ac.in"}, headers=self.admin
        )
        self.assertEqual(added.status_code, 200)
        self.assertIn("new@iitgn.ac.in", added.json()["adminEmails"])

        new_admin = self._auth("new@iitgn.ac.in")
        self.assertEqual(self.client.get("/api/admin/events", headers=new_admin).status_code, 200)

        removed = self.client.delete(
            "/api/admin/admin-emails/new@iitgn.ac.in", headers=self.admin
        )
        self.assertEqual(removed.status_code, 200)
        self.assertEqual(self.client.get("/api/admin/events", headers=new_admin).status_code, 401)

        configured = self.client.delete(f"/api/admin/admin-emails/{ADMIN}", headers=self.admin)
        self.assertEqual(configured.status_code, 400)
        missing = self.client.delete(
            "/api/admin/admin-emails/ghost@iitgn.ac.in", headers=self.admin
        )
        self.assertEqual(missing.status_code, 404)

    def test_settings_projection_hides_admin_emails(self):
        self.client.post(
            "/api/admin/admin-emails", json={"email": "new@iitgn.ac.in"}, headers=self.admin
        )
        self.assertNotIn("adminEmails", self.client.get("/api/settings").json())

    # -- magazines -----------------------------------------------------------

    def test_latest_magazine(self):
        latest = self.client.get("/api/magazines/latest")
        self.assertEqual(latest.status_code, 200)
        self.assertEqual(latest.json()["id"], "torque-2023")

        magazine = {
            "year": "2024",
            "title": "Future Forward",
            "description": "Robots, rockets and research",
            "pages": 100,
            "articles": 20,
            "featured": "Campus Rover",
            "filePath": "/torque/magazines/torque-2024.pdf",
            "isLatest": True,
        }
        created = self.client.post("/api/admin/magazines", json=magazine, headers=self.admin)
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["id"], "torque-2024-future-forward")
        self.assertEqual(self.client.get("/api/magazines/latest").json()["id"], created.json()["id"])
        old = self.client.get("/api/admin/magazines/torque-2023", headers=self.admin).json()
        self.assertFalse(old["isLatest"])

        response = self.client.post(
            "/api/admin/magazines/torque-2023/set-latest", headers=self.admin
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/api/magazines/latest").json()["id"], "torque-2023")

    # -- contact info and backup ---------------------------------------------

    def test_public_contact_info(self):
        response = self.client.get("/api/contact-info")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(set(body), {"address", "phone", "email", "socialMedia"})
        self.assertEqual(body["address"]["country"], "India")

    def test_contact_field_update_and_reset(self):
        response = self.client.put(
            "/api/admin/contact-info",
            json={"field": "address.city", "value": "Gandhinagar"},
            headers=self.admin,
        )
        self.assertEqual(response.status_code, 200)
        contact = response.json()["contactInfo"]
        self.assertEqual(contact["address"]["city"], "Gandhinagar")
        self.assertEqual(contact["address"]["country"], "India")
        self.assertEqual(contact["modifiedBy"], ADMIN)
        self.assertEqual(
            self.client.get("/api/contact-info").json()["address"]["city"], "Gandhinagar"
        )

        reset = self.client.post("/api/admin/contact-info", headers=self.admin)
        self.assertEqual(reset.status_code, 200)
        self.assertEqual(reset.json()["contactInfo"]["address"]["city"], "Palaj, Gandhinagar")

    def test_contact_full_replace(self):
        contact = self.client.get("/api/contact-info").json()
        contact["phone"] = "+91-79-0000-0000"
        response = self.client.put(
            "/api/admin/contact-info", json={"contactInfo": contact}, headers=self.admin
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/api/contact-info").json()["phone"], "+91-79-0000-0000")

    def test_contact_invalid_updates(self):
        unknown = self.client.put(
            "/api/admin/contact-info", json={"field": "fax", "value": "1"}, headers=self.admin
        )
        self.assertEqual(unknown.status_code, 400)
        empty = self.client.put("/api/admin/contact-info", json={}, headers=self.admin)
        self.assertEqual(empty.status_code, 400)
        self.assertEqual(empty.json()["error"], "Invalid request body")
        anonymous = self.client.put(
            "/api/admin/contact-info", json={"field": "phone", "value": "1"}
        )
        self.assertEqual(anonymous.status_code, 401)

    def test_backup(self):
        self.client.post("/api/admin/events", json=HACK_DAY, headers=self.admin)
        response = self.client.get("/api/admin/backup", headers=self.admin)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(
            response.headers["Content-Disposition"].startswith(
                'attachment; filename="tech-website-backup-'
            )
        )
        self.assertEqual(response.headers["Cache-Control"], "no-cache, no-store, must-revalidate")
        body = response.json()
        self.assertIn("hack-day", body["events"])
        self.assertIn("contact", body["contact"])
        self.assertEqual(body["exportedBy"], ADMIN)
        self.assertIn("exportedAt", body)

    def test_backup_requires_admin(self):
        self.assertEqual(self.client.get("/api/admin/backup").status_code, 401)

    def test_backend_failure_is_a_generic_500(self):
        get_registry().stores["events"] = BlobRecordStore(EVENTS, _BrokenClient())
        response = self.client.get("/api/events")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to fetch events"})

        backup = self.client.get("/api/admin/backup", headers=self.admin)
        self.assertEqual(backup.status_code, 500)
        self.assertEqual(backup.json(), {"error": "Failed to create backup"})

    # -- migration and health ------------------------------------------------

    def test_migrate_endpoint(self):
        get_storage_client().upload_json(
            "events-data.json",
            {
                "legacy-meetup": {
                    "id": "legacy-meetup",
                    "title": "Legacy Meetup",
                    "description": "From the blob era",
                    "date": "2022-11-11",
                    "category": "meetup",
                }
            },
        )
        response = self.client.post("/api/admin/events/migrate", json={}, headers=self.admin)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["migrated"])
        self.assertEqual(body["report"]["migrated"], 1)
        self.assertIn("legacy-meetup", [e["id"] for e in self.client.get("/api/events").json()])

        again = self.client.post("/api/admin/events/migrate", headers=self.admin).json()
        self.assertFalse(again["migrated"])
        self.assertEqual(again["report"]["skipped"], 1)

    def test_migrate_from_the_current_backend_is_rejected(self):
        response = self.client.post(
            "/api/admin/events/migrate", json={"source": "memory"}, headers=self.admin
        )
        self.assertEqual(response.status_code, 400)

    def test_invalid_typed_bodies_are_400_with_field_details(self):
        migrate = self.client.post(
            "/api/admin/events/migrate", json={"mode": "merge"}, headers=self.admin
        )
        self.assertEqual(migrate.status_code, 400)
        self.assertEqual(migrate.json()["error"], "Validation failed")
        self.assertEqual([detail["loc"] for detail in migrate.json()["details"]], [["mode"]])

        email = self.client.post(
            "/api/admin/admin-emails", json={"email": "not-an-email"}, headers=self.admin
        )
        self.assertEqual(email.status_code, 400)
        self.assertEqual(email.json()["details"][0]["loc"], ["email"])

        update = self.client.put(
            "/api/admin/events/tech-expo-2024", json={"draft": "sometimes"}, headers=self.admin
        )
        self.assertEqual(update.status_code, 400)
        self.assertEqual(update.json()["details"][0]["loc"], ["draft"])

    def test_migrate_requires_admin(self):
        response = self.client.post("/api/admin/events/migrate", json={})
        self.assertEqual(response.status_code, 401)

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["backends"]["events"], "memory")


if __name__ == "__main__":
    unittest.main()
