import contextlib
import io
import json
import os
import tempfile
import unittest
from unittest import mock

from council.auth import decode_session_token
from council.cli import EXIT_BATCH_FAILED, EXIT_OK, EXIT_RECORD_ERRORS, main
from council.dependencies import reset_dependencies

SECRET = "cli-test-session-secret-with-enough-bytes"


class CliTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        env = mock.patch.dict(
            os.environ,
            {
                "DATA_DIR": self.tmp.name,
                "DATABASE_URL": f"sqlite+pysqlite:///{os.path.join(self.tmp.name, 'council.db')}",
                "SESSION_SECRET": SECRET,
                "LOG_LEVEL": "WARNING",
            },
        )
        env.start()
        self.addCleanup(env.stop)
        reset_dependencies()
        self.addCleanup(reset_dependencies)

    def _write_legacy_events(self, records):
        with open(os.path.join(self.tmp.name, "events.json"), "w", encoding="utf-8") as f:
            json.dump(records, f)

    def _run(self, *argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main(list(argv))
        return code, out.getvalue()

    def test_migrate_file_to_database_twice(self):
        self._write_legacy_events(
            {
                "demo-night": {
                    "id": "demo-night",
                    "title": "Demo Night",
                    "description": "Projects on stage",
                    "date": "2023-04-01",
                    "category": "showcase",
                }
            }
        )

        code, out = self._run(
            "migrate", "--type", "events", "--source", "file", "--target", "database", "--json"
        )
        self.assertEqual(code, EXIT_OK)
        report = json.loads(out)[0]
        self.assertEqual(report["migrated"], 1)
        self.assertEqual(report["total"], 1)

        code, out = self._run(
            "migrate", "--type", "events", "--source", "file", "--target", "database", "--json"
        )
        self.assertEqual(code, EXIT_OK)
        self.assertEqual(json.loads(out)[0]["skipped"], 1)

    def test_record_errors_exit_one(self):
        self._write_legacy_events({"broken": {"id": "broken", "description": "no title"}})
        code, out = self._run(
            "migrate", "--type", "events", "--source", "file", "--target", "database"
        )
        self.assertEqual(code, EXIT_RECORD_ERRORS)
        self.assertIn("broken", out)

    def test_same_source_and_target_is_refused(self):
        code, _ = self._run("migrate", "--type", "events", "--source", "file", "--target", "file")
        self.assertEqual(code, EXIT_BATCH_FAILED)

    def test_issue_token(self):
        code, out = self._run("issue-token", "--email", "admin@iitgn.ac.in", "--ttl", "60")
        self.assertEqual(code, EXIT_OK)
        payload = decode_session_token(out.strip(), SECRET)
        self.assertEqual(payload["email"], "admin@iitgn.ac.in")
        self.assertEqual(payload["exp"] - payload["iat"], 60)

    def test_issue_token_without_secret_fails(self):
        with mock.patch.dict(os.environ, {"SESSION_SECRET": ""}):
            reset_dependencies()
            code, out = self._run("issue-token", "--email", "admin@iitgn.ac.in")
        self.assertEqual(code, EXIT_BATCH_FAILED)
        self.assertEqual(out, "")


if __name__ == "__main__":
    unittest.main()
