import importlib
import os
import unittest
from unittest.mock import patch

from sqlalchemy import create_engine

import main
import seminar_settings
from seminar_db import RegistrationStore


class AppWiringTests(unittest.TestCase):
    def setUp(self):
        self.client = main.app.test_client()

    def test_seminar_blueprint_is_mounted_at_root(self):
        rules = {rule.rule for rule in main.app.url_map.iter_rules()}
        self.assertIn("/", rules)
        self.assertIn("/submit", rules)
        self.assertIn("/api/seminar/registrations", rules)

    def test_healthz_reports_missing_database(self):
        with patch.object(main, "STORE", RegistrationStore(None)):
            resp = self.client.get("/healthz")
        self.assertEqual(resp.status_code, 500)

    def test_healthz_ok_with_database(self):
        engine = create_engine("sqlite://", future=True)
        self.addCleanup(engine.dispose)
        with patch.object(main, "STORE", RegistrationStore(engine)):
            resp = self.client.get("/healthz")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_data(as_text=True), "ok")

    def test_secure_session_cookie_follows_environment(self):
        self.assertTrue(main.app.config["SESSION_COOKIE_SECURE"])
        self.addCleanup(importlib.reload, seminar_settings)

        with patch.dict(os.environ, {"SESSION_COOKIE_SECURE": "false"}):
            importlib.reload(seminar_settings)
        self.assertFalse(seminar_settings.SESSION_COOKIE_SECURE)

    def test_robots_txt(self):
        resp = self.client.get("/robots.txt")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.mimetype, "text/plain")


if __name__ == "__main__":
    unittest.main()
