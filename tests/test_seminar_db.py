import os
import tempfile
import unittest
from unittest.mock import patch

from sqlalchemy import create_engine

import seminar_db
from seminar_db import DatabaseUnavailable, RegistrationStore


RECORD = {
    "company_name": "テスト機械株式会社",
    "name": "山田太郎",
    "position": "営業部長",
    "email": "test@example.com",
    "phone": "090-1234-5678",
    "challenge": "見積作成に時間がかかる",
}


class RegistrationStoreTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite://", future=True)
        self.store = RegistrationStore(self.engine)
        self.store.ensure_schema()

    def tearDown(self):
        self.engine.dispose()

    def test_create_returns_insert_id_and_stamps_created_at(self):
        first = self.store.create(RECORD)
        second = self.store.create(dict(RECORD, email="other@example.com"))

        self.assertEqual(first, 1)
        self.assertEqual(second, 2)

        rows = {row["id"]: row for row in self.store.list_all()}
        self.assertEqual(set(rows), {1, 2})
        stored = rows[1]
        for key, value in RECORD.items():
            self.assertEqual(stored[key], value)
        self.assertIsNotNone(stored["created_at"])

    def test_missing_challenge_is_stored_as_null(self):
        record = dict(RECORD)
        record.pop("challenge")

        self.store.create(record)

        self.assertIsNone(self.store.list_all()[0]["challenge"])

    def test_list_all_is_empty_for_new_table(self):
        self.assertEqual(self.store.list_all(), [])


class UnavailableStoreTests(unittest.TestCase):
    def setUp(self):
        self.store = RegistrationStore(None)

    def test_create_raises_database_not_available(self):
        with self.assertRaises(DatabaseUnavailable) as ctx:
            self.store.create(RECORD)
        self.assertEqual(str(ctx.exception), "Database not available")

    def test_list_all_returns_empty_list(self):
        self.assertEqual(self.store.list_all(), [])

    def test_ensure_schema_is_a_no_op(self):
        self.store.ensure_schema()
        self.assertFalse(self.store.available)


class EngineConfigurationTests(unittest.TestCase):
    def test_no_configuration_means_no_engine(self):
        with patch.dict(os.environ, {}, clear=True):
            store = RegistrationStore.from_env()
        self.assertFalse(store.available)

    def test_database_url_is_used_and_schema_created(self):
        with patch.dict(os.environ, {"DATABASE_URL": "sqlite://"}, clear=True):
            store = RegistrationStore.from_env(create_schema=True)
        self.assertTrue(store.available)
        self.assertEqual(store.create(RECORD), 1)
        store.engine.dispose()

    def test_discrete_params_build_postgres_url(self):
        env = {
            "DB_USER": "seminar",
            "DB_PASS": "secret",
            "DB_NAME": "lp",
            "DB_HOST": "db.internal",
            "DB_PORT": "5433",
        }
        with patch.dict(os.environ, env, clear=True):
            url = seminar_db._sqlalchemy_url()
        self.assertEqual(url.drivername, "postgresql+psycopg2")
        self.assertEqual(url.host, "db.internal")
        self.assertEqual(url.port, 5433)
        self.assertEqual(url.database, "lp")

    def test_unreachable_database_keeps_engine(self):
        with patch.dict(os.environ, {"DATABASE_URL": "sqlite:////nonexistent-dir/lp.db"}, clear=True):
            store = RegistrationStore.from_env(create_schema=True)
        self.addCleanup(store.engine.dispose)

        self.assertTrue(store.available)
        with self.assertRaises(Exception) as ctx:
            store.create(RECORD)
        self.assertNotIsInstance(ctx.exception, DatabaseUnavailable)

    def test_store_recovers_when_database_comes_up_after_startup(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        db_dir = os.path.join(tmp.name, "data")
        url = "sqlite:///" + os.path.join(db_dir, "lp.db")

        with patch.dict(os.environ, {"DATABASE_URL": url}, clear=True):
            store = RegistrationStore.from_env(create_schema=True)
        self.addCleanup(store.engine.dispose)

        os.mkdir(db_dir)

        self.assertEqual(store.create(RECORD), 1)
        self.assertEqual(len(store.list_all()), 1)

    def test_invalid_url_means_no_engine(self):
        with patch.dict(os.environ, {"DATABASE_URL": "not a url"}, clear=True):
            self.assertIsNone(seminar_db.create_engine_from_env())


if __name__ == "__main__":
    unittest.main()
