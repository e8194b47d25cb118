#  Secret Board - Migration Tests
#
#  Runs the Alembic migrations against real SQLite files: a fresh database,
#  and a pre-Alembic database still holding flat string secrets.
#
#  Depends on: secretboard/db/migrate.py, secretboard/migrations/
#  Used by:    pytest

import json
import sqlite3

from secretboard.db.connection import Database
from secretboard.db.migrate import run_migrations
from secretboard.db.users import UserStore
from secretboard.services.secret_service import SecretService


def _columns(path, table):
    with sqlite3.connect(path) as conn:
        return {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}


def _tables(path):
    with sqlite3.connect(path) as conn:
        return {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}


class TestFreshDatabase:
    def test_creates_full_schema(self, tmp_path):
        path = tmp_path / "fresh.db"
        run_migrations(path)

        assert {"users", "secrets", "replies", "alembic_version"} <= _tables(path)
        assert {"oauth_subject_id", "legacy_secrets"} <= _columns(path, "users")
        assert "google_id" not in _columns(path, "users")

    def test_rerun_is_harmless(self, tmp_path):
        path = tmp_path / "fresh.db"
        run_migrations(path)
        run_migrations(path)
        with sqlite3.connect(path) as conn:
            (version,) = conn.execute("SELECT version_num FROM alembic_version").fetchone()
        assert version == "002"


class TestPreAlembicDatabase:
    def _old_database(self, path):
        with sqlite3.connect(path) as conn:
            conn.execute(
                "CREATE TABLE users (id TEXT PRIMARY KEY, email TEXT UNIQUE, password_hash TEXT, "
                "google_id TEXT, secrets TEXT NOT NULL DEFAULT '[]', created_at REAL NOT NULL DEFAULT 0)"
            )
            conn.execute(
                "INSERT INTO users (id, email, google_id, secrets, created_at) VALUES (?, ?, ?, ?, ?)",
                ("u-old", "old@test.com", "g-1", json.dumps(["whisper", "murmur"]), 1.0),
            )

    def test_columns_renamed_and_data_kept(self, tmp_path):
        path = tmp_path / "old.db"
        self._old_database(path)

        run_migrations(path)

        with sqlite3.connect(path) as conn:
            row = conn.execute(
                "SELECT oauth_subject_id, legacy_secrets FROM users WHERE id = 'u-old'"
            ).fetchone()
        assert row[0] == "g-1"
        assert json.loads(row[1]) == ["whisper", "murmur"]

    async def test_startup_upgrade_converts_strings(self, tmp_path):
        path = tmp_path / "old.db"
        self._old_database(path)

        db = Database()
        await db.init(path, run_migrations=True)
        try:
            service = SecretService(users=UserStore(db=db))
            assert await service.migrate_legacy_secrets() == 1
            board = await service.list_secrets()
            assert [s.text for s in board[0].secrets] == ["whisper", "murmur"]
            assert await service.migrate_legacy_secrets() == 0
        finally:
            await db.close()
