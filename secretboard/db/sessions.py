#  Secret Board - Session Store
#
#  Server-side session records keyed by an opaque token. Lives in its own
#  SQLite file so it can be swapped without touching the credential store.
#
#  Depends on: db/connection.py
#  Used by:    container.py, services/session.py

import logging
import secrets
import sqlite3
import time

from secretboard.db.connection import Database

logger = logging.getLogger("secretboard.sessions")

_SESSION_SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    token TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    created_at REAL NOT NULL,
    expires_at REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_sessions_user ON sessions(user_id);
CREATE INDEX IF NOT EXISTS idx_sessions_expires ON sessions(expires_at);
"""


class SessionDatabase(Database):
    """Database holding only session records. Always uses the inline schema."""

    schema = _SESSION_SCHEMA

    async def init(self, db_path, *, run_migrations: bool = False):
        # Session records are disposable; there is no migration history.
        await super().init(db_path, run_migrations=False)

    async def _after_open(self):
        """Drop sessions that expired while the server was down."""
        cursor = await self.conn.execute(
            "DELETE FROM sessions WHERE expires_at <= ?", (time.time(),)
        )
        if cursor.rowcount > 0:
            logger.info("Purged %d expired session(s)", cursor.rowcount)
        await self.conn.commit()


class SessionStore:
    """create/read/destroy over session records."""

    def __init__(self, db: SessionDatabase, ttl_seconds: float):
        self._db = db
        self._ttl = ttl_seconds

    async def create(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        now = time.time()
        await self._db.execute_write(
            "INSERT INTO sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
            (token, user_id, now, now + self._ttl),
        )
        return token

    async def read(self, token: str) -> sqlite3.Row | None:
        """Return the live session row for token, or None if unknown or expired."""
        return await self._db.fetchone(
            "SELECT * FROM sessions WHERE token = ? AND expires_at > ?",
            (token, time.time()),
        )

    async def destroy(self, token: str) -> bool:
        cursor = await self._db.execute_write(
            "DELETE FROM sessions WHERE token = ?", (token,)
        )
        return cursor.rowcount > 0
