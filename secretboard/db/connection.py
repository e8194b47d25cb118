#  Secret Board - Database Connection
#
#  Async SQLite manager with WAL mode and transaction support.
#  Production uses Alembic migrations; tests use inline schema for speed.
#
#  Depends on: secretboard/db/migrate.py (optional, for production migrations)
#  Used by:    container.py (via DI), db/users.py, db/sessions.py, tests

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

logger = logging.getLogger("secretboard.db")


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

# users.legacy_secrets holds the pre-migration JSON array of plain strings.
# It is NULL for every user created after the nested secrets tables existed.
_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT UNIQUE,
    password_hash TEXT,
    oauth_subject_id TEXT UNIQUE,
    legacy_secrets TEXT,
    created_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS secrets (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    text TEXT NOT NULL,
    position INTEGER NOT NULL,
    created_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS replies (
    id TEXT PRIMARY KEY,
    secret_id TEXT NOT NULL REFERENCES secrets(id) ON DELETE CASCADE,
    author_id TEXT NOT NULL,
    text TEXT NOT NULL,
    position INTEGER NOT NULL,
    created_at REAL NOT NULL
);

-- Indexes
CREATE INDEX IF NOT EXISTS idx_secrets_user ON secrets(user_id, position);
CREATE INDEX IF NOT EXISTS idx_replies_secret ON replies(secret_id, position);
CREATE INDEX IF NOT EXISTS idx_replies_author ON replies(author_id);
"""


# ---------------------------------------------------------------------------
# Database class
# ---------------------------------------------------------------------------

class Database:
    """Async SQLite database with WAL mode.

    Uses aiosqlite which runs SQLite on a dedicated background thread,
    so no threading.Lock is needed on our side.
    """

    schema = _SCHEMA

    def __init__(self):
        self._conn: aiosqlite.Connection | None = None
        self._path: Path | None = None
        self._in_transaction: bool = False
        self._tx_lock: asyncio.Lock = asyncio.Lock()
        self._tx_owner: asyncio.Task | None = None

    async def init(self, db_path: str | Path, *, run_migrations: bool = False):
        """Open or create the database and apply schema.

        Args:
            db_path: Path to the SQLite database file.
            run_migrations: If True, use Alembic migrations (production).
                            If False, use inline schema (tests, faster).
        """
        self._path = Path(db_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

        if run_migrations:
            from secretboard.db.migrate import run_migrations as _migrate
            await asyncio.to_thread(_migrate, self._path)

        self._conn = await aiosqlite.connect(str(self._path))
        self._conn.row_factory = sqlite3.Row
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA foreign_keys=ON")

        if not run_migrations:
            await self._conn.executescript(self.schema)
            await self._conn.commit()

        await self._after_open()

        logger.info("Database initialized at %s", self._path)

    async def _after_open(self):
        """Hook for subclasses that tidy stored state once the file is open."""

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not initialized. Call await db.init() first.")
        return self._conn

    @asynccontextmanager
    async def transaction(self):
        """Atomic read+write transaction. Rolls back on exception.

        Uses BEGIN IMMEDIATE to acquire a write lock upfront, preventing
        other writers from interleaving. An asyncio.Lock serializes
        concurrent coroutines sharing the same connection, so a second
        coroutine waits until the first transaction commits/rolls back.

        Safe to nest within the same task — if the current asyncio task
        already owns a transaction, inner calls are no-ops (SQLite doesn't
        support true nested transactions without SAVEPOINTs). Different
        tasks wait on the lock.
        """
        current = asyncio.current_task()
        if self._in_transaction and self._tx_owner is current:
            yield self.conn
            return

        async with self._tx_lock:
            self._in_transaction = True
            self._tx_owner = current
            try:
                await self.conn.execute("BEGIN IMMEDIATE")
                try:
                    yield self.conn
                    await self.conn.commit()
                except Exception:
                    await self.conn.rollback()
                    raise
            finally:
                self._in_transaction = False
                self._tx_owner = None

    async def execute_write(self, sql: str, params: tuple | list = ()) -> aiosqlite.Cursor:
        """Execute a write query and commit.

        Inside a transaction() block owned by the calling task, participates
        in that transaction (no auto-commit). Otherwise it waits for any open
        transaction to finish and commits on its own.
        """
        async with self.transaction() as conn:
            cursor = await conn.execute(sql, params)
        return cursor

    async def fetchone(self, sql: str, params: tuple | list = ()) -> sqlite3.Row | None:
        cursor = await self.conn.execute(sql, params)
        return await cursor.fetchone()

    async def fetchall(self, sql: str, params: tuple | list = ()) -> list[sqlite3.Row]:
        cursor = await self.conn.execute(sql, params)
        return await cursor.fetchall()

    async def close(self):
        """Close the database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None
