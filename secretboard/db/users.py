#  Secret Board - Credential Store
#
#  Persists users and the secrets/replies they own. Secrets and replies
#  live in their own tables keyed by id, so any secret can be found by id
#  without knowing its owner.
#
#  Depends on: db/connection.py, models/records.py, exceptions.py
#  Used by:    container.py, services/auth.py, services/oauth.py,
#              services/session.py, services/secret_service.py

import json
import logging
import sqlite3
import time
import uuid

from secretboard.db.connection import Database
from secretboard.exceptions import (
    AccountLinkError,
    DuplicateEmailError,
    SecretNotFoundError,
    UserNotFoundError,
)
from secretboard.models.records import Reply, Secret, User

logger = logging.getLogger("secretboard.store")


def normalize_email(email: str | None) -> str | None:
    """Canonical stored form: trimmed, with the domain lowercased.

    Matches what the registration schema's email validation produces, so
    lookups from login and OAuth agree with stored rows.
    """
    if email is None:
        return None
    local, sep, domain = email.strip().rpartition("@")
    if not sep:
        return email.strip()
    return f"{local}@{domain.lower()}"


def _assemble(secret_rows: list[sqlite3.Row], reply_rows: list[sqlite3.Row]) -> list[Secret]:
    """Attach reply rows to their secrets, keeping both orderings."""
    secrets = [Secret.from_row(r) for r in secret_rows]
    by_id = {s.id: s for s in secrets}
    for row in reply_rows:
        parent = by_id.get(row["secret_id"])
        if parent is not None:
            parent.replies.append(Reply.from_row(row))
    return secrets


class UserStore:
    """User records plus their nested secrets and replies."""

    def __init__(self, db: Database):
        self._db = db

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get(self, user_id: str) -> User | None:
        row = await self._db.fetchone("SELECT * FROM users WHERE id = ?", (user_id,))
        return User.from_row(row) if row else None

    async def find_by_email(self, email: str) -> User | None:
        row = await self._db.fetchone(
            "SELECT * FROM users WHERE email = ?", (normalize_email(email),)
        )
        return User.from_row(row) if row else None

    async def find_by_subject_or_email(self, subject_id: str, email: str) -> User | None:
        """First user whose OAuth subject id or email matches."""
        row = await self._db.fetchone(
            "SELECT * FROM users WHERE oauth_subject_id = ? OR email = ? LIMIT 1",
            (subject_id, normalize_email(email)),
        )
        return User.from_row(row) if row else None

    async def create(
        self,
        *,
        email: str | None = None,
        password_hash: str | None = None,
        oauth_subject_id: str | None = None,
    ) -> User:
        """Insert a new user. The UNIQUE constraints decide races, not a pre-check."""
        email = normalize_email(email)
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            oauth_subject_id=oauth_subject_id,
            created_at=time.time(),
        )
        try:
            async with self._db.transaction() as conn:
                await conn.execute(
                    "INSERT INTO users (id, email, password_hash, oauth_subject_id, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (user.id, email, password_hash, oauth_subject_id, user.created_at),
                )
        except sqlite3.IntegrityError as e:
            if "users.email" in str(e):
                raise DuplicateEmailError("User already registered") from e
            if "users.oauth_subject_id" in str(e):
                raise AccountLinkError("This OAuth account is already linked to another user") from e
            raise
        return user

    async def link_oauth_subject(self, user_id: str, subject_id: str) -> bool:
        """Set the OAuth subject id on a user that has none. Returns True if set."""
        try:
            async with self._db.transaction() as conn:
                cursor = await conn.execute(
                    "UPDATE users SET oauth_subject_id = ? "
                    "WHERE id = ? AND oauth_subject_id IS NULL",
                    (subject_id, user_id),
                )
        except sqlite3.IntegrityError as e:
            raise AccountLinkError("This OAuth account is already linked to another user") from e
        return cursor.rowcount > 0

    async def list_with_secrets(self) -> list[User]:
        """Every user owning at least one secret, secrets and replies loaded."""
        user_rows = await self._db.fetchall(
            "SELECT * FROM users WHERE EXISTS "
            "(SELECT 1 FROM secrets WHERE secrets.user_id = users.id) "
            "ORDER BY created_at, id"
        )
        secret_rows = await self._db.fetchall("SELECT * FROM secrets ORDER BY position")
        reply_rows = await self._db.fetchall("SELECT * FROM replies ORDER BY position")

        users = [User.from_row(r) for r in user_rows]
        by_id = {u.id: u for u in users}
        for secret in _assemble(secret_rows, reply_rows):
            owner = by_id.get(secret.owner_id)
            if owner is not None:
                owner.secrets.append(secret)
        return users

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    async def get_secret(self, secret_id: str) -> Secret | None:
        row = await self._db.fetchone("SELECT * FROM secrets WHERE id = ?", (secret_id,))
        if not row:
            return None
        reply_rows = await self._db.fetchall(
            "SELECT * FROM replies WHERE secret_id = ? ORDER BY position", (secret_id,)
        )
        return _assemble([row], reply_rows)[0]

    async def append_secret(self, user_id: str, text: str) -> Secret:
        secret = Secret(id=str(uuid.uuid4()), owner_id=user_id, text=text, created_at=time.time())
        try:
            async with self._db.transaction() as conn:
                cursor = await conn.execute(
                    "SELECT COALESCE(MAX(position), -1) + 1 FROM secrets WHERE user_id = ?",
                    (user_id,),
                )
                (position,) = await cursor.fetchone()
                await conn.execute(
                    "INSERT INTO secrets (id, user_id, text, position, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (secret.id, user_id, text, position, secret.created_at),
                )
        except sqlite3.IntegrityError as e:
            raise UserNotFoundError(f"User '{user_id}' not found") from e
        return secret

    async def remove_secret(self, user_id: str, secret_id: str) -> bool:
        """Delete one of the user's secrets; replies go with it (FK cascade)."""
        cursor = await self._db.execute_write(
            "DELETE FROM secrets WHERE id = ? AND user_id = ?", (secret_id, user_id)
        )
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    async def append_reply(self, secret_id: str, author_id: str, text: str) -> Reply:
        reply = Reply(
            id=str(uuid.uuid4()),
            secret_id=secret_id,
            author_id=author_id,
            text=text,
            created_at=time.time(),
        )
        try:
            async with self._db.transaction() as conn:
                cursor = await conn.execute(
                    "SELECT COALESCE(MAX(position), -1) + 1 FROM replies WHERE secret_id = ?",
                    (secret_id,),
                )
                (position,) = await cursor.fetchone()
                await conn.execute(
                    "INSERT INTO replies (id, secret_id, author_id, text, position, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (reply.id, secret_id, author_id, text, position, reply.created_at),
                )
        except sqlite3.IntegrityError as e:
            raise SecretNotFoundError(f"Secret '{secret_id}' not found") from e
        return reply

    async def remove_reply(self, secret_id: str, reply_id: str) -> bool:
        cursor = await self._db.execute_write(
            "DELETE FROM replies WHERE id = ? AND secret_id = ?", (reply_id, secret_id)
        )
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Legacy flat-string secrets
    # ------------------------------------------------------------------

    async def find_legacy_users(self) -> list[tuple[str, list]]:
        """Users whose legacy_secrets array starts with a plain string.

        Returns (user_id, decoded entries) pairs.
        """
        rows = await self._db.fetchall(
            "SELECT id, legacy_secrets FROM users WHERE "
            "CASE WHEN json_valid(legacy_secrets) "
            "THEN json_type(legacy_secrets, '$[0]') END = 'text' "
            "ORDER BY created_at, id"
        )
        return [(row["id"], json.loads(row["legacy_secrets"])) for row in rows]

    async def replace_legacy_secrets(self, user_id: str, secrets: list[Secret]) -> None:
        """Append converted secrets after any existing ones and clear the legacy column."""
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                "SELECT COALESCE(MAX(position), -1) + 1 FROM secrets WHERE user_id = ?",
                (user_id,),
            )
            (position,) = await cursor.fetchone()
            for offset, secret in enumerate(secrets):
                await conn.execute(
                    "INSERT INTO secrets (id, user_id, text, position, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (secret.id, user_id, secret.text, position + offset, secret.created_at),
                )
                for reply_pos, reply in enumerate(secret.replies):
                    await conn.execute(
                        "INSERT INTO replies (id, secret_id, author_id, text, position, created_at) "
                        "VALUES (?, ?, ?, ?, ?, ?)",
                        (reply.id, secret.id, reply.author_id, reply.text, reply_pos, reply.created_at),
                    )
            await conn.execute(
                "UPDATE users SET legacy_secrets = NULL WHERE id = ?", (user_id,)
            )
        logger.debug("Stored %d migrated secret(s) for user %s", len(secrets), user_id)
