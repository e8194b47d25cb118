#  Secret Board - Secret Service
#
#  Posting and deleting secrets, threaded replies with author-only delete,
#  the public board listing, and the one-time upgrade of legacy
#  flat-string secrets.
#
#  Depends on: db/users.py, models/records.py, exceptions.py
#  Used by:    container.py, app.py (startup migration), routes/secrets.py

import logging
import time
import uuid

from secretboard.db.users import UserStore
from secretboard.exceptions import SecretNotFoundError, UserNotFoundError
from secretboard.models.records import Reply, Secret, User

logger = logging.getLogger("secretboard.secrets")


def _legacy_reply(raw: dict, secret_id: str, now: float) -> Reply:
    return Reply(
        id=str(raw.get("id") or raw.get("_id") or uuid.uuid4()),
        secret_id=secret_id,
        author_id=raw.get("authorId") or raw.get("author_id") or raw.get("author") or "",
        text=raw.get("text") or "",
        created_at=now,
    )


def _legacy_secret(entry, user_id: str, now: float) -> Secret | None:
    """Convert one legacy array entry. Strings become fresh secrets; objects keep their ids."""
    if isinstance(entry, str):
        return Secret(id=str(uuid.uuid4()), owner_id=user_id, text=entry, created_at=now)
    if not isinstance(entry, dict):
        return None

    secret_id = str(entry.get("id") or entry.get("_id") or uuid.uuid4())
    raw_replies = entry.get("replies") or []
    if not isinstance(raw_replies, list):
        logger.warning("Dropping unreadable replies of legacy secret %s: %r", secret_id, raw_replies)
        raw_replies = []

    replies = []
    for raw in raw_replies:
        if not isinstance(raw, dict):
            logger.warning("Skipping unreadable legacy reply on secret %s: %r", secret_id, raw)
            continue
        replies.append(_legacy_reply(raw, secret_id, now))

    return Secret(
        id=secret_id,
        owner_id=user_id,
        text=entry.get("text") or "",
        created_at=now,
        replies=replies,
    )


class SecretService:
    """Mutations on the secrets board. Every secret belongs to exactly one user."""

    def __init__(self, users: UserStore):
        self._users = users

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    async def post_secret(self, user_id: str, text: str) -> Secret:
        if not await self._users.get(user_id):
            raise UserNotFoundError(f"User '{user_id}' not found")
        secret = await self._users.append_secret(user_id, text)
        logger.info("Secret %s posted by %s", secret.id, user_id)
        return secret

    async def delete_secret(self, user_id: str, secret_id: str) -> None:
        """Remove one of user_id's secrets and its replies. Absent ids are ignored."""
        if await self._users.remove_secret(user_id, secret_id):
            logger.info("Secret %s deleted by %s", secret_id, user_id)

    async def list_secrets(self) -> list[User]:
        """All users with at least one secret, secrets and replies populated.

        No filtering by viewer: the board is public.
        """
        return await self._users.list_with_secrets()

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    async def add_reply(self, secret_id: str, text: str, author_id: str) -> Reply:
        secret = await self._users.get_secret(secret_id)
        if not secret:
            raise SecretNotFoundError(f"Secret '{secret_id}' not found")
        reply = await self._users.append_reply(secret.id, author_id, text)
        logger.info("Reply %s added to secret %s by %s", reply.id, secret.id, author_id)
        return reply

    async def delete_reply(self, secret_id: str, reply_id: str, requester_id: str) -> bool:
        """Remove a reply if requester_id wrote it.

        Missing secret, missing reply and non-author requests are all silent
        no-ops. Returns True only when a reply was removed.
        """
        secret = await self._users.get_secret(secret_id)
        if not secret:
            return False
        reply = secret.find_reply(reply_id)
        if not reply:
            return False
        if reply.author_id != requester_id:
            logger.info(
                "Ignoring delete of reply %s by non-author %s", reply_id, requester_id
            )
            return False
        return await self._users.remove_reply(secret_id, reply_id)

    # ------------------------------------------------------------------
    # Legacy upgrade
    # ------------------------------------------------------------------

    async def migrate_legacy_secrets(self) -> int:
        """Convert users still holding flat string secrets. Returns users migrated.

        Run once at startup. Migrated users no longer match the legacy filter,
        so later runs find nothing and return 0.
        """
        legacy = await self._users.find_legacy_users()
        if not legacy:
            return 0

        now = time.time()
        for user_id, entries in legacy:
            converted = []
            for entry in entries:
                secret = _legacy_secret(entry, user_id, now)
                if secret is None:
                    logger.warning("Skipping unreadable legacy secret for user %s: %r", user_id, entry)
                    continue
                converted.append(secret)
            await self._users.replace_legacy_secrets(user_id, converted)

        logger.info("Migrated legacy secrets for %d user(s)", len(legacy))
        return len(legacy)
