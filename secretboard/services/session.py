#  Secret Board - Session Identity Manager
#
#  Turns a logged-in user into a session token and a token back into the
#  current user record. Sessions live in the session store; users are looked
#  up fresh from the credential store on every call.
#
#  Depends on: db/sessions.py, db/users.py
#  Used by:    container.py, middleware/auth.py, routes/auth.py, routes/auth_oauth.py

import logging

from secretboard.db.sessions import SessionStore
from secretboard.db.users import UserStore
from secretboard.models.records import User

logger = logging.getLogger("secretboard.session")


class SessionManager:
    def __init__(self, sessions: SessionStore, users: UserStore):
        self._sessions = sessions
        self._users = users

    async def serialize(self, user: User) -> str:
        """Start a session for user and return its opaque token."""
        token = await self._sessions.create(user.id)
        logger.debug("Session started for user %s", user.id)
        return token

    async def deserialize(self, token: str | None) -> User | None:
        """Resolve a token to the user's current record.

        None means "not logged in": no token, unknown or expired token, or the
        user has since been removed.
        """
        if not token:
            return None
        session = await self._sessions.read(token)
        if not session:
            return None
        user = await self._users.get(session["user_id"])
        if not user:
            logger.info("Session refers to missing user %s", session["user_id"])
        return user

    async def invalidate(self, token: str | None) -> None:
        if token and await self._sessions.destroy(token):
            logger.debug("Session ended")
