#  Secret Board - Auth Service
#
#  Password hashing, local registration and email/password login.
#
#  Depends on: db/users.py, config.py, exceptions.py
#  Used by:    container.py, routes/auth.py

import logging

import bcrypt

from secretboard.config import AUTH_BCRYPT_ROUNDS
from secretboard.db.users import UserStore
from secretboard.exceptions import (
    BadCredentialsError,
    DuplicateEmailError,
    UnknownAccountError,
)
from secretboard.models.records import User

logger = logging.getLogger("secretboard.auth")

# bcrypt only looks at the first 72 bytes and newer releases reject longer input
_BCRYPT_MAX_BYTES = 72

# Pre-computed dummy hash for timing-safe login (prevents timing side-channel)
_DUMMY_HASH = bcrypt.hashpw(b"dummy-password-for-timing", bcrypt.gensalt()).decode()


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class AuthService:
    """Handles user registration and password login."""

    def __init__(self, users: UserStore):
        self._users = users

    # ------------------------------------------------------------------
    # Password helpers
    # ------------------------------------------------------------------

    @staticmethod
    def hash_password(password: str) -> str:
        return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=AUTH_BCRYPT_ROUNDS)).decode()

    @staticmethod
    def verify_password(plain: str, hashed: str | None) -> bool:
        """Check plain against hashed. An absent or malformed hash never matches."""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode())
        except ValueError:
            return False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register(self, email: str, password: str) -> User:
        """Create a password account.

        The lookup only gives a friendlier early exit; concurrent registrations
        are settled by the store's UNIQUE constraint.
        """
        if await self._users.find_by_email(email):
            raise DuplicateEmailError("User already registered")

        user = await self._users.create(email=email, password_hash=self.hash_password(password))
        logger.info("User registered: %s", user.id)
        return user

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user for a matching email/password pair.

        Raises UnknownAccountError or BadCredentialsError; both carry the same
        message and take the same time, so callers can't tell them apart.
        """
        user = await self._users.find_by_email(email)

        if not user:
            self.verify_password(password, _DUMMY_HASH)
            raise UnknownAccountError()

        if not user.has_password:
            # OAuth-only account: no local login, same cost as a real check
            self.verify_password(password, _DUMMY_HASH)
            raise BadCredentialsError()

        if not self.verify_password(password, user.password_hash):
            raise BadCredentialsError()

        logger.info("User logged in: %s", user.id)
        return user
