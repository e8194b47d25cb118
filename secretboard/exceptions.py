#  Secret Board - Custom Exceptions
#
#  Typed exception hierarchy so routes can map business errors to HTTP
#  status codes without pattern-matching on message strings.
#
#  Depends on: (none)
#  Used by:    db/users.py, services/*, routes/*, app.py

class SecretBoardError(Exception):
    """Base exception for all secret board business logic errors."""


class NotFoundError(SecretBoardError):
    """Resource (user, secret) does not exist."""


class UserNotFoundError(NotFoundError):
    """No user with the given id."""


class SecretNotFoundError(NotFoundError):
    """No user owns a secret with the given id."""


class DuplicateEmailError(SecretBoardError):
    """Another user already holds this email address."""


class AuthenticationError(SecretBoardError):
    """Local login failed.

    Subclasses tell the two causes apart for logging and tests; the message
    is the same for both so callers cannot leak which one happened.
    """

    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(message)


class UnknownAccountError(AuthenticationError):
    """No user is registered under the given email."""


class BadCredentialsError(AuthenticationError):
    """The password does not match, or the account has no password."""


class OAuthError(SecretBoardError):
    """The OAuth provider handshake or profile was unusable."""


class MissingEmailError(OAuthError):
    """The provider profile carries no (verified) email address."""


class AccountLinkError(SecretBoardError):
    """An OAuth identity is already bound to a different user."""
