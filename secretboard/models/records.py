#  Secret Board - Domain Records
#
#  Plain dataclasses for users, their secrets and the replies under them.
#  Built by db/users.py from rows; handed to services and routes.
#
#  Depends on: (none)
#  Used by:    db/users.py, services/*, routes/*

import sqlite3
from dataclasses import dataclass, field


@dataclass
class Reply:
    id: str
    secret_id: str
    author_id: str
    text: str
    created_at: float

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Reply":
        return cls(
            id=row["id"],
            secret_id=row["secret_id"],
            author_id=row["author_id"],
            text=row["text"],
            created_at=row["created_at"],
        )


@dataclass
class Secret:
    id: str
    owner_id: str
    text: str
    created_at: float
    replies: list[Reply] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Secret":
        return cls(
            id=row["id"],
            owner_id=row["user_id"],
            text=row["text"],
            created_at=row["created_at"],
        )

    def find_reply(self, reply_id: str) -> Reply | None:
        for reply in self.replies:
            if reply.id == reply_id:
                return reply
        return None


@dataclass
class User:
    """Identity record. Secrets are only populated by board listings."""

    id: str
    email: str | None
    password_hash: str | None
    oauth_subject_id: str | None
    created_at: float
    secrets: list[Secret] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "User":
        return cls(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            oauth_subject_id=row["oauth_subject_id"],
            created_at=row["created_at"],
        )

    @property
    def has_password(self) -> bool:
        return self.password_hash is not None
