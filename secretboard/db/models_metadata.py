#  Secret Board - SQLAlchemy Table Metadata
#
#  Declarative Table definitions for Alembic autogenerate.
#  These mirror the SQLite schema but are NOT used at runtime —
#  the app still uses raw SQL via aiosqlite.
#
#  Depends on: (none)
#  Used by:    migrations/env.py (Alembic autogenerate)

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Text, primary_key=True),
    Column("email", Text, unique=True),
    Column("password_hash", Text, nullable=True),
    Column("oauth_subject_id", Text),
    Column("legacy_secrets", Text, nullable=True),
    Column("created_at", Float, nullable=False, server_default="0"),
)

secrets = Table(
    "secrets",
    metadata,
    Column("id", Text, primary_key=True),
    Column("user_id", Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("text", Text, nullable=False),
    Column("position", Integer, nullable=False),
    Column("created_at", Float, nullable=False),
)

replies = Table(
    "replies",
    metadata,
    Column("id", Text, primary_key=True),
    Column("secret_id", Text, ForeignKey("secrets.id", ondelete="CASCADE"), nullable=False),
    Column("author_id", Text, nullable=False),
    Column("text", Text, nullable=False),
    Column("position", Integer, nullable=False),
    Column("created_at", Float, nullable=False),
)

Index("uq_users_oauth_subject_id", users.c.oauth_subject_id, unique=True)
Index("idx_secrets_user", secrets.c.user_id, secrets.c.position)
Index("idx_replies_secret", replies.c.secret_id, replies.c.position)
Index("idx_replies_author", replies.c.author_id)
