"""Nested secrets: secrets/replies tables, OAuth subject column.

The old users.secrets column is kept as users.legacy_secrets. Its string
entries are converted into rows by SecretService.migrate_legacy_secrets()
at application startup.

Revision ID: 002
Revises: 001
Create Date: 2025-03-02
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.alter_column(
            "google_id",
            new_column_name="oauth_subject_id",
            existing_type=sa.Text,
        )
        batch_op.alter_column(
            "secrets",
            new_column_name="legacy_secrets",
            existing_type=sa.Text,
            nullable=True,
            server_default=None,
        )
    op.create_index(
        "uq_users_oauth_subject_id", "users", ["oauth_subject_id"], unique=True
    )

    op.create_table(
        "secrets",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column(
            "user_id",
            sa.Text,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("created_at", sa.Float, nullable=False),
    )
    op.create_index("idx_secrets_user", "secrets", ["user_id", "position"])

    op.create_table(
        "replies",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column(
            "secret_id",
            sa.Text,
            sa.ForeignKey("secrets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("author_id", sa.Text, nullable=False),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("created_at", sa.Float, nullable=False),
    )
    op.create_index("idx_replies_secret", "replies", ["secret_id", "position"])
    op.create_index("idx_replies_author", "replies", ["author_id"])


def downgrade() -> None:
    op.drop_index("idx_replies_author")
    op.drop_index("idx_replies_secret")
    op.drop_table("replies")
    op.drop_index("idx_secrets_user")
    op.drop_table("secrets")

    op.drop_index("uq_users_oauth_subject_id")
    op.execute("UPDATE users SET legacy_secrets = '[]' WHERE legacy_secrets IS NULL")
    with op.batch_alter_table("users") as batch_op:
        batch_op.alter_column(
            "legacy_secrets",
            new_column_name="secrets",
            existing_type=sa.Text,
            nullable=False,
            server_default="[]",
        )
        batch_op.alter_column(
            "oauth_subject_id",
            new_column_name="google_id",
            existing_type=sa.Text,
        )
