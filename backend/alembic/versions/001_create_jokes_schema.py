"""Create users, jokes, favorites and comments tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  The initial schema. See jokes_api/models/ for per-column notes.

Constraints the API relies on:
    users.username / users.email UNIQUE  → duplicate_username / duplicate_email (409)
    favorites PK (user_id, joke_id)      → duplicate_resource (409)
    favorites.joke_id / comments.joke_id → reference_error (400) on a missing joke
    ck_jokes_body_not_empty              → validation_error (400)

jokes.author_id has no ON DELETE rule: removing a user never removes jokes.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("username", sa.String(30), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False, comment="bcrypt hash of the password"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="users_pkey"),
        sa.UniqueConstraint("username", name="users_username_key"),
        sa.UniqueConstraint("email", name="users_email_key"),
    )

    op.create_table(
        "jokes",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("author_id", sa.BigInteger(), nullable=True),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("language", sa.String(10), server_default=sa.text("'ru'"), nullable=False),
        sa.Column("score", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("views", sa.BigInteger(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="jokes_pkey"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], name="jokes_author_id_fkey"),
        sa.CheckConstraint("length(body) > 0", name="ck_jokes_body_not_empty"),
    )
    # Default listing order is newest first
    op.create_index(
        "idx_jokes_created_at",
        "jokes",
        [sa.text("created_at DESC")],
    )
    op.create_index("idx_jokes_language", "jokes", ["language"])
    op.create_index("idx_jokes_author_id", "jokes", ["author_id"])

    op.create_table(
        "favorites",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("joke_id", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "joke_id", name="favorites_pkey"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="favorites_user_id_fkey"),
        sa.ForeignKeyConstraint(
            ["joke_id"], ["jokes.id"], name="favorites_joke_id_fkey", ondelete="CASCADE"
        ),
    )

    op.create_table(
        "comments",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("joke_id", sa.BigInteger(), nullable=False),
        sa.Column("author_id", sa.BigInteger(), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="comments_pkey"),
        sa.ForeignKeyConstraint(
            ["joke_id"], ["jokes.id"], name="comments_joke_id_fkey", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], name="comments_author_id_fkey"),
    )
    op.create_index("idx_comments_joke_id", "comments", ["joke_id"])


def downgrade() -> None:
    op.drop_index("idx_comments_joke_id", table_name="comments")
    op.drop_table("comments")
    op.drop_table("favorites")
    op.drop_index("idx_jokes_author_id", table_name="jokes")
    op.drop_index("idx_jokes_language", table_name="jokes")
    op.drop_index("idx_jokes_created_at", table_name="jokes")
    op.drop_table("jokes")
    op.drop_table("users")
