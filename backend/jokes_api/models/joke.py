"""
Jokes API Backend — Joke SQLAlchemy Model
===========================================

What:  ORM model representing the `jokes` table.
Who:   Used by JokeService for CRUD and listing; by Alembic for schema management.

Table Design Rationale:
    - author_id is NULLABLE and has no ON DELETE rule: removing an author never
      cascades into their jokes. Author-less jokes can be read by anyone and
      modified by no one (the ownership check never matches NULL).
    - title: optional, at most 200 characters
    - body: required; the CHECK constraint backs up the validation layer's
      "non-empty" rule at the database level
    - score / views: popularity inputs for sort=popular; views is bumped on reads
    - created_at index: the default listing is newest-first
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from jokes_api.database import Base
from jokes_api.models.user import IdType, utcnow


class Joke(Base):
    """
    A joke, optionally owned by a user.

    Query Patterns:
        - Listing: filters on author username / language, ORDER BY created_at,
          score+views, or random; LIMIT/OFFSET pagination
        - Single read: WHERE id = :id, then views = views + 1
        - Owner write: UPDATE/DELETE ... WHERE id = :id AND author_id = :user_id
    """

    __tablename__ = "jokes"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    author_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("users.id"),
        nullable=True,
        comment="Owning user; NULL when the joke has no author",
    )

    title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    body: Mapped[str] = mapped_column(Text, nullable=False)

    language: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="ru",
        server_default=text("'ru'"),
    )

    score: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    views: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0, server_default=text("0")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint("length(body) > 0", name="ck_jokes_body_not_empty"),
        Index("idx_jokes_created_at", created_at.desc()),
        Index("idx_jokes_language", "language"),
        Index("idx_jokes_author_id", "author_id"),
    )

    def __repr__(self) -> str:
        return f"<Joke(id={self.id}, author_id={self.author_id}, language='{self.language}')>"
