"""
Jokes API Backend — Comment SQLAlchemy Model
==============================================

What:  Comments left on a joke. Counted into `comments_count` on the single-joke read.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Index, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from jokes_api.database import Base
from jokes_api.models.user import IdType, utcnow


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    joke_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("jokes.id", ondelete="CASCADE"),
        nullable=False,
    )

    author_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("users.id"),
        nullable=True,
    )

    body: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_comments_joke_id", "joke_id"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, joke_id={self.joke_id})>"
