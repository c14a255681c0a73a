"""
Jokes API Backend — Favorite SQLAlchemy Model
===============================================

What:  Join table between users and jokes.
How:   Composite primary key (user_id, joke_id): a second insert of the same
       pair is a uniqueness violation, reported as duplicate_resource.
       Deleting a joke removes its favorites (ON DELETE CASCADE).
"""

from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from jokes_api.database import Base
from jokes_api.models.user import utcnow


class Favorite(Base):
    __tablename__ = "favorites"

    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id"),
        primary_key=True,
    )

    joke_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("jokes.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # Favorites lists are ordered newest-first on this column
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Favorite(user_id={self.user_id}, joke_id={self.joke_id})>"
