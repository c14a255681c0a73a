"""
Jokes API Backend — User SQLAlchemy Model
===========================================

What:  ORM model representing the `users` table.
Why:   Maps registered accounts to Python objects for the auth and profile handlers.
Who:   Used by UserService (register, login, profile, availability) and Alembic.

Table Design Rationale:
    - BIGINT identity primary key: joke ownership and token subjects reference it
    - username / email: UNIQUE at the database level; the availability check is
      only a hint, the constraint is what actually rejects a racing duplicate
    - password_hash: bcrypt hash string (never the plain password)
    - display_name: defaults to the username at registration
    - last_seen_at: refreshed on every successful login
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from jokes_api.database import Base

# SQLite only auto-increments INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer, "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered account.

    Lifecycle:
        1. Created on registration (password hashed before insert)
        2. Read on login, /me and availability checks
        3. last_seen_at refreshed on login
        4. Never deleted by the API
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(
        String(30),
        unique=True,
        nullable=False,
        comment="Login name, unique across accounts",
    )

    display_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Public name shown next to jokes",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )

    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="bcrypt hash of the password",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
