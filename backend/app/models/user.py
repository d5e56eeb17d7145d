"""
Inkpost Backend — User SQLAlchemy Model
=========================================

What:  ORM model representing the `users` table.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by UserService and PostService (post counter).

Table Design:
    - UUID primary key generated in Python (portable between PostgreSQL and SQLite)
    - email: stored lowercased, unique index backs the duplicate-email check
    - password: bcrypt hash only; response schemas never include it
    - avatar: generated Media Store filename, NULL until the first upload
    - posts: denormalized count of authored posts, changed only through
      atomic UPDATE statements
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered author.

    Lifecycle:
        1. Created on registration (posts = 0, avatar = NULL)
        2. name/email/password replaced together by edit-user
        3. avatar replaced by change-avatar
        4. posts incremented/decremented as the user's posts come and go
        5. Never deleted by any exposed operation
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        comment="Lowercased login email",
    )

    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash, never returned to clients",
    )

    avatar: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default=None,
        comment="Generated filename inside the media store",
    )

    posts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Number of posts authored by this user",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', posts={self.posts})>"
