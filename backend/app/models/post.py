"""
Inkpost Backend — Post SQLAlchemy Model
=========================================

What:  ORM model representing the `posts` table, plus the category enumeration.
Who:   Used by PostService for CRUD operations and by Alembic for schema management.

Query Patterns:
    - All posts:        ORDER BY updated_at DESC       → idx_posts_updated_at
    - By category:      WHERE category = :c ORDER BY created_at DESC
                                                        → idx_posts_category
    - By author:        WHERE creator = :id ORDER BY created_at DESC
                                                        → idx_posts_creator
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Category(str, enum.Enum):
    """Allowed post categories."""

    AGRICULTURE = "Agriculture"
    BUSINESS = "Business"
    WEATHER = "Weather"
    ART = "Art"
    UNCATEGORIZED = "Uncategorized"
    ENTERTAINMENT = "Entertainment"
    EDUCATION = "Education"

    @classmethod
    def values(cls) -> list:
        return [member.value for member in cls]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Post(Base):
    """
    A blog post with an image thumbnail.

    Lifecycle:
        1. Created by its creator (thumbnail file already in the media store)
        2. Edited only by the creator; updated_at moves on every edit
        3. Deleted only by the creator, together with its thumbnail file
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # Stored as plain text; rows that predate validation may hold NULL
    category: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="One of Category values",
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)

    thumbnail: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Generated filename inside the media store",
    )

    # Immutable after creation
    creator: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
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

    __table_args__ = (
        Index("idx_posts_updated_at", "updated_at"),
        Index("idx_posts_category", "category"),
        Index("idx_posts_creator", "creator"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title='{self.title}', creator={self.creator})>"
