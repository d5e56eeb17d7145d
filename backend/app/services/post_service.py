"""
Inkpost Backend — Post Service (Business Logic Orchestrator)
==============================================================

What:  Create, read, update and delete posts; listings by category and author.
How:   Composes the database session and the MediaStore; thumbnail limits come
       from the Settings handed to the service.
Who:   Called by the /api/posts route handlers.

Create Flow (POST /api/posts):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────────┐
    │ Validate │───▶│ Store thumb │───▶│ INSERT post  │───▶│ posts += 1   │
    │ fields   │    │ (MediaStore)│    │              │    │ (atomic)     │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────────┘
    If the INSERT or UPDATE fails, the stored thumbnail is discarded.

Edit/Delete ordering:
    The row change is committed first; the replaced or deleted thumbnail is
    removed afterwards. A file that cannot be removed (already missing,
    permission error) is logged and never blocks the row change.

Post counter:
    Both directions are single UPDATE statements (posts = posts ± 1), so
    concurrent creations or deletions by one user cannot lose updates.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.exceptions import (
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from app.models.post import Category, Post
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.post import PostResponse
from app.schemas.user import Identity
from app.services.media_store import MediaStore, MediaUpload
from app.services.user_service import parse_id

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 12


def _check_category(category: str) -> str:
    if category not in Category.values():
        raise ValidationError(
            f"Category '{category}' is not supported. "
            f"Allowed: {', '.join(Category.values())}",
            field="category",
        )
    return category


class PostService:
    """
    Business logic layer for posts.

    Ownership rule: only the creator may edit or delete a post. The check
    compares the post's creator with the identity decoded by the auth gate.
    """

    def __init__(self, app_settings: Settings, media_store: MediaStore):
        self.settings = app_settings
        self.media = media_store

    @property
    def _too_large_message(self) -> str:
        return f"Thumbnail must be less than {self.settings.max_thumbnail_size / 1_000_000:g} MB."

    async def _adjust_post_count(self, db: AsyncSession, user_id: uuid.UUID, delta: int) -> None:
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(posts=User.posts + delta)
            .execution_options(synchronize_session=False)
        )

    async def _load_owned(self, db: AsyncSession, identity: Identity, post_id: str, action: str) -> Post:
        post = await db.get(Post, parse_id(post_id, "post"))
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        if post.creator != identity.id:
            raise AuthorizationError(
                f"You are not authorized to {action} this post.",
                context={"post_id": str(post.id), "caller": str(identity.id)},
            )
        return post

    # ── Create ────────────────────────────────────────────────────────────

    async def create_post(
        self,
        db: AsyncSession,
        identity: Identity,
        title: Optional[str],
        category: Optional[str],
        description: Optional[str],
        thumbnail: Optional[MediaUpload],
    ) -> PostResponse:
        """
        Store the thumbnail, insert the post and bump the creator's counter.

        Raises:
            ValidationError:   missing field, unknown category, bad thumbnail
            NotFoundError:     the authenticated user no longer exists
            FileStorageError:  the thumbnail could not be written
            DatabaseError:     insert/update failed (thumbnail discarded)
        """
        if not title or not category or not description or thumbnail is None or not thumbnail.filename:
            raise ValidationError("Fill in all the fields and choose a thumbnail.")

        _check_category(category)

        if await db.get(User, identity.id) is None:
            raise NotFoundError(resource="user", resource_id=str(identity.id))

        thumbnail_name = await self.media.store(
            thumbnail,
            max_size=self.settings.max_thumbnail_size,
            too_large_message=self._too_large_message,
            keep_stem=True,
        )

        post = Post(
            title=title,
            category=category,
            description=description,
            thumbnail=thumbnail_name,
            creator=identity.id,
        )
        try:
            db.add(post)
            await db.flush()
            await self._adjust_post_count(db, identity.id, +1)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            await self.media.discard(thumbnail_name)
            logger.error("Database error creating post for %s: %s", identity.id, str(e))
            raise DatabaseError(message="Post could not be created.")

        logger.info("Post created: %s by %s (thumbnail=%s)", post.id, identity.id, thumbnail_name)
        return PostResponse.model_validate(post)

    # ── Read ──────────────────────────────────────────────────────────────

    async def get_posts(self, db: AsyncSession) -> List[PostResponse]:
        """All posts, most recently updated first."""
        result = await db.execute(select(Post).order_by(desc(Post.updated_at)))
        return [PostResponse.model_validate(p) for p in result.scalars().all()]

    async def get_post(self, db: AsyncSession, post_id: str) -> PostResponse:
        post = await db.get(Post, parse_id(post_id, "post"))
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return PostResponse.model_validate(post)

    async def get_category_posts(self, db: AsyncSession, category: str) -> List[PostResponse]:
        """Exact category match, newest first. Unknown categories match nothing."""
        result = await db.execute(
            select(Post)
            .where(Post.category == category)
            .order_by(desc(Post.created_at))
        )
        return [PostResponse.model_validate(p) for p in result.scalars().all()]

    async def get_user_posts(self, db: AsyncSession, user_id: str) -> List[PostResponse]:
        """Posts by one creator, newest first."""
        try:
            creator = uuid.UUID(str(user_id))
        except ValueError:
            return []
        result = await db.execute(
            select(Post)
            .where(Post.creator == creator)
            .order_by(desc(Post.created_at))
        )
        return [PostResponse.model_validate(p) for p in result.scalars().all()]

    # ── Update ────────────────────────────────────────────────────────────

    async def edit_post(
        self,
        db: AsyncSession,
        identity: Identity,
        post_id: str,
        title: Optional[str],
        category: Optional[str],
        description: Optional[str],
        thumbnail: Optional[MediaUpload] = None,
    ) -> PostResponse:
        """
        Update a post owned by the caller.

        Workflow:
            1. Validate fields (description at least 12 characters)
            2. Load the post, 404 if missing, 403 if not the creator
            3. If a new thumbnail came with the request, store it
            4. Update the row and commit
            5. Discard the replaced thumbnail (logged on failure)
        """
        if not title or not category or not description or len(description) < MIN_DESCRIPTION_LENGTH:
            raise ValidationError("Please fill in all fields with valid data.")

        _check_category(category)

        post = await self._load_owned(db, identity, post_id, "edit")

        has_new_thumbnail = thumbnail is not None and bool(thumbnail.filename)
        new_name: Optional[str] = None
        if has_new_thumbnail:
            new_name = await self.media.store(
                thumbnail,
                max_size=self.settings.max_thumbnail_size,
                too_large_message=self._too_large_message,
                keep_stem=True,
            )

        old_name = post.thumbnail
        post.title = title
        post.category = category
        post.description = description
        if new_name:
            post.thumbnail = new_name

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            await self.media.discard(new_name)
            logger.error("Database error editing post %s: %s", post_id, str(e))
            raise DatabaseError(message="Could not update post.")

        if new_name:
            await self.media.discard(old_name)

        logger.info("Post updated: %s (new thumbnail: %s)", post.id, new_name or "no")
        return PostResponse.model_validate(post)

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_post(self, db: AsyncSession, identity: Identity, post_id: str) -> MessageResponse:
        """
        Delete a post owned by the caller and decrement the creator's counter.

        The row delete and counter decrement commit together; the thumbnail
        file is removed afterwards. A thumbnail that is already gone is
        logged and does not keep the post alive.
        """
        post = await self._load_owned(db, identity, post_id, "delete")
        thumbnail_name = post.thumbnail
        post_uuid = post.id

        try:
            await db.delete(post)
            await self._adjust_post_count(db, post.creator, -1)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting post %s: %s", post_id, str(e))
            raise DatabaseError(message="Post could not be deleted.")

        if not await self.media.discard(thumbnail_name):
            logger.warning("Post %s deleted but its thumbnail %s was not removed", post_uuid, thumbnail_name)

        logger.info("Post deleted: %s by %s", post_uuid, identity.id)
        return MessageResponse(message=f"Post {post_uuid} deleted successfully.")
