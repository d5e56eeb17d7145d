"""
Inkpost Backend — User Service
================================

What:  Registration, login, profiles, author listing, avatar and profile edits.
How:   Composes the database session, PasswordHasher, TokenService and
       MediaStore. Receives its limits from the Settings handed to it.
Who:   Called by the /api/users route handlers.

Error mapping:
    missing/invalid input, duplicate email, password rules → ValidationError (422)
    unknown user                                            → NotFoundError (404)
    unexpected SQLAlchemy failure                           → DatabaseError (500)

Login never reveals which of email/password was wrong: both cases raise the
same ValidationError message.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.user import Identity, LoginResponse, UserResponse
from app.security import PasswordHasher, TokenService
from app.services.media_store import MediaStore, MediaUpload

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid email or password."


def parse_id(raw: str, resource: str) -> uuid.UUID:
    """Path ids that are not UUIDs cannot match any row."""
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise NotFoundError(resource=resource, resource_id=str(raw))


def _check_password_rules(password: str, confirmation: str) -> None:
    if len(password.strip()) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
            field="password",
        )
    if password != confirmation:
        raise ValidationError("Passwords do not match.", field="password")


class UserService:
    """
    Business logic layer for user accounts.

    Stateless per request: the db session is passed to every call.
    """

    def __init__(
        self,
        app_settings: Settings,
        media_store: MediaStore,
        hasher: PasswordHasher,
        tokens: TokenService,
    ):
        self.settings = app_settings
        self.media = media_store
        self.hasher = hasher
        self.tokens = tokens

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(
        self,
        db: AsyncSession,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        password2: Optional[str],
    ) -> MessageResponse:
        """
        Create an account. Does not log the user in.

        Check order: required fields → duplicate email → length → confirmation.
        """
        if not name or not email or not password or not password2:
            raise ValidationError("Fill in all fields.")

        new_email = email.lower()

        if await self._find_by_email(db, new_email) is not None:
            raise ValidationError("User already exists.", field="email")

        _check_password_rules(password, password2)

        user = User(
            name=name,
            email=new_email,
            password=await self.hasher.hash(password),
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await db.rollback()
            raise ValidationError("User already exists.", field="email")
        except SQLAlchemyError as e:
            logger.error("Database error registering %s: %s", new_email, str(e))
            raise DatabaseError(message="User registration failed.")

        logger.info("User registered: %s (%s)", user.id, new_email)
        return MessageResponse(message=f"New user {user.email} registered")

    async def login(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> LoginResponse:
        if not email or not password:
            raise ValidationError("Fill in all fields.")

        user = await self._find_by_email(db, email.lower())
        if user is None:
            raise ValidationError(INVALID_CREDENTIALS)

        if not await self.hasher.verify(password, user.password):
            raise ValidationError(INVALID_CREDENTIALS)

        token = self.tokens.issue(user.id, user.name)
        logger.info("User logged in: %s", user.id)
        return LoginResponse(token=token, id=user.id, name=user.name)

    async def get_user(self, db: AsyncSession, user_id: str) -> UserResponse:
        user = await db.get(User, parse_id(user_id, "user"))
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return UserResponse.model_validate(user)

    async def get_authors(self, db: AsyncSession) -> List[UserResponse]:
        result = await db.execute(select(User).order_by(User.created_at))
        return [UserResponse.model_validate(u) for u in result.scalars().all()]

    async def change_avatar(
        self,
        db: AsyncSession,
        identity: Identity,
        avatar: Optional[MediaUpload],
    ) -> UserResponse:
        """
        Replace the caller's avatar.

        Workflow:
            1. Require a file and an existing user
            2. Store the new file under a fresh UUID name (type/size checked)
            3. Point the user row at it and commit
            4. Discard the previous file (failure is logged only)

        If the row update fails the new file is discarded instead.
        """
        if avatar is None or not avatar.filename:
            raise ValidationError("Please choose an image.", field="avatar")

        user = await db.get(User, identity.id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(identity.id))

        new_name = await self.media.store(
            avatar,
            max_size=self.settings.max_avatar_size,
            too_large_message=(
                f"Image must be less than or equal to {self.settings.max_avatar_size // 1000}kb."
            ),
        )

        old_name = user.avatar
        user.avatar = new_name
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            await self.media.discard(new_name)
            logger.error("Database error updating avatar for %s: %s", identity.id, str(e))
            raise DatabaseError(message="Avatar could not be updated.")

        if old_name:
            await self.media.discard(old_name)

        logger.info("Avatar changed for user %s: %s", user.id, new_name)
        return UserResponse.model_validate(user)

    async def edit_user(
        self,
        db: AsyncSession,
        identity: Identity,
        name: Optional[str],
        email: Optional[str],
        current_password: Optional[str],
        new_password: Optional[str],
        confirm_new_password: Optional[str],
    ) -> UserResponse:
        """
        Replace name, email and password together.

        The current password must verify before anything changes.
        """
        if not all([name, email, current_password, new_password, confirm_new_password]):
            raise ValidationError("Fill in all fields.")

        user = await db.get(User, identity.id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(identity.id))

        new_email = email.lower()
        owner = await self._find_by_email(db, new_email)
        if owner is not None and owner.id != user.id:
            raise ValidationError("Email already registered.", field="email")

        if not await self.hasher.verify(current_password, user.password):
            raise ValidationError("Invalid current password.", field="currentPassword")

        # Only registration enforces a minimum length
        if new_password != confirm_new_password:
            raise ValidationError("Passwords do not match.", field="newPassword")

        user.name = name
        user.email = new_email
        user.password = await self.hasher.hash(new_password)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ValidationError("Email already registered.", field="email")
        except SQLAlchemyError as e:
            logger.error("Database error editing user %s: %s", identity.id, str(e))
            raise DatabaseError(message="Could not update user details.")

        logger.info("User details updated: %s", user.id)
        return UserResponse.model_validate(user)
