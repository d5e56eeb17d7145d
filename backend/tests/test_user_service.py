"""
Inkpost Backend — User Service Unit Tests
===========================================

What:  Tests for UserService against an in-memory SQLite database.

What we test:
    ✅ Registration: required fields, duplicate email, password rules, hashing
    ✅ Login: token issued, identical errors for unknown email / bad password
    ✅ Profiles and author listing (never expose the hash)
    ✅ Avatar replacement removes the previous file
    ✅ Edit user: current password check, email conflicts, rehash
    ✅ Database failures surface as DatabaseError
"""

import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.user import User
from app.schemas.user import Identity
from app.services.media_store import MediaUpload


async def _register(service, db, email="ada@example.com", password="secret1", name="Ada"):
    await service.register(db, name=name, email=email, password=password, password2=password)
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one()


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_success(self, user_service, db_session):
        result = await user_service.register(
            db_session, name="Ada", email="Ada@Example.com", password="secret1", password2="secret1"
        )
        assert result.message == "New user ada@example.com registered"

        user = (await db_session.execute(select(User))).scalar_one()
        assert user.email == "ada@example.com"
        assert user.password != "secret1"
        assert user.posts == 0
        assert user.avatar is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["name", "email", "password", "password2"])
    async def test_register_missing_field(self, user_service, db_session, missing):
        fields = {"name": "Ada", "email": "a@example.com", "password": "secret1", "password2": "secret1"}
        fields[missing] = ""
        with pytest.raises(ValidationError, match="Fill in all fields."):
            await user_service.register(db_session, **fields)

    @pytest.mark.asyncio
    async def test_register_duplicate_email_case_insensitive(self, user_service, db_session):
        await _register(user_service, db_session, email="ada@example.com")
        with pytest.raises(ValidationError, match="User already exists."):
            await user_service.register(
                db_session, name="Other", email="ADA@example.com", password="secret1", password2="secret1"
            )

    @pytest.mark.asyncio
    async def test_password_length_boundary(self, user_service, db_session):
        with pytest.raises(ValidationError, match="at least 6 characters"):
            await user_service.register(
                db_session, name="Ada", email="a@example.com", password="12345", password2="12345"
            )
        result = await user_service.register(
            db_session, name="Ada", email="a@example.com", password="123456", password2="123456"
        )
        assert "registered" in result.message

    @pytest.mark.asyncio
    async def test_password_whitespace_does_not_count(self, user_service, db_session):
        with pytest.raises(ValidationError, match="at least 6 characters"):
            await user_service.register(
                db_session, name="Ada", email="a@example.com", password="  abc  ", password2="  abc  "
            )

    @pytest.mark.asyncio
    async def test_password_mismatch(self, user_service, db_session):
        with pytest.raises(ValidationError, match="Passwords do not match."):
            await user_service.register(
                db_session, name="Ada", email="a@example.com", password="secret1", password2="secret2"
            )


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_returns_verifiable_token(self, user_service, token_service, db_session):
        user = await _register(user_service, db_session)

        result = await user_service.login(db_session, email="ADA@example.com", password="secret1")

        assert result.id == user.id
        assert result.name == "Ada"
        assert token_service.verify(result.token).id == user.id

    @pytest.mark.asyncio
    async def test_unknown_email_and_bad_password_look_identical(self, user_service, db_session):
        await _register(user_service, db_session)

        with pytest.raises(ValidationError) as unknown:
            await user_service.login(db_session, email="nobody@example.com", password="secret1")
        with pytest.raises(ValidationError) as wrong:
            await user_service.login(db_session, email="ada@example.com", password="wrong-password")

        assert unknown.value.message == wrong.value.message == "Invalid email or password."

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, user_service, db_session):
        with pytest.raises(ValidationError, match="Fill in all fields."):
            await user_service.login(db_session, email="ada@example.com", password=None)


class TestProfiles:
    @pytest.mark.asyncio
    async def test_get_user(self, user_service, db_session):
        user = await _register(user_service, db_session)
        profile = await user_service.get_user(db_session, str(user.id))

        assert profile.id == user.id
        assert "password" not in profile.model_dump()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [str(uuid.uuid4()), "not-a-uuid"])
    async def test_get_user_not_found(self, user_service, db_session, user_id):
        with pytest.raises(NotFoundError, match="User not found."):
            await user_service.get_user(db_session, user_id)

    @pytest.mark.asyncio
    async def test_get_authors(self, user_service, db_session):
        await _register(user_service, db_session, email="a@example.com", name="A")
        await _register(user_service, db_session, email="b@example.com", name="B")

        authors = await user_service.get_authors(db_session)

        assert {a.name for a in authors} == {"A", "B"}


class TestChangeAvatar:
    @pytest.mark.asyncio
    async def test_requires_file(self, user_service, db_session):
        user = await _register(user_service, db_session)
        with pytest.raises(ValidationError, match="Please choose an image."):
            await user_service.change_avatar(db_session, Identity(id=user.id, name=user.name), None)

    @pytest.mark.asyncio
    async def test_replaces_previous_file(self, user_service, media_store, db_session, png_bytes):
        user = await _register(user_service, db_session)
        identity = Identity(id=user.id, name=user.name)

        first = await user_service.change_avatar(db_session, identity, MediaUpload("me.png", png_bytes))
        assert media_store.exists(first.avatar)

        second = await user_service.change_avatar(db_session, identity, MediaUpload("me2.png", png_bytes))

        assert second.avatar != first.avatar
        assert media_store.exists(second.avatar)
        assert not media_store.exists(first.avatar)

    @pytest.mark.asyncio
    async def test_oversized_avatar_rejected(self, user_service, media_store, db_session):
        user = await _register(user_service, db_session)
        with pytest.raises(ValidationError, match="Image must be less than or equal to 500kb."):
            await user_service.change_avatar(
                db_session,
                Identity(id=user.id, name=user.name),
                MediaUpload("big.png", b"x" * 500_001),
            )
        assert list(media_store.storage_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, user_service, db_session, png_bytes):
        with pytest.raises(NotFoundError):
            await user_service.change_avatar(
                db_session, Identity(id=uuid.uuid4(), name="Ghost"), MediaUpload("me.png", png_bytes)
            )

    @pytest.mark.asyncio
    async def test_commit_failure_discards_new_file(self, user_service, media_store, mock_db_session, png_bytes):
        user = MagicMock(id=uuid.uuid4(), avatar=None)
        mock_db_session.get.return_value = user
        mock_db_session.commit.side_effect = SQLAlchemyError("connection lost")

        with pytest.raises(DatabaseError):
            await user_service.change_avatar(
                mock_db_session, Identity(id=user.id, name="Ada"), MediaUpload("me.png", png_bytes)
            )

        mock_db_session.rollback.assert_awaited_once()
        assert list(media_store.storage_root.iterdir()) == []


class TestEditUser:
    def _edit(self, **overrides):
        fields = {
            "name": "Ada L.",
            "email": "ada.l@example.com",
            "current_password": "secret1",
            "new_password": "secret2",
            "confirm_new_password": "secret2",
        }
        fields.update(overrides)
        return fields

    @pytest.mark.asyncio
    async def test_edit_success_rehashes(self, user_service, db_session):
        user = await _register(user_service, db_session)
        identity = Identity(id=user.id, name=user.name)

        result = await user_service.edit_user(db_session, identity, **self._edit())

        assert result.name == "Ada L."
        assert result.email == "ada.l@example.com"
        login = await user_service.login(db_session, email="ada.l@example.com", password="secret2")
        assert login.id == user.id

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, user_service, db_session):
        user = await _register(user_service, db_session)
        with pytest.raises(ValidationError, match="Invalid current password."):
            await user_service.edit_user(
                db_session, Identity(id=user.id, name=user.name), **self._edit(current_password="nope12")
            )

    @pytest.mark.asyncio
    async def test_email_owned_by_someone_else(self, user_service, db_session):
        user = await _register(user_service, db_session, email="ada@example.com")
        await _register(user_service, db_session, email="taken@example.com", name="B")
        with pytest.raises(ValidationError, match="Email already registered."):
            await user_service.edit_user(
                db_session, Identity(id=user.id, name=user.name), **self._edit(email="taken@example.com")
            )

    @pytest.mark.asyncio
    async def test_keeping_own_email_is_allowed(self, user_service, db_session):
        user = await _register(user_service, db_session, email="ada@example.com")
        result = await user_service.edit_user(
            db_session, Identity(id=user.id, name=user.name), **self._edit(email="ada@example.com")
        )
        assert result.email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_new_password_mismatch(self, user_service, db_session):
        user = await _register(user_service, db_session)
        with pytest.raises(ValidationError, match="Passwords do not match."):
            await user_service.edit_user(
                db_session, Identity(id=user.id, name=user.name), **self._edit(confirm_new_password="other12")
            )

    @pytest.mark.asyncio
    async def test_short_new_password_accepted(self, user_service, db_session):
        user = await _register(user_service, db_session)
        identity = Identity(id=user.id, name=user.name)

        result = await user_service.edit_user(
            db_session,
            identity,
            **self._edit(email="ada@example.com", new_password="abc", confirm_new_password="abc"),
        )

        assert result.email == "ada@example.com"
        login = await user_service.login(db_session, email="ada@example.com", password="abc")
        assert login.id == user.id

    @pytest.mark.asyncio
    async def test_missing_field(self, user_service, db_session):
        user = await _register(user_service, db_session)
        with pytest.raises(ValidationError, match="Fill in all fields."):
            await user_service.edit_user(
                db_session, Identity(id=user.id, name=user.name), **self._edit(new_password=None)
            )
