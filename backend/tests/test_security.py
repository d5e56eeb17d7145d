"""
Inkpost Backend — Password Hashing & Token Tests
==================================================

What:  Tests for PasswordHasher and TokenService.

What we test:
    ✅ Hashes are salted and verify only the original password
    ✅ Garbage hashes verify as False instead of raising
    ✅ Tokens round-trip the identity
    ✅ Expired, tampered and foreign-secret tokens raise AuthenticationError
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.exceptions import AuthenticationError
from app.security import PasswordHasher, TokenService


class TestPasswordHasher:
    def setup_method(self):
        self.hasher = PasswordHasher(rounds=4)

    @pytest.mark.asyncio
    async def test_hash_is_salted(self):
        first = await self.hasher.hash("secret1")
        second = await self.hasher.hash("secret1")
        assert first != second
        assert first != "secret1"

    @pytest.mark.asyncio
    async def test_verify(self):
        hashed = await self.hasher.hash("secret1")
        assert await self.hasher.verify("secret1", hashed) is True
        assert await self.hasher.verify("secret2", hashed) is False

    @pytest.mark.asyncio
    async def test_verify_unparseable_hash_is_false(self):
        assert await self.hasher.verify("secret1", "not-a-bcrypt-hash") is False


class TestTokenService:
    @pytest.fixture(autouse=True)
    def _tokens(self, test_settings):
        self.settings = test_settings
        self.tokens = TokenService(test_settings)

    def test_issue_and_verify(self):
        user_id = uuid.uuid4()
        identity = self.tokens.verify(self.tokens.issue(user_id, "Ada"))
        assert identity.id == user_id
        assert identity.name == "Ada"

    def test_expiry_is_one_day_by_default(self):
        token = self.tokens.issue(uuid.uuid4(), "Ada")
        claims = jwt.decode(token, self.settings.jwt_secret, algorithms=["HS256"])
        assert claims["exp"] - claims["iat"] == 86_400

    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(days=2)
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "name": "Ada", "iat": past, "exp": past + timedelta(days=1)},
            self.settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError, match="expired"):
            self.tokens.verify(token)

    def test_tampered_token_rejected(self):
        token = self.tokens.issue(uuid.uuid4(), "Ada")
        with pytest.raises(AuthenticationError, match="Invalid token."):
            self.tokens.verify(token[:-2] + ("AA" if token[-2:] != "AA" else "BB"))

    def test_foreign_secret_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "some-other-secret-that-is-also-long-enough",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            self.tokens.verify(token)

    def test_non_uuid_subject_rejected(self):
        token = jwt.encode(
            {"sub": "not-a-uuid", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            self.settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError, match="Invalid token."):
            self.tokens.verify(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            self.tokens.verify("not.a.jwt")
