"""
Inkpost Backend — Password Hashing & Bearer Tokens
====================================================

What:  The two credential primitives: bcrypt password hashes and signed JWTs.
How:   passlib's CryptContext wraps bcrypt (random per-hash salt, configurable
       cost); PyJWT signs and verifies HS256 tokens against the shared secret.
Who:   PasswordHasher is used by UserService (register, login, edit-user).
       TokenService issues tokens on login and verifies them in the auth gate.

bcrypt is CPU bound (~50-100ms at cost 10), so hashing and verification run
in Starlette's threadpool instead of on the event loop.

Token claims:
    sub:  user id (string UUID)
    name: display name at login time
    iat:  issued-at
    exp:  issued-at + settings.access_token_ttl_seconds (one day by default)
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from app.config import Settings
from app.exceptions import AuthenticationError
from app.schemas.user import Identity

logger = logging.getLogger(__name__)


class PasswordHasher:
    """One-way password hashing with a fresh salt per hash."""

    def __init__(self, rounds: int = 10):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self._context.hash, password)

    async def verify(self, password: str, hashed: str) -> bool:
        """Returns False for a mismatch or an unrecognized hash format."""
        try:
            return await run_in_threadpool(self._context.verify, password, hashed)
        except ValueError:
            logger.warning("Stored password hash could not be parsed")
            return False


class TokenService:
    """
    Issues and verifies signed bearer tokens.

    Stateless: verification trusts the signed claims and never touches the
    database.
    """

    def __init__(self, app_settings: Settings):
        self._secret = app_settings.jwt_secret
        self._algorithm = app_settings.jwt_algorithm
        self._ttl = timedelta(seconds=app_settings.access_token_ttl_seconds)

    def issue(self, user_id: uuid.UUID, name: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "name": name,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Identity:
        """
        Decode a token into the caller's identity.

        Raises:
            AuthenticationError: bad signature, expired, or missing claims.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired, please log in again.")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(
                "Invalid token.",
                context={"reason": type(e).__name__},
            )

        try:
            return Identity(id=uuid.UUID(claims["sub"]), name=claims.get("name", ""))
        except (ValueError, TypeError):
            raise AuthenticationError("Invalid token.", context={"reason": "bad_subject"})
