"""
Inkpost Backend — User Request/Response Schemas
=================================================

What:  Pydantic models defining the user-facing API contract.
How:   FastAPI validates JSON bodies against the request models and serializes
       ORM rows through the response models (camelCase keys on the wire).

Request fields are Optional on purpose: a missing field must reach the
service, which answers with its own "Fill in all fields." validation error
instead of FastAPI's generic schema error.

UserResponse has no password field, so a hash can never be serialized.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    password2: Optional[str] = Field(default=None, description="Password confirmation")


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class EditUserRequest(BaseModel):
    """Body of PATCH /api/users/edit-user (camelCase keys accepted)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    confirm_new_password: Optional[str] = None


class UserResponse(BaseModel):
    """
    What:  Public representation of a user.
    Who:   Returned by profile, author listing, change-avatar and edit-user.
    """

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: uuid.UUID = Field(description="Unique user identifier")
    name: str
    email: str
    avatar: Optional[str] = Field(default=None, description="Media filename, served under /uploads")
    posts: int = Field(description="Number of posts authored")
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    token: str = Field(description="Signed bearer token, valid for one day")
    id: uuid.UUID
    name: str


class Identity(BaseModel):
    """Decoded caller information attached to a request by the auth gate."""

    id: uuid.UUID
    name: str
