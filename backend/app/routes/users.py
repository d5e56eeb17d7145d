"""
Inkpost Backend — User Route Handlers
=======================================

What:  /api/users endpoints: register, login, profile, authors, avatar, edit.
How:   Reads JSON or form bodies and multipart files, delegates to UserService,
       returns the service's response model.

Route Inventory:
    POST  /api/users/register        none    201 {"message"}
    POST  /api/users/login           none    200 {token, id, name}
    GET   /api/users/{user_id}       none    200 user
    GET   /api/users                 none    200 [user]
    POST  /api/users/change-avatar   bearer  200 user   (multipart: avatar)
    PATCH /api/users/edit-user       bearer  200 user

Handlers stay thin; status codes for failures come from the exception
handlers registered in main.py.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_identity, get_user_service, json_or_form, read_upload
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import (
    EditUserRequest,
    Identity,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserResponse,
)
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post(
    "/register",
    status_code=201,
    response_model=MessageResponse,
    responses={422: {"description": "Missing fields, duplicate email or password rules", "model": ErrorResponse}},
    summary="Register a new user",
)
async def register(
    body: RegisterRequest = Depends(json_or_form(RegisterRequest)),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    return await users.register(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        password2=body.password2,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={422: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Log in and receive a bearer token",
)
async def login(
    body: LoginRequest = Depends(json_or_form(LoginRequest)),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> LoginResponse:
    return await users.login(db, email=body.email, password=body.password)


@router.post(
    "/change-avatar",
    response_model=UserResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        422: {"description": "No image, unsupported type or over 500kb", "model": ErrorResponse},
    },
    summary="Replace the caller's avatar",
)
async def change_avatar(
    avatar: Optional[UploadFile] = File(default=None, description="Image file, max 500kb"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    upload = await read_upload(avatar)
    logger.info(
        "Received avatar upload from %s: filename=%s, size=%d bytes",
        identity.id,
        upload.filename if upload else "none",
        upload.size if upload else 0,
    )
    return await users.change_avatar(db, identity, upload)


@router.patch(
    "/edit-user",
    response_model=UserResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        422: {"description": "Missing fields, email taken or password rules", "model": ErrorResponse},
    },
    summary="Edit the caller's name, email and password",
)
async def edit_user(
    identity: Identity = Depends(get_current_identity),
    body: EditUserRequest = Depends(json_or_form(EditUserRequest)),
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    return await users.edit_user(
        db,
        identity,
        name=body.name,
        email=body.email,
        current_password=body.current_password,
        new_password=body.new_password,
        confirm_new_password=body.confirm_new_password,
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user profile",
)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    return await users.get_user(db, user_id)


@router.get(
    "",
    response_model=List[UserResponse],
    summary="List all authors",
)
async def get_authors(
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> List[UserResponse]:
    return await users.get_authors(db)
