"""
Inkpost Backend — Post Route Handlers
=======================================

What:  /api/posts endpoints: create, list, detail, edit, delete, and the
       by-author / by-category listings.
How:   Multipart form fields and the optional thumbnail file are read here
       and handed to PostService.

Route Inventory:
    POST   /api/posts                          bearer  201 post
    GET    /api/posts                          none    200 [post]  (updatedAt desc)
    GET    /api/posts/users/{user_id}          none    200 [post]  (createdAt desc)
    GET    /api/posts/categories/{category}    none    200 [post]  (createdAt desc)
    GET    /api/posts/{post_id}                none    200 post
    PATCH  /api/posts/{post_id}                bearer  200 post
    DELETE /api/posts/{post_id}                bearer  200 {"message"}
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_identity, get_post_service, read_upload
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.post import PostResponse
from app.schemas.user import Identity
from app.services.post_service import PostService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["Posts"])

_AUTH_RESPONSES = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Caller is not the post's creator", "model": ErrorResponse},
    404: {"description": "Post not found", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=201,
    response_model=PostResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        422: {"description": "Missing fields, bad category or thumbnail", "model": ErrorResponse},
    },
    summary="Create a post with a thumbnail",
)
async def create_post(
    title: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    thumbnail: Optional[UploadFile] = File(default=None, description="Image file, max 2MB"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    upload = await read_upload(thumbnail)
    return await posts.create_post(
        db,
        identity,
        title=title,
        category=category,
        description=description,
        thumbnail=upload,
    )


@router.get("", response_model=List[PostResponse], summary="List all posts")
async def get_posts(
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    return await posts.get_posts(db)


@router.get(
    "/users/{user_id}",
    response_model=List[PostResponse],
    summary="List posts written by one author",
)
async def get_user_posts(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    return await posts.get_user_posts(db, user_id)


@router.get(
    "/categories/{category}",
    response_model=List[PostResponse],
    summary="List posts in a category",
)
async def get_category_posts(
    category: str,
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    return await posts.get_category_posts(db, category)


@router.get(
    "/{post_id}",
    response_model=PostResponse,
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Get a single post",
)
async def get_post(
    post_id: str,
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    return await posts.get_post(db, post_id)


@router.patch(
    "/{post_id}",
    response_model=PostResponse,
    responses={**_AUTH_RESPONSES, 422: {"description": "Invalid fields or thumbnail", "model": ErrorResponse}},
    summary="Edit a post (creator only)",
)
async def edit_post(
    post_id: str,
    title: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    thumbnail: Optional[UploadFile] = File(default=None, description="Replacement image, max 2MB"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    upload = await read_upload(thumbnail)
    return await posts.edit_post(
        db,
        identity,
        post_id,
        title=title,
        category=category,
        description=description,
        thumbnail=upload,
    )


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    responses=_AUTH_RESPONSES,
    summary="Delete a post (creator only)",
)
async def delete_post(
    post_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> MessageResponse:
    return await posts.delete_post(db, identity, post_id)
