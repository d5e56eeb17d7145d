"""
Inkpost Backend — Request Dependencies (Auth Gate & Service Lookup)
=====================================================================

What:  FastAPI dependencies shared by the routers.
How:   Services are built once by create_app() and kept on app.state; these
       functions hand them to route handlers. get_current_identity is the
       auth gate for protected routes. json_or_form reads account request
       bodies sent either as JSON or as a form.

Auth gate contract:
    Authorization: Bearer <token>
        header missing / other scheme  → AuthenticationError (401)
        bad signature / expired        → AuthenticationError (401)
        valid                          → Identity(id, name)
    No database lookup: the signed claims are trusted as-is.
"""

from typing import Awaitable, Callable, Optional, Type, TypeVar

from fastapi import Depends, Request, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.exceptions import AuthenticationError, ValidationError
from app.schemas.user import Identity
from app.security import TokenService
from app.services.media_store import MediaStore, MediaUpload
from app.services.post_service import PostService
from app.services.user_service import UserService

# auto_error=False: a missing header comes back as None so the gate can raise
# the application's own AuthenticationError
bearer_scheme = HTTPBearer(auto_error=False, description="Token returned by /api/users/login")

BodyModel = TypeVar("BodyModel", bound=BaseModel)


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_media_store(request: Request) -> MediaStore:
    return request.app.state.media_store


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Verify the bearer token and return the caller's identity.

    Also stores the identity on request.state for middleware/loggers.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token found, please log in.")

    identity = tokens.verify(credentials.credentials)
    request.state.identity = identity
    return identity


FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def json_or_form(model: Type[BodyModel]) -> Callable[[Request], Awaitable[BodyModel]]:
    """
    Build a dependency that reads `model` from a JSON or a form body.

    Browser forms post urlencoded or multipart data; API clients post JSON.
    An empty body yields a model with every field unset, so the service
    answers with its own "Fill in all fields." error.
    """

    async def _read_body(request: Request) -> BodyModel:
        content_type = request.headers.get("content-type", "").lower()
        try:
            if content_type.startswith(FORM_CONTENT_TYPES):
                form = await request.form()
                return model.model_validate(
                    {key: value for key, value in form.items() if isinstance(value, str)}
                )
            raw = await request.body()
            return model.model_validate_json(raw or b"{}")
        except PydanticValidationError as e:
            raise ValidationError(
                "Request body could not be read.",
                context={"errors": e.errors(include_url=False)},
            )

    return _read_body


async def read_upload(file: Optional[UploadFile]) -> Optional[MediaUpload]:
    """
    Read a multipart file into memory and close it.

    Browsers submit an empty part with no filename when no file was chosen;
    that counts as no upload.
    """
    if file is None:
        return None
    try:
        if not file.filename:
            return None
        content = await file.read()
        return MediaUpload(filename=file.filename, content=content)
    finally:
        await file.close()
