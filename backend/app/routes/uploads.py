"""
Inkpost Backend — Uploaded Media Route
========================================

What:  Serves stored avatars and thumbnails at /uploads/{filename}.
How:   Resolves the generated name through the MediaStore (which rejects
       names escaping the storage root) and streams it with FileResponse.
Who:   <img> tags on the frontend, built from a user's `avatar` or a
       post's `thumbnail`.
"""

import mimetypes

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.dependencies import get_media_store
from app.exceptions import NotFoundError
from app.services.media_store import MediaStore

router = APIRouter(tags=["Media"])


@router.get(
    "/uploads/{filename}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found"},
    },
)
async def serve_upload(
    filename: str,
    media: MediaStore = Depends(get_media_store),
) -> FileResponse:
    path = media.path_for(filename)
    if not path.is_file():
        raise NotFoundError(resource="file", resource_id=filename)

    media_type, _ = mimetypes.guess_type(path.name)
    return FileResponse(
        path=str(path),
        media_type=media_type or "application/octet-stream",
        headers={"Cache-Control": "public, max-age=86400"},  # names are never reused
    )
