"""
Inkpost Backend — Media Store
===============================

What:  Filesystem storage for uploaded avatars and post thumbnails.
How:   Validates presence, extension and size, writes bytes asynchronously
       under a generated filename, and removes files by that name.
Who:   Called by UserService (avatars) and PostService (thumbnails);
       read by the /uploads route.

Addressing:
    Callers only ever hold the generated name. Client-supplied filenames
    contribute at most a sanitized stem (thumbnails) and the extension;
    the random UUID part makes every name unique.

        avatar upload   "me.png"        → "3f2c...9b1e.png"
        thumbnail       "sunset.jpeg"   → "sunset8d41...07aa.jpeg"

    All files live flat under storage_root, matching the /uploads/<name> URL.

Removal has two flavors:
    delete():   raises FileStorageError when the file cannot be removed
    discard():  best effort, logs failures and returns a bool
"""

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

# Anything outside this set is dropped from a client-supplied stem
_UNSAFE_STEM_CHARS = re.compile(r"[^A-Za-z0-9_-]+")
_MAX_STEM_LENGTH = 64


@dataclass
class MediaUpload:
    """An uploaded file as read from the multipart request."""

    filename: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class MediaStore:
    """
    Manages the upload directory.

    Lifecycle of an uploaded file:
        1. Route reads the multipart file into a MediaUpload
        2. Service calls store() with the size limit for that kind of media
        3. Extension and size are checked before anything touches the disk
        4. Bytes are written to <storage_root>/<generated name>
        5. The generated name is saved on the user/post row
        6. A replaced or deleted file is removed with delete()/discard()
    """

    def __init__(self, storage_root: str):
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("MediaStore initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """
        Returns the normalized (lowercase, dotted) extension.

        Raises:
            ValidationError if the extension is not an allowed image type.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'none'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext},
            )
        return ext

    def validate_size(self, upload: MediaUpload, max_size: int, message: str) -> None:
        if upload.size > max_size:
            raise ValidationError(
                message=message,
                field="file",
                context={"max_size": max_size, "actual_size": upload.size},
            )

    # ── Naming ────────────────────────────────────────────────────────────

    def generate_name(self, filename: str, extension: str, keep_stem: bool) -> str:
        """
        Build a unique storage name.

        keep_stem=True prefixes the sanitized original stem, so thumbnails
        stay recognizable ("sunset<hex>.jpeg"); avatars use the UUID alone.
        """
        if keep_stem:
            stem = _UNSAFE_STEM_CHARS.sub("", Path(filename).stem)[:_MAX_STEM_LENGTH]
            return f"{stem}{uuid.uuid4().hex}{extension}"
        return f"{uuid.uuid4()}{extension}"

    def path_for(self, name: str) -> Path:
        """
        Resolve a stored name to its absolute path.

        Raises:
            ValidationError if the name would escape the storage root.
        """
        path = (self.storage_root / name).resolve()
        if path.parent != self.storage_root:
            raise ValidationError(message="Invalid file path", context={"name": name})
        return path

    def exists(self, name: Optional[str]) -> bool:
        if not name:
            return False
        try:
            return self.path_for(name).is_file()
        except ValidationError:
            return False

    # ── Write / Remove ────────────────────────────────────────────────────

    async def store(
        self,
        upload: MediaUpload,
        max_size: int,
        too_large_message: str,
        keep_stem: bool = False,
    ) -> str:
        """
        Validate and write an upload; returns the generated name.

        Validation order:
            1. Extension check (no bytes inspected)
            2. Size check
            3. Write to disk

        Raises:
            ValidationError:   unsupported type or too large
            FileStorageError:  the write failed
        """
        ext = self.validate_extension(upload.filename)
        self.validate_size(upload, max_size, too_large_message)

        name = self.generate_name(upload.filename, ext, keep_stem)
        path = self.storage_root / name

        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(upload.content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="File upload failed.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", name, upload.size)
        return name

    async def delete(self, name: str) -> None:
        """
        Remove a stored file.

        Raises:
            FileStorageError if the file is missing or cannot be removed.
        """
        path = self.path_for(name)
        try:
            await aiofiles.os.remove(path)
        except OSError as e:
            raise FileStorageError(
                message="Error deleting the file.",
                context={"name": name, "os_error": str(e)},
            )
        logger.info("File deleted: %s", name)

    async def discard(self, name: Optional[str]) -> bool:
        """
        Best-effort removal; returns True when a file was removed.

        Used for replaced avatars/thumbnails and for compensating cleanup
        after a failed database write. Never raises.
        """
        if not name:
            return False
        try:
            await self.delete(name)
            return True
        except (FileStorageError, ValidationError) as e:
            logger.warning("Failed to remove media file %s: %s", name, e.context or e.message)
            return False
