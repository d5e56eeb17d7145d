"""
Inkpost Backend — Media Store Unit Tests
==========================================

What:  Tests for MediaStore validation, naming, storage and removal.
How:   Each test gets its own temporary storage root.

Test Strategy:
    ✅ Allowed / rejected extensions (case-insensitive)
    ✅ Size limit with the caller's message
    ✅ Generated names are unique and keep only a sanitized stem
    ✅ Names cannot escape the storage root
    ✅ delete() raises for missing files, discard() does not
"""

from pathlib import Path

import pytest

from app.exceptions import FileStorageError, ValidationError
from app.services.media_store import MediaStore, MediaUpload


class TestMediaValidation:
    """Extension and size checks."""

    @pytest.fixture(autouse=True)
    def _store(self, temp_storage):
        self.store = MediaStore(temp_storage)

    @pytest.mark.parametrize("filename", ["a.png", "b.jpg", "c.jpeg", "d.gif", "e.webp", "F.JPG"])
    def test_allowed_extensions(self, filename):
        assert self.store.validate_extension(filename) == Path(filename).suffix.lower()

    @pytest.mark.parametrize("filename", ["doc.pdf", "run.exe", "noextension", "image.bmp"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.store.validate_extension(filename)

    def test_size_at_limit_passes(self):
        self.store.validate_size(MediaUpload("a.png", b"x" * 100), 100, "too big")

    def test_size_over_limit_uses_caller_message(self):
        with pytest.raises(ValidationError, match="Image must be less than or equal to 500kb."):
            self.store.validate_size(
                MediaUpload("a.png", b"x" * 501),
                500,
                "Image must be less than or equal to 500kb.",
            )


class TestMediaNaming:
    @pytest.fixture(autouse=True)
    def _store(self, temp_storage):
        self.store = MediaStore(temp_storage)

    def test_names_are_unique(self):
        names = {self.store.generate_name("me.png", ".png", keep_stem=False) for _ in range(50)}
        assert len(names) == 50

    def test_avatar_name_drops_client_stem(self):
        name = self.store.generate_name("me.png", ".png", keep_stem=False)
        assert not name.startswith("me")
        assert name.endswith(".png")

    def test_thumbnail_name_keeps_sanitized_stem(self):
        name = self.store.generate_name("my sunset!.jpeg", ".jpeg", keep_stem=True)
        assert name.startswith("mysunset")
        assert name.endswith(".jpeg")
        assert "/" not in name and " " not in name

    def test_path_traversal_rejected(self):
        with pytest.raises(ValidationError):
            self.store.path_for("../outside.png")

    def test_exists_false_for_empty_and_escaping_names(self):
        assert self.store.exists(None) is False
        assert self.store.exists("") is False
        assert self.store.exists("../etc/passwd") is False


class TestMediaStorage:
    @pytest.fixture(autouse=True)
    def _store(self, temp_storage):
        self.store = MediaStore(temp_storage)

    @pytest.mark.asyncio
    async def test_store_writes_bytes(self, png_bytes):
        name = await self.store.store(MediaUpload("pic.png", png_bytes), 1000, "too big")

        path = self.store.path_for(name)
        assert path.is_file()
        assert path.read_bytes() == png_bytes

    @pytest.mark.asyncio
    async def test_store_rejects_before_writing(self, temp_storage):
        with pytest.raises(ValidationError, match="too big"):
            await self.store.store(MediaUpload("pic.png", b"x" * 11), 10, "too big")
        assert list(Path(temp_storage).iterdir()) == []

    @pytest.mark.asyncio
    async def test_store_write_failure_raises_file_storage_error(self, png_bytes, temp_storage):
        self.store.storage_root = Path(temp_storage) / "missing-dir"
        with pytest.raises(FileStorageError, match="File upload failed."):
            await self.store.store(MediaUpload("pic.png", png_bytes), 1000, "too big")

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, png_bytes):
        name = await self.store.store(MediaUpload("pic.png", png_bytes), 1000, "too big")
        await self.store.delete(name)
        assert not self.store.exists(name)

    @pytest.mark.asyncio
    async def test_delete_missing_file_raises(self):
        with pytest.raises(FileStorageError, match="Error deleting the file."):
            await self.store.delete("never-stored.png")

    @pytest.mark.asyncio
    async def test_discard_missing_file_returns_false(self):
        assert await self.store.discard("never-stored.png") is False
        assert await self.store.discard(None) is False
