"""
LocalBiz Backend — File Storage Service
=========================================

What:  Validates, stores, serves and removes uploaded images (profile
       pictures, business icons, business gallery images).
How:   Checks the declared content type, the size and the real MIME type
       (magic bytes), then writes the bytes under a per-purpose folder with
       an owner-prefixed, timestamped filename.
Who:   Called by AuthService (profile pictures), BusinessService (icons and
       gallery images) and the files route (serving).

Security Model:
    1. Declared type check:  rejects anything the client does not claim is
                             JPEG, PNG or WebP
    2. Size check:           5MB default (settings.max_file_size)
    3. MIME type check:      libmagic inspects the header bytes, so renamed
                             files are caught
    4. Generated filename:   `{uid}_{timestamp_ms}{ext}`; no user-supplied
                             filename reaches the file system
    5. Path resolution:      served and deleted paths must resolve inside
                             the storage root

Directory Structure:
    storage/
    ├── profile-pictures/
    │   └── <uid>_1718000000000.jpg
    ├── business-icons/
    │   └── <uid>_1718000000123.png
    └── business-gallery/
        └── <uid>_1718000000456.webp
"""

import logging
import os
import time
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from localbiz.config import settings
from localbiz.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}

EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}

# ── Storage Folders ───────────────────────────────────────────────────────
PROFILE_PICTURES = "profile-pictures"
BUSINESS_ICONS = "business-icons"
BUSINESS_GALLERY = "business-gallery"


class FileService:
    """
    Manages the image upload lifecycle.

    Lifecycle of an uploaded image:
        1. Route reads the multipart file → validate_image()
        2. Declared content type and size are checked (messages are chosen
           by the caller so each endpoint keeps its own wording)
        3. MIME type is confirmed from magic bytes
        4. store_image() writes the bytes and returns the public URL
        5. delete_by_url() removes a stored image when it is dropped from a
           gallery, or when a later step of registration fails
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def detect_mime_type(self, content: bytes, filename: Optional[str], declared: Optional[str]) -> str:
        """
        Determine the real MIME type of an upload from its header bytes.

        Falls back to the filename extension (then the declared type) when
        libmagic is unavailable.
        """
        try:
            import magic
            return magic.from_buffer(content, mime=True)
        except ImportError:
            logger.warning(
                "python-magic not available, falling back to extension-based type detection. "
                "Install libmagic for production security."
            )
            ext = Path(filename or "").suffix.lower()
            return EXTENSION_MIME_TYPES.get(ext, declared or "application/octet-stream")
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

    def validate_image(
        self,
        content: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        type_message: str = "Invalid file type. Only JPEG, PNG, and WebP are allowed",
        size_message: str = "File size too large. Maximum size is 5MB",
        field: str = "file",
    ) -> str:
        """
        Validate an uploaded image and return the extension to store it with.

        Order: declared type, size, then real MIME type.

        Raises:
            ValidationError with `type_message` or `size_message`
        """
        declared = (content_type or "").lower()
        if declared not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=type_message,
                field=field,
                context={"content_type": declared, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )

        if len(content) > settings.max_file_size:
            raise ValidationError(
                message=size_message,
                field=field,
                context={"size": len(content), "max_size": settings.max_file_size},
            )

        detected = self.detect_mime_type(content, filename, declared)
        if detected not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=type_message,
                field=field,
                context={"detected_mime": detected, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )

        # Keep the client's extension when it agrees with the detected type
        ext = Path(filename or "").suffix.lower()
        if EXTENSION_MIME_TYPES.get(ext) == EXTENSION_MIME_TYPES[ALLOWED_MIME_TYPES[detected]]:
            return ext
        return ALLOWED_MIME_TYPES[detected]

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(self, folder: str, owner_id: str, extension: str) -> Tuple[Path, str]:
        """Build `<folder>/<owner_id>_<epoch_ms><ext>` under the storage root."""
        timestamp = int(time.time() * 1000)
        relative_path = f"{folder}/{owner_id}_{timestamp}{extension}"
        return self.storage_root / relative_path, relative_path

    def public_url(self, relative_path: str) -> str:
        return f"{settings.files_url_prefix.rstrip('/')}/{relative_path}"

    async def store_image(self, folder: str, owner_id: str, content: bytes, extension: str) -> str:
        """
        Write validated image bytes to disk and return the public URL.

        Raises:
            FileStorageError if directory creation or the write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(folder, owner_id, extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to upload image",
                context={"path": relative_path, "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return self.public_url(relative_path)

    # ── Lookup & Cleanup ──────────────────────────────────────────────────

    def resolve_path(self, relative_path: str) -> Path:
        """
        Map a path relative to the storage root onto the file system.

        Raises:
            ValidationError if the path escapes the storage root
        """
        full_path = (self.storage_root / relative_path).resolve()
        if full_path != self.storage_root and self.storage_root not in full_path.parents:
            raise ValidationError(message="Invalid file path", field="path")
        return full_path

    def path_from_url(self, url: str) -> Optional[Path]:
        """Return the stored file behind a public URL, or None for foreign URLs."""
        prefix = settings.files_url_prefix.rstrip("/") + "/"
        if not url or not url.startswith(prefix):
            return None
        try:
            return self.resolve_path(url[len(prefix):])
        except ValidationError:
            return None

    async def delete_by_url(self, url: str) -> None:
        """Remove the stored file behind a public URL, if it is ours."""
        path = self.path_from_url(url)
        if path is not None:
            await self.cleanup_file(str(path))

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a file from storage.

        Best effort: missing files are ignored and OS errors are logged.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
