"""Local filesystem storage for uploaded activity images."""

from __future__ import annotations

import io
import logging
import uuid
from functools import lru_cache
from pathlib import Path

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from roundbook.core.config import get_settings
from roundbook.services.common import validation_error

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpeg", "jpg", "png", "gif"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}
ALLOWED_IMAGE_FORMATS = {"JPEG", "PNG", "GIF"}
_FORMAT_EXTENSION = {"JPEG": "jpg", "PNG": "png", "GIF": "gif"}


class StorageFailure(Exception):
    """Raised when a blob cannot be written or removed."""


class BlobStorage:
    """Stores files below a root directory and hands back root-relative paths."""

    def __init__(self, root: str | Path, *, max_bytes: int) -> None:
        self.root = Path(root)
        self.max_bytes = max_bytes

    def validate_image(self, upload: UploadFile, content: bytes, *, field: str = "image") -> str:
        """Check type, size and decodability; return the image format name."""

        filename = upload.filename or ""
        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if extension not in ALLOWED_EXTENSIONS:
            raise validation_error(field, "The image must be a file of type: jpeg, png, jpg, gif.")
        if upload.content_type and upload.content_type not in ALLOWED_CONTENT_TYPES:
            raise validation_error(field, "The image must be a file of type: jpeg, png, jpg, gif.")
        if not content:
            raise validation_error(field, "The image field is required.")
        if len(content) > self.max_bytes:
            raise validation_error(
                field,
                f"The image may not be greater than {self.max_bytes // 1024} kilobytes.",
            )

        try:
            with Image.open(io.BytesIO(content)) as image:
                image.verify()
                image_format = image.format
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as exc:
            raise validation_error(field, "The image must be an image.") from exc

        if image_format not in ALLOWED_IMAGE_FORMATS:
            raise validation_error(field, "The image must be a file of type: jpeg, png, jpg, gif.")
        return image_format

    def store(self, content: bytes, directory: str, *, image_format: str) -> str:
        relative = Path(directory) / f"{uuid.uuid4().hex}.{_FORMAT_EXTENSION[image_format]}"
        target = self.root / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            logger.exception("Failed to store blob at %s", target)
            raise StorageFailure(f"Could not store {relative.as_posix()}") from exc
        return relative.as_posix()

    def delete(self, path: str) -> None:
        try:
            (self.root / path).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageFailure(f"Could not delete {path}") from exc


@lru_cache
def get_blob_storage() -> BlobStorage:
    settings = get_settings()
    return BlobStorage(settings.upload_root, max_bytes=settings.upload_max_bytes)
