"""Image upload storage for meter and bill photos."""

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from billsplit.core.config import settings

logger = logging.getLogger(__name__)

# Stored files are named by their checked type, never by the client's file name
MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
}
IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png"}


class UploadRejected(ValueError):
    """Uploaded file is missing, too large, or not an allowed image type."""

    code = "upload_rejected"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Error payload for API responses."""
        return {"message": self.message, "code": self.code}


@dataclass
class StoredImage:
    """An image written to the upload directory."""

    filename: str
    originalname: str
    size: int

    @property
    def url(self) -> str:
        return f"/api/images/{self.filename}"


def upload_dir() -> Path:
    return Path(settings.UPLOAD_DIR)


def generate_filename(content_type: str) -> str:
    """Build a unique ``image-<epoch ms>-<uuid><ext>`` file name."""
    ext = MIME_EXTENSIONS[content_type]
    return f"image-{int(time.time() * 1000)}-{uuid.uuid4()}{ext}"


async def save_image(upload: UploadFile | None) -> StoredImage:
    """Validate and store an uploaded image.

    Raises:
        UploadRejected: If no file was sent, its type is not allowed, or it
            exceeds ``MAX_UPLOAD_SIZE``.

    """
    if upload is None or not upload.filename:
        raise UploadRejected("No file uploaded")

    allowed = set(settings.ALLOWED_IMAGE_TYPES) & MIME_EXTENSIONS.keys()
    if upload.content_type not in allowed:
        raise UploadRejected("Only .jpeg, .jpg and .png formats are allowed")

    # At most one byte past the limit
    contents = await upload.read(settings.MAX_UPLOAD_SIZE + 1)
    if len(contents) > settings.MAX_UPLOAD_SIZE:
        limit_mb = settings.MAX_UPLOAD_SIZE // (1024 * 1024)
        raise UploadRejected(f"File too large. Maximum size is {limit_mb}MB")

    directory = upload_dir()
    directory.mkdir(parents=True, exist_ok=True)
    filename = generate_filename(upload.content_type)
    (directory / filename).write_bytes(contents)

    logger.info("Stored upload %s (%d bytes) as %s", upload.filename, len(contents), filename)
    return StoredImage(filename=filename, originalname=upload.filename, size=len(contents))


def resolve_image(filename: str) -> Path | None:
    """Return the path of a stored image, or None if there is no such file.

    Names containing path components, and files that are not JPEG or PNG,
    never resolve.
    """
    if not filename or Path(filename).name != filename or filename.startswith("."):
        return None
    if Path(filename).suffix.lower() not in IMAGE_SUFFIXES:
        return None
    path = upload_dir() / filename
    if not path.is_file():
        return None
    return path


def discard_image(filename: str) -> bool:
    """Delete a stored image. Returns False if there was no such file."""
    path = resolve_image(filename)
    if path is None:
        return False
    path.unlink()
    logger.info("Discarded upload %s", filename)
    return True
