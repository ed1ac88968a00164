import logging
import os

import aiofiles
from fastapi import UploadFile

from xabzedin.config import settings
from xabzedin.errors import PayloadTooLarge, ValidationFailed

logger = logging.getLogger(__name__)

IMAGES_BUCKET = "images"
PUBLIC_PREFIX = "/uploads"


def file_extension(filename: str | None, content_type: str | None) -> str:
    """Extension from the uploaded filename, else from the image subtype."""
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
        if ext.isalnum():
            return ext
    if content_type and "/" in content_type:
        subtype = content_type.split("/", 1)[1].split("+", 1)[0].lower()
        return "jpg" if subtype == "jpeg" else subtype
    return "bin"


def public_url(object_path: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}{PUBLIC_PREFIX}/{object_path}"


async def read_image(upload: UploadFile) -> bytes:
    """Read an uploaded image, enforcing the type and size limits."""
    if not (upload.content_type or "").startswith("image/"):
        raise ValidationFailed("invalid_file_type")

    content = await upload.read(settings.max_image_bytes + 1)
    if len(content) > settings.max_image_bytes:
        raise PayloadTooLarge("file_too_large")
    return content


async def store_image(owner_id: str, name: str, upload: UploadFile) -> str:
    """Write an image under ``images/{owner_id}/{name}.{ext}``, replacing any
    previous upload with the same name, and return its public URL."""
    content = await read_image(upload)
    ext = file_extension(upload.filename, upload.content_type)
    object_path = f"{IMAGES_BUCKET}/{owner_id}/{name}.{ext}"

    filepath = os.path.join(settings.upload_dir, *object_path.split("/"))
    os.makedirs(os.path.dirname(filepath), exist_ok=True)

    async with aiofiles.open(filepath, "wb") as f:
        await f.write(content)

    logger.info("Stored %s (%d bytes)", object_path, len(content))
    return public_url(object_path)
