"""
File Upload Utility - Store uploaded images.

Supported formats:
- .jpg / .jpeg
- .png
- .gif
- .webp

Files are written under `settings.upload_dir/<kind>/` with a random name and
served by the app under /uploads. Callers only ever see the returned URL.
"""

import logging
import os
import uuid

from app.core.config import get_settings
from app.core.errors import FileTooLarge, ValidationFailed

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp'}
UPLOAD_URL_PREFIX = "/uploads"


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def save_image(filename: str, content: bytes, kind: str) -> str:
    """
    Validate and store an image.

    Args:
        filename: original client filename (only the extension is kept)
        content: raw file bytes
        kind: sub-directory, e.g. "profiles" or "projects"

    Returns:
        Public URL of the stored file, e.g. /uploads/profiles/<uuid>.png

    Raises:
        ValidationFailed for a missing name, bad type or empty file
        FileTooLarge when over settings.max_image_size_mb
    """
    settings = get_settings()

    if not filename:
        raise ValidationFailed("No filename provided")

    ext = get_file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationFailed(
            f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    if not content:
        raise ValidationFailed("Uploaded file is empty")

    if len(content) > settings.max_image_size_mb * 1024 * 1024:
        raise FileTooLarge(f"File too large. Maximum size: {settings.max_image_size_mb}MB")

    directory = os.path.join(settings.upload_dir, kind)
    os.makedirs(directory, exist_ok=True)

    stored_name = f"{uuid.uuid4().hex}{ext}"
    with open(os.path.join(directory, stored_name), "wb") as f:
        f.write(content)

    return f"{UPLOAD_URL_PREFIX}/{kind}/{stored_name}"


def delete_upload(url: str) -> bool:
    """
    Remove a previously stored file by its URL.
    URLs that do not point into the upload directory are ignored.
    """
    if not url or not url.startswith(UPLOAD_URL_PREFIX + "/"):
        return False

    settings = get_settings()
    relative = url[len(UPLOAD_URL_PREFIX) + 1:]
    root = os.path.abspath(settings.upload_dir)
    path = os.path.abspath(os.path.join(root, relative))
    if not path.startswith(root + os.sep):
        return False

    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError:
        logger.warning("Could not delete upload %s", url, exc_info=True)
        return False
