"""Charity photo storage on Django's default storage backend."""
import logging
import posixpath

from django.conf import settings
from django.core.files.storage import default_storage
from PIL import Image, UnidentifiedImageError

from mainapps.common.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = 'charity-photos'
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_CONTENT_TYPES = ('image/jpeg', 'image/png', 'image/webp')

EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/webp': 'webp',
}


def _bucket():
    return getattr(settings, 'CHARITY_PHOTO_BUCKET', DEFAULT_BUCKET)


def validate_image_file(upload):
    """Return an error message for an unacceptable upload, or None if it is fine."""
    max_bytes = getattr(settings, 'CHARITY_PHOTO_MAX_BYTES', DEFAULT_MAX_BYTES)
    allowed = getattr(settings, 'CHARITY_PHOTO_CONTENT_TYPES', DEFAULT_CONTENT_TYPES)

    if upload.size > max_bytes:
        return 'File size must be less than 5MB'
    if getattr(upload, 'content_type', None) not in allowed:
        return 'File must be a JPEG, PNG, or WebP image'

    try:
        with Image.open(upload) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        return 'File must be a JPEG, PNG, or WebP image'
    finally:
        upload.seek(0)
    return None


def photo_path(charity_id, upload):
    ext = posixpath.splitext(upload.name or '')[1].lstrip('.').lower()
    if not ext:
        ext = EXTENSIONS.get(upload.content_type, 'jpg')
    return f"{_bucket()}/{charity_id}/logo.{ext}"


def upload_charity_photo(charity_id, upload):
    """
    Store a charity's photo, replacing any previous one.

    Args:
        charity_id: The charity's id (the folder the photo is kept in)
        upload: Django UploadedFile

    Returns:
        Public URL of the stored image
    """
    error = validate_image_file(upload)
    if error:
        raise ValidationError({'photo': error})

    path = photo_path(charity_id, upload)
    try:
        delete_charity_photo(charity_id)
        saved = default_storage.save(path, upload)
        return default_storage.url(saved)
    except OSError as e:
        logger.error(f"Upload error for charity {charity_id}: {e}")
        raise ExternalServiceError(f"Failed to upload image: {e}")


def delete_charity_photo(charity_id):
    folder = f"{_bucket()}/{charity_id}"
    try:
        if not default_storage.exists(folder):
            return
        _, files = default_storage.listdir(folder)
        for name in files:
            default_storage.delete(f"{folder}/{name}")
    except OSError as e:
        logger.error(f"Delete error for charity {charity_id}: {e}")
        raise ExternalServiceError(f"Failed to delete image: {e}")
