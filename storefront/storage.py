# storefront/storage.py
"""Object storage for car photos.

Two buckets are supported: a directory on local disk served under
``STORAGE_PUBLIC_BASE_URL`` and, when Supabase credentials are configured, a
Supabase Storage bucket. Both expose ``upload`` and ``public_url``.
"""
import hashlib
import mimetypes
import os
import re
import unicodedata
from pathlib import Path

from . import config
from .errors import UploadError, ValidationError
from .utils import logger

SUPPORTED_IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".webp"}
CONTENT_TYPES = {".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png", ".webp": "image/webp"}


def image_ext(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def is_supported_image(filename: str) -> bool:
    return image_ext(filename) in SUPPORTED_IMAGE_EXTS


def content_type_for(filename: str) -> str:
    ext = image_ext(filename)
    return CONTENT_TYPES.get(ext) or mimetypes.guess_type(filename)[0] or "application/octet-stream"


def safe_storage_name(filename: str, data: bytes) -> str:
    """Content-addressed, URL-safe object name that keeps a slug of the original."""
    ext = image_ext(filename)
    base = os.path.splitext(os.path.basename(filename or ""))[0]
    slug = unicodedata.normalize("NFKD", base).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^\w.-]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")[:60] or "image"
    digest = hashlib.sha256(data).hexdigest()[:16]
    return f"{digest}-{slug}{ext if ext in SUPPORTED_IMAGE_EXTS else '.jpg'}"


def car_image_path(car_id: str, filename: str, data: bytes) -> str:
    if not (car_id or "").strip() or "/" in car_id or "\\" in car_id or ".." in car_id:
        raise ValidationError(f"Invalid car_id for image path: {car_id!r}")
    return f"{config.images_prefix()}/{car_id}/{safe_storage_name(filename, data)}"


class LocalObjectStore:
    def __init__(self, root, base_url, bucket):
        self.root = Path(root) / bucket
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket

    def upload(self, path: str, data: bytes, content_type: str = None):
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise UploadError(f"Failed to upload {path}: path escapes bucket {self.bucket}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise UploadError(f"Failed to upload {path}: {e}") from e

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{self.bucket}/{path}"


class SupabaseObjectStore:
    def __init__(self, url, key, bucket):
        from supabase import create_client

        self.client = create_client(url, key)
        self.bucket = bucket

    def upload(self, path: str, data: bytes, content_type: str = None):
        try:
            self.client.storage.from_(self.bucket).upload(
                path, data, {"content-type": content_type or "application/octet-stream", "upsert": "true"}
            )
        except Exception as e:
            raise UploadError(f"Failed to upload {path}: {e}") from e

    def public_url(self, path: str) -> str:
        url = self.client.storage.from_(self.bucket).get_public_url(path)
        if not url:
            raise UploadError(f"Failed to create public URL for {path}")
        return url


def get_object_store():
    creds = config.supabase_credentials()
    if creds:
        logger.info("Using Supabase bucket %s for car images", config.images_bucket())
        return SupabaseObjectStore(creds[0], creds[1], config.images_bucket())
    return LocalObjectStore(config.storage_root(), config.storage_public_base_url(), config.images_bucket())
