"""S3-compatible object store used to stage splice media for the renderer."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from urllib.parse import quote, unquote, urlparse
from uuid import uuid4

from minio import Minio
from minio.error import S3Error

from .config import StorageSettings
from .errors import InvalidReference, UploadFailed

logger = logging.getLogger(__name__)


def _build_client(settings: StorageSettings) -> Minio:
    parsed = urlparse(settings.endpoint)
    netloc = parsed.netloc or parsed.path
    return Minio(
        netloc,
        access_key=settings.access_key,
        secret_key=settings.secret_key,
        secure=settings.secure if settings.secure is not None else parsed.scheme == "https",
        region=settings.region,
    )


def _url_prefix(settings: StorageSettings) -> str:
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/") + "/"
    parsed = urlparse(settings.endpoint)
    netloc = parsed.netloc or parsed.path
    scheme = parsed.scheme or "https"
    if netloc.endswith("amazonaws.com"):
        return f"https://{settings.bucket}.s3.{settings.region}.amazonaws.com/"
    return f"{scheme}://{netloc}/{settings.bucket}/"


class ObjectStore:
    """Stages local files under unique keys and deletes them again by URL."""

    def __init__(self, settings: StorageSettings, client: Minio | None = None) -> None:
        self._settings = settings
        self._client = client or _build_client(settings)
        self._bucket_checked = False

    @property
    def bucket(self) -> str:
        return self._settings.bucket

    @property
    def url_prefix(self) -> str:
        return _url_prefix(self._settings)

    def _ensure_bucket(self) -> None:
        if self._bucket_checked or not self._settings.create_bucket:
            return
        if not self._client.bucket_exists(self.bucket):
            self._client.make_bucket(self.bucket)
        self._bucket_checked = True

    def object_key(self, local_path: Path, folder: str) -> str:
        prefix = self._settings.key_prefix.strip("/")
        parts = [p for p in (prefix, folder.strip("/")) if p]
        return "/".join([*parts, f"{uuid4()}{local_path.suffix}"])

    def url_for(self, object_key: str) -> str:
        return self.url_prefix + quote(object_key)

    def upload(self, local_path: Path, folder: str) -> str:
        """Upload ``local_path`` and return the stable URL it can be fetched from."""

        object_key = self.object_key(local_path, folder)
        content_type = mimetypes.guess_type(local_path.name)[0] or "video/mp4"
        try:
            self._ensure_bucket()
            self._client.fput_object(self.bucket, object_key, str(local_path), content_type=content_type)
        except (S3Error, OSError, ValueError) as exc:
            raise UploadFailed(f"upload of {local_path.name} failed: {exc}") from exc
        logger.debug("Uploaded %s to %s/%s", local_path.name, self.bucket, object_key)
        return self.url_for(object_key)

    def key_from_url(self, url: str) -> str:
        prefix = self.url_prefix
        if not url or not url.startswith(prefix):
            raise InvalidReference(f"URL outside {prefix}", message="Invalid storage URL format")
        object_key = unquote(url[len(prefix):])
        if not object_key or object_key.endswith("/"):
            raise InvalidReference("URL does not name an object", message="Invalid storage URL format")
        return object_key

    def delete_by_url(self, url: str) -> None:
        object_key = self.key_from_url(url)
        self._client.remove_object(self.bucket, object_key)
        logger.info("Deleted staged object %s/%s", self.bucket, object_key)

    def check(self) -> str:
        try:
            return "ok" if self._client.bucket_exists(self.bucket) else "missing-bucket"
        except S3Error as exc:
            logger.warning("Object store health check failed", exc_info=exc)
            return f"error:{exc.code}"
        except Exception as exc:  # noqa: BLE001
            logger.warning("Object store unreachable", exc_info=exc)
            return f"error:{exc.__class__.__name__}"
