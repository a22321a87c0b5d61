"""Media storage on MinIO for avatar and cover images."""

from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from core import settings
from core.errors import UploadError

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_PREFIX = "uploads"


@dataclass(frozen=True)
class UploadedBlob:
    key: str
    url: str


class BlobStorage(Protocol):
    def upload(self, local_path: str | Path) -> UploadedBlob:
        """Store a local file and return where it can be fetched. Raises UploadError."""
        ...

    def delete(self, key: str) -> None: ...

    def key_for_url(self, url: str) -> str | None: ...


@lru_cache
def get_minio_client() -> Minio:
    """Return a cached MinIO client configured from settings."""
    return Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )


def ensure_bucket(client: Minio | None = None, bucket: str | None = None) -> None:
    """Ensure the configured bucket exists."""
    client = client or get_minio_client()
    bucket_name = bucket or settings.minio_bucket

    if client.bucket_exists(bucket_name):  # pragma: no cover - network call
        return

    try:
        client.make_bucket(bucket_name)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - handle race conditions
        allowed_codes = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}
        if exc.code not in allowed_codes:
            raise


def build_object_url(object_key: str, *, bucket: str | None = None, base_url: str | None = None) -> str:
    base = (base_url or settings.media_public_base_url).rstrip("/")
    return f"{base}/{bucket or settings.minio_bucket}/{object_key}"


def _discard_local_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove temporary upload %s: %s", path, exc)


def upload_file(
    local_path: str | Path,
    *,
    client: Minio | None = None,
    bucket: str | None = None,
    prefix: str = DEFAULT_OBJECT_PREFIX,
) -> str:
    """Upload a local file under a fresh object key and return that key.

    The local file is removed when the upload fails.
    """
    path = Path(local_path)
    if not str(local_path).strip() or not path.is_file():
        raise UploadError(f"Upload source not found: {local_path}")

    client = client or get_minio_client()
    bucket_name = bucket or settings.minio_bucket
    object_key = f"{prefix.strip('/')}/{uuid4().hex}{path.suffix.lower()}"
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

    try:
        client.fput_object(
            bucket_name,
            object_key,
            os.fspath(path),
            content_type=content_type,
        )  # pragma: no cover - network call
    except (S3Error, HTTPError, OSError) as exc:
        logger.warning("Upload of %s failed: %s", path, exc)
        _discard_local_file(path)
        raise UploadError(f"Upload of {path.name} failed") from exc
    return object_key


def delete_object(object_key: str, client: Minio | None = None, bucket: str | None = None) -> None:
    """Delete an object from the configured bucket when it exists."""
    client = client or get_minio_client()
    try:
        client.remove_object(bucket or settings.minio_bucket, object_key)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - network call
        allowed_codes = {"NoSuchKey", "NoSuchObject", "ResourceNotFound"}
        if exc.code not in allowed_codes:
            raise


class MinioBlobStorage:
    """BlobStorage implementation writing to a MinIO bucket."""

    def __init__(
        self,
        client: Minio | None = None,
        *,
        bucket: str | None = None,
        base_url: str | None = None,
        prefix: str = DEFAULT_OBJECT_PREFIX,
    ) -> None:
        self._client = client
        self.bucket = bucket or settings.minio_bucket
        self.base_url = base_url or settings.media_public_base_url
        self.prefix = prefix

    @property
    def client(self) -> Minio:
        return self._client or get_minio_client()

    def upload(self, local_path: str | Path) -> UploadedBlob:
        key = upload_file(local_path, client=self.client, bucket=self.bucket, prefix=self.prefix)
        return UploadedBlob(
            key=key,
            url=build_object_url(key, bucket=self.bucket, base_url=self.base_url),
        )

    def delete(self, key: str) -> None:
        delete_object(key, self.client, self.bucket)

    def key_for_url(self, url: str) -> str | None:
        """Return the object key behind ``url`` when it points into this bucket."""
        prefix = build_object_url("", bucket=self.bucket, base_url=self.base_url)
        if url.startswith(prefix) and len(url) > len(prefix):
            return url[len(prefix):]
        return None
