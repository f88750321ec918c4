from __future__ import annotations

import logging
import mimetypes
import os
import secrets
import string
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from .client import RequestClient
from .errors import BackendError, StorageLimitError, ValidationError

if TYPE_CHECKING:
    from .repository import TableRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
_NAME_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True, slots=True)
class StoredFile:
    bucket: str
    file_name: str
    file_path: str
    public_url: str
    size: int


def generate_object_name(filename: str, *, now: Optional[Callable[[], float]] = None) -> str:
    """``{epoch_ms}-{six base36 chars}{ext}``, e.g. ``1700000000000-k3j9xz.pdf``."""
    timestamp = int((now or time.time)() * 1000)
    suffix = "".join(secrets.choice(_NAME_ALPHABET) for _ in range(6))
    _, ext = os.path.splitext(filename or "")
    return f"{timestamp}-{suffix}{ext.lower()}"


class StorageGateway:
    """Uploads and deletes objects in the backend's storage buckets."""

    def __init__(
        self,
        client: RequestClient,
        *,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        upload_timeout: Optional[float] = None,
    ) -> None:
        self._client = client
        self._max_upload_bytes = int(max_upload_bytes)
        self._upload_timeout = upload_timeout

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def public_url(self, bucket: str, name: str) -> str:
        return self._client.storage_public_url(bucket, name)

    async def upload_file(
        self,
        data: bytes,
        filename: str,
        *,
        bucket: str = "announcements",
        content_type: Optional[str] = None,
    ) -> StoredFile:
        if not data:
            raise ValidationError("No file provided", field="file")
        size = len(data)
        if size > self._max_upload_bytes:
            limit_mb = self._max_upload_bytes / (1024 * 1024)
            raise StorageLimitError(
                f"File size exceeds {limit_mb:g}MB limit",
                size=size,
                limit=self._max_upload_bytes,
            )

        name = generate_object_name(filename)
        guessed_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        try:
            await self._client.storage_request(
                "POST",
                bucket,
                name,
                data=data,
                content_type=guessed_type,
                timeout=self._upload_timeout,
            )
        except BackendError as exc:
            logger.error("Failed to upload %s to bucket %s: %s", filename, bucket, exc)
            raise

        stored = StoredFile(
            bucket=bucket,
            file_name=name,
            file_path=f"{bucket}/{name}",
            public_url=self.public_url(bucket, name),
            size=size,
        )
        logger.info("Uploaded %s (%s bytes) to %s", stored.file_path, size, bucket)
        return stored

    async def delete_file(self, file_path: str) -> bool:
        bucket, _, name = (file_path or "").partition("/")
        if not bucket or not name:
            raise ValidationError("File path is required", field="file_path")
        try:
            await self._client.storage_request("DELETE", bucket, name)
        except BackendError as exc:
            logger.error("Failed to delete stored file %s: %s", file_path, exc)
            raise
        logger.info("Deleted stored file %s", file_path)
        return True


async def create_with_upload(
    storage: StorageGateway,
    repository: "TableRepository[Any]",
    fields: Mapping[str, Any],
    *,
    data: bytes,
    filename: str,
    bucket: str,
    url_field: str,
    content_type: Optional[str] = None,
) -> Any:
    """Upload a file, then create a record pointing at it.

    When the record cannot be created the uploaded object is deleted again,
    so a failed create does not leave an orphaned file behind.
    """
    repository.prepare_create({**fields, url_field: fields.get(url_field) or "pending-upload"})
    stored = await storage.upload_file(data, filename, bucket=bucket, content_type=content_type)
    try:
        return await repository.create({**fields, url_field: stored.public_url})
    except BackendError:
        try:
            await storage.delete_file(stored.file_path)
        except BackendError as cleanup_exc:
            logger.error("Could not remove orphaned upload %s: %s", stored.file_path, cleanup_exc)
        raise
