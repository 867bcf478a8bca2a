"""Object storage abstractions for reading originals and persisting stamped images."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..config import ImagerSettings, get_settings


logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a storage operation fails."""


@dataclass(slots=True)
class StorageResult:
    """Represents the outcome of a storage write operation."""

    key: str
    url: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key.strip():
            raise StorageError("Storage key must be a non-empty string")


class ObjectStorage(Protocol):
    """Minimal protocol implemented by storage services."""

    def read_object(self, key: str) -> bytes:
        ...

    def write_object(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
    ) -> StorageResult:
        ...

    def delete_object(self, key: str) -> None:
        ...


class LocalFilesystemStorage:
    """Store objects on the local filesystem (useful for development/testing)."""

    def __init__(self, *, base_path: Path) -> None:
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.debug("Local storage initialised", extra={"base_path": str(self.base_path)})

    def _resolve(self, key: str) -> Path:
        if not key or Path(key).is_absolute():
            raise StorageError(f"Storage key must be a relative path: {key!r}")
        target = (self.base_path / key).resolve()
        if self.base_path not in target.parents:
            raise StorageError("Key escapes storage root")
        return target

    def read_object(self, key: str) -> bytes:
        target = self._resolve(key)
        try:
            return target.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read local object {key}: {exc}") from exc

    def write_object(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
    ) -> StorageResult:
        del content_type  # Content type is unused for local storage
        target = self._resolve(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write local object {key}: {exc}") from exc
        logger.info("Stored object locally", extra={"key": key, "bytes": len(data)})
        return StorageResult(key=key, url=target.as_uri())

    def delete_object(self, key: str) -> None:
        target = self._resolve(key)
        try:
            target.unlink()
        except FileNotFoundError:
            return
        logger.info("Deleted local storage object", extra={"key": key})


class S3Storage:
    """Store objects on an S3 compatible object storage."""

    def __init__(
        self,
        *,
        bucket: str,
        prefix: str | None = None,
        client: object | None = None,
    ) -> None:
        try:
            if client is None:
                import boto3  # type: ignore

                self.client = boto3.client("s3")
            else:
                self.client = client
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise StorageError("boto3 is required for S3 storage") from exc

        self.bucket = bucket
        self.prefix = prefix.strip("/") if prefix else ""
        logger.debug(
            "S3 storage initialised",
            extra={"bucket": self.bucket, "prefix": self.prefix or None},
        )

    def _build_key(self, key: str) -> str:
        if self.prefix:
            return f"{self.prefix}/{key}".strip("/")
        return key

    def read_object(self, key: str) -> bytes:
        full_key = self._build_key(key)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=full_key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except Exception as exc:
            raise StorageError(f"Failed to read S3 object {full_key}: {exc}") from exc

    def write_object(
        self,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
    ) -> StorageResult:
        full_key = self._build_key(key)
        params = {"Bucket": self.bucket, "Key": full_key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        try:
            self.client.put_object(**params)
        except Exception as exc:
            raise StorageError(f"Failed to upload object to S3: {exc}") from exc
        logger.info(
            "Uploaded object to S3",
            extra={"bucket": self.bucket, "key": full_key, "bytes": len(data)},
        )
        return StorageResult(key=full_key, url=f"s3://{self.bucket}/{full_key}")

    def delete_object(self, key: str) -> None:
        full_key = self._build_key(key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=full_key)
        except Exception as exc:
            raise StorageError(f"Failed to delete S3 object {full_key}: {exc}") from exc
        logger.info("Deleted S3 object", extra={"bucket": self.bucket, "key": full_key})


def get_storage_service(settings: ImagerSettings | None = None) -> ObjectStorage:
    """Return the configured storage service instance."""

    settings = settings or get_settings()

    if settings.storage_backend == "local":
        storage = LocalFilesystemStorage(base_path=settings.storage_local_base_path)
        logger.debug("Using local storage backend", extra={"base_path": str(settings.storage_local_base_path)})
        return storage

    if settings.storage_backend == "s3":
        if not settings.storage_s3_bucket:
            raise StorageError("STORAGE_S3_BUCKET is required when using the S3 backend")
        storage = S3Storage(bucket=settings.storage_s3_bucket, prefix=settings.storage_s3_prefix)
        logger.debug(
            "Using S3 storage backend",
            extra={"bucket": settings.storage_s3_bucket, "prefix": settings.storage_s3_prefix},
        )
        return storage

    raise StorageError(f"Unsupported storage backend: {settings.storage_backend}")
