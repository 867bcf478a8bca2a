"""Storage and dispatch services around the watermark transform."""

from .dispatcher import DispatchResult, StampDispatcher
from .storage import (
    LocalFilesystemStorage,
    ObjectStorage,
    S3Storage,
    StorageError,
    StorageResult,
    get_storage_service,
)

__all__ = [
    "DispatchResult",
    "LocalFilesystemStorage",
    "ObjectStorage",
    "S3Storage",
    "StampDispatcher",
    "StorageError",
    "StorageResult",
    "get_storage_service",
]
