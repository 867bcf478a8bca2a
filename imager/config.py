"""Application configuration helpers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from .transforms.catalog import AssetCatalog, StaticAssetCatalog

LOGGER = logging.getLogger(__name__)

DEFAULT_TRANSFORM_PREFIX = "xformed_"


def _read_prefix(env_name: str, default: str) -> str:
    value = os.getenv(env_name)
    if value is None:
        return default
    if not value.strip() or "/" in value:
        LOGGER.warning("Invalid value for %s: %r. Falling back to %s.", env_name, value, default)
        return default
    return value


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _read_log_level(env_name: str, default: str) -> str:
    value = os.getenv(env_name)
    if value is None:
        return default
    level = value.strip().upper()
    if level not in _LOG_LEVELS:
        LOGGER.warning("Invalid value for %s: %r. Falling back to %s.", env_name, value, default)
        return default
    return level


def _read_optional_path(env_name: str) -> Path | None:
    value = os.getenv(env_name)
    if not value:
        return None
    return Path(value)


@dataclass(frozen=True, slots=True)
class ImagerSettings:
    """Top level configuration container for the application."""

    asset_directory: Path | None
    transform_prefix: str
    log_directory: Path
    storage_backend: str
    storage_local_base_path: Path
    storage_s3_bucket: str | None
    storage_s3_prefix: str | None
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> "ImagerSettings":
        storage_backend = os.getenv("STORAGE_BACKEND", "local").lower()
        storage_local_base_path = Path(
            os.getenv("STORAGE_LOCAL_BASE_PATH", "./storage")
        )
        storage_s3_bucket = os.getenv("STORAGE_S3_BUCKET") or None
        storage_s3_prefix = os.getenv("STORAGE_S3_PREFIX") or None

        return cls(
            asset_directory=_read_optional_path("IMAGER_ASSET_DIR"),
            transform_prefix=_read_prefix("IMAGER_TRANSFORM_PREFIX", DEFAULT_TRANSFORM_PREFIX),
            log_directory=Path(os.getenv("IMAGER_LOG_DIR", "logs/invocations")),
            storage_backend=storage_backend,
            storage_local_base_path=storage_local_base_path,
            storage_s3_bucket=storage_s3_bucket,
            storage_s3_prefix=storage_s3_prefix,
            log_level=_read_log_level("IMAGER_LOG_LEVEL", "INFO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> ImagerSettings:
    """Return the cached application settings instance."""

    return ImagerSettings.load()


def build_asset_catalog(settings: ImagerSettings | None = None) -> AssetCatalog:
    """Build the watermark catalog once at startup."""

    settings = settings or get_settings()
    if settings.asset_directory is not None:
        return StaticAssetCatalog.from_directory(settings.asset_directory)
    LOGGER.debug("Using builtin watermark assets")
    return StaticAssetCatalog.builtin()
