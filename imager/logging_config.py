"""Logging configuration helpers for the Imager application."""
from __future__ import annotations

import copy
import logging
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Dict

DEFAULT_LOGGING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s\t%(levelname)s\t%(name)s\t%(message)s",
        },
        "json": {
            "()": "imager.logging_utils.JsonLogFormatter",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
        "service_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filename": "logs/service.log",
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
        },
        # fallbacks and oversized-watermark crops, kept apart for auditing assets
        "watermark_audit_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filename": "logs/watermark_audit.log",
            "level": "WARNING",
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
        },
    },
    "loggers": {
        "": {"handlers": ["console", "service_file"], "level": "INFO"},
        "imager": {"level": "INFO"},
        "imager.transforms": {"handlers": ["watermark_audit_file"], "level": "INFO"},
        "botocore": {"level": "WARNING"},
        "PIL": {"level": "WARNING"},
    },
}


def _apply_level(config: Dict[str, Any], level: str) -> Dict[str, Any]:
    resolved = copy.deepcopy(config)
    for name, logger_config in resolved.get("loggers", {}).items():
        if name == "" or name == "imager" or name.startswith("imager."):
            logger_config["level"] = level
    return resolved


def configure_logging(config: Dict[str, Any] | None = None, *, level: str | None = None) -> None:
    """Configure the Python logging system for the application.

    Parameters
    ----------
    config:
        Optional dictConfig-compatible configuration. When omitted, the
        :data:`DEFAULT_LOGGING_CONFIG` is used.
    level:
        Optional level name applied to the root logger and the ``imager``
        loggers of ``config``, typically ``ImagerSettings.log_level``.
    """

    resolved_config = config or DEFAULT_LOGGING_CONFIG
    if level is not None:
        resolved_config = _apply_level(resolved_config, level.upper())

    for handler in resolved_config.get("handlers", {}).values():
        filename = handler.get("filename") if isinstance(handler, dict) else None
        if not filename:
            continue
        log_path = Path(filename)
        log_path.parent.mkdir(parents=True, exist_ok=True)

    dictConfig(resolved_config)
    logging.captureWarnings(True)
    logging.getLogger(__name__).debug("Logging configured", extra={"config": resolved_config})
