"""Watermark stamping for uploaded images."""

import logging

from . import config, logging_config, logging_utils, services, transforms

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "config",
    "logging_config",
    "logging_utils",
    "services",
    "transforms",
]
