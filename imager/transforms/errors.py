"""Exceptions raised by the watermark pipeline."""

from __future__ import annotations


class ImagerError(RuntimeError):
    """Base class for watermarking failures."""


class DecodeError(ImagerError):
    """Raised when an image stream is empty, truncated or unsupported."""


class AssetCatalogError(ImagerError):
    """Raised when the packaged watermark assets are missing or broken."""


class EncodeError(ImagerError):
    """Raised when the composited canvas cannot be encoded."""
