"""Decoding and encoding of raster images.

Input containers are detected from the stream contents; only JPEG and PNG are
accepted. Output is always PNG so that repeated processing never stacks lossy
compression artefacts on top of the source.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import BinaryIO, Union

from PIL import Image

from .errors import DecodeError, EncodeError


LOGGER = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("JPEG", "PNG")
OUTPUT_FORMAT = "PNG"
OUTPUT_CONTENT_TYPE = "image/png"
# multi-picture JPEGs from phone cameras open as MPO
FORMAT_ALIASES = {"MPO": "JPEG"}

ImageSource = Union[bytes, bytearray, memoryview, BinaryIO]


@dataclass(frozen=True, slots=True)
class SourceImage:
    """A decoded raster together with the container it was read from."""

    image: Image.Image
    format: str

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


def _read_payload(source: ImageSource) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    read = getattr(source, "read", None)
    if read is None:
        raise DecodeError(f"Unsupported image source: {type(source).__name__}")
    try:
        payload = read()
    except OSError as exc:
        raise DecodeError(f"Failed to read image stream: {exc}") from exc
    if isinstance(payload, str):
        raise DecodeError("Image stream must be opened in binary mode")
    return bytes(payload)


def decode_image(
    source: ImageSource,
    *,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> SourceImage:
    """Decode ``source`` into a :class:`SourceImage`.

    The pixel data is loaded eagerly so truncated streams fail here rather
    than later during compositing.
    """

    log = logger or LOGGER
    payload = _read_payload(source)
    if not payload:
        raise DecodeError("Image stream is empty")

    try:
        image = Image.open(io.BytesIO(payload), formats=SUPPORTED_FORMATS)
        image.load()
    except Image.DecompressionBombError as exc:
        raise DecodeError(f"Image exceeds the decoder pixel limit: {exc}") from exc
    except (OSError, SyntaxError, ValueError, EOFError) as exc:
        log.error("Failed to decode image", extra={"error": str(exc), "payload_bytes": len(payload)})
        raise DecodeError(f"Failed to decode image: {exc}") from exc

    width, height = image.size
    if width < 1 or height < 1:
        raise DecodeError(f"Image has empty bounds: {width}x{height}")

    detected = FORMAT_ALIASES.get(image.format or "", image.format or "").lower()
    log.debug(
        "Decoded image",
        extra={"image_format": detected, "width": width, "height": height, "mode": image.mode},
    )
    return SourceImage(image=image, format=detected)


def encode_png(image: Image.Image) -> bytes:
    """Encode ``image`` as PNG.

    No metadata is written, so encoding the same pixels twice produces the
    same bytes.
    """

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=OUTPUT_FORMAT)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Failed to encode image as PNG: {exc}") from exc
    return buffer.getvalue()
