"""Stamp images with a size-appropriate watermark in the bottom-right corner."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from PIL import Image

from .catalog import AssetCatalog, WatermarkAsset, load_asset
from .codec import ImageSource, SourceImage, decode_image, encode_png
from .selection import select_watermark_size


LOGGER = logging.getLogger(__name__)

CANVAS_MODE = "RGBA"
WIDE_GREY_MODES = frozenset({"I", "I;16", "I;16B", "I;16L", "I;16N"})

Box = tuple[int, int, int, int]


@dataclass(slots=True)
class CompositeCanvas:
    """RGBA canvas holding the source pixels with the watermark drawn over them.

    ``watermark_box`` is the ``(left, top, right, bottom)`` region of the
    canvas actually covered by the watermark.
    """

    image: Image.Image
    watermark_box: Box

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


def to_canvas_mode(image: Image.Image) -> Image.Image:
    """Return an 8-bit RGBA copy of ``image``.

    16-bit grey samples are scaled down to 8 bits first; a direct RGBA
    conversion would clip them to 255.
    """

    if image.mode in WIDE_GREY_MODES:
        image = image.convert("I").point(lambda value: value * (1 / 256)).convert("L")
    return image.convert(CANVAS_MODE)


def watermark_placement(canvas_size: tuple[int, int], watermark_size: tuple[int, int]) -> tuple[Box, Box]:
    """Return ``(destination_box, crop_box)`` for a bottom-right watermark.

    The destination is flush with the canvas's bottom-right corner. When the
    watermark overhangs the canvas the overhanging top and left strips are
    cropped off so the draw region never leaves the canvas.
    """

    canvas_width, canvas_height = canvas_size
    mark_width, mark_height = watermark_size

    left = canvas_width - mark_width
    top = canvas_height - mark_height
    crop_box = (max(0, -left), max(0, -top), mark_width, mark_height)
    destination = (max(0, left), max(0, top), canvas_width, canvas_height)
    return destination, crop_box


def composite(
    source: SourceImage | Image.Image,
    watermark: WatermarkAsset | Image.Image,
    *,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> CompositeCanvas:
    """Draw ``watermark`` over the bottom-right corner of ``source``."""

    log = logger or LOGGER
    source_image = source.image if isinstance(source, SourceImage) else source
    mark = watermark.image if isinstance(watermark, WatermarkAsset) else watermark
    if mark.mode != CANVAS_MODE:
        mark = mark.convert(CANVAS_MODE)

    canvas = Image.new(CANVAS_MODE, source_image.size)
    # paste without a mask replaces every channel, alpha included
    canvas.paste(to_canvas_mode(source_image), (0, 0))

    destination, crop_box = watermark_placement(canvas.size, mark.size)
    log.debug(
        "Drawing",
        extra={
            "target_bounds": canvas.size,
            "stamp_bounds": mark.size,
            "target_rect": destination,
            "stamp_crop": crop_box,
        },
    )
    if crop_box != (0, 0) + mark.size:
        log.warning(
            "Watermark larger than target; cropping",
            extra={"target_bounds": canvas.size, "stamp_bounds": mark.size},
        )

    canvas.alpha_composite(mark, dest=destination[:2], source=crop_box)
    return CompositeCanvas(image=canvas, watermark_box=destination)


class WatermarkCompositor:
    """Decode, stamp and re-encode images against an injected asset catalog."""

    def __init__(
        self,
        catalog: AssetCatalog,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self.catalog = catalog
        self.logger = logger or LOGGER

    def stamp(
        self,
        source: ImageSource,
        *,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> bytes:
        """Return PNG bytes of ``source`` carrying the watermark."""

        log = logger or self.logger
        decoded = decode_image(source, logger=log)
        size_tag = select_watermark_size(decoded.width, decoded.height)
        log.info(
            "Target dimensions",
            extra={
                "image_format": decoded.format,
                "target_bounds": decoded.size,
                "size_tag": size_tag,
            },
        )
        asset = load_asset(self.catalog, size_tag, logger=log)
        canvas = composite(decoded, asset, logger=log)
        return encode_png(canvas.image)


def stamp_image(
    source: ImageSource,
    catalog: AssetCatalog,
    *,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> bytes:
    """Convenience wrapper around :meth:`WatermarkCompositor.stamp`."""

    return WatermarkCompositor(catalog, logger=logger).stamp(source)
