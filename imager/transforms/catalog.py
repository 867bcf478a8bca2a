"""Read-only catalog of pre-rendered watermark assets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Protocol

from PIL import Image, ImageDraw

from .codec import decode_image, encode_png
from .errors import AssetCatalogError
from .selection import CATALOG_SIZES, DEFAULT_WATERMARK_SIZE


LOGGER = logging.getLogger(__name__)

ASSET_NAME_TEMPLATE = "size-{size}.png"


def asset_name(size_tag: int) -> str:
    """Return the file name used for the asset with ``size_tag``."""

    return ASSET_NAME_TEMPLATE.format(size=size_tag)


class AssetCatalog(Protocol):
    """Lookup from a size tag to raw encoded watermark bytes."""

    def get(self, size_tag: int) -> bytes | None:
        ...


@dataclass(frozen=True, slots=True)
class WatermarkAsset:
    """Decoded RGBA watermark and the size tag it was loaded under."""

    image: Image.Image
    size_tag: int
    fallback: bool = False

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


class StaticAssetCatalog:
    """Immutable in-memory catalog, safe for concurrent readers."""

    def __init__(self, assets: Mapping[int, bytes]) -> None:
        self._assets: Mapping[int, bytes] = MappingProxyType(
            {int(size): bytes(payload) for size, payload in assets.items()}
        )

    def get(self, size_tag: int) -> bytes | None:
        return self._assets.get(size_tag)

    def sizes(self) -> tuple[int, ...]:
        return tuple(sorted(self._assets))

    def __contains__(self, size_tag: object) -> bool:
        return size_tag in self._assets

    def __len__(self) -> int:
        return len(self._assets)

    @classmethod
    def from_directory(
        cls,
        directory: str | Path,
        *,
        sizes: Iterable[int] = CATALOG_SIZES,
    ) -> "StaticAssetCatalog":
        """Load every ``size-{N}.png`` asset found in ``directory``.

        Missing sizes are skipped; the catalog must contain at least the
        default size.
        """

        root = Path(directory)
        if not root.is_dir():
            raise AssetCatalogError(f"Watermark asset directory does not exist: {root}")

        assets: dict[int, bytes] = {}
        for size in sizes:
            path = root / asset_name(size)
            if not path.is_file():
                LOGGER.debug("Watermark asset not packaged", extra={"path": str(path)})
                continue
            assets[size] = path.read_bytes()

        if DEFAULT_WATERMARK_SIZE not in assets:
            raise AssetCatalogError(
                f"Default watermark asset {asset_name(DEFAULT_WATERMARK_SIZE)} is missing from {root}"
            )
        LOGGER.info(
            "Loaded watermark assets",
            extra={"directory": str(root), "sizes": sorted(assets)},
        )
        return cls(assets)

    @classmethod
    def builtin(cls, *, sizes: Iterable[int] = CATALOG_SIZES) -> "StaticAssetCatalog":
        """Render the stock translucent badge at every catalog size."""

        return cls({size: encode_png(render_badge(size)) for size in sizes})


def render_badge(size: int) -> Image.Image:
    """Draw the stock watermark: a translucent ring around a filled disc."""

    badge = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(badge)
    stroke = max(1, size // 16)
    draw.ellipse(
        (0, 0, size - 1, size - 1),
        fill=(255, 255, 255, 96),
        outline=(20, 20, 20, 192),
        width=stroke,
    )
    inset = size // 4
    if size - 1 - 2 * inset > 0:
        draw.ellipse(
            (inset, inset, size - 1 - inset, size - 1 - inset),
            fill=(20, 20, 20, 144),
        )
    return badge


def load_asset(
    catalog: AssetCatalog,
    size_tag: int,
    *,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> WatermarkAsset:
    """Fetch and decode the watermark for ``size_tag``.

    Falls back to :data:`DEFAULT_WATERMARK_SIZE` when the requested size is not
    packaged. A catalog without the default size is a configuration error.
    """

    log = logger or LOGGER
    payload = catalog.get(size_tag)
    used_tag = size_tag
    if payload is None:
        log.warning(
            "Failed to load computed watermark. Falling back to default",
            extra={"asset": asset_name(size_tag), "default_asset": asset_name(DEFAULT_WATERMARK_SIZE)},
        )
        used_tag = DEFAULT_WATERMARK_SIZE
        payload = catalog.get(DEFAULT_WATERMARK_SIZE)
        if payload is None:
            raise AssetCatalogError(
                f"Default watermark asset {asset_name(DEFAULT_WATERMARK_SIZE)} is missing from the catalog"
            )

    decoded = decode_image(payload, logger=log)
    log.info("Watermark resource", extra={"asset": asset_name(used_tag), "watermark_size": decoded.size})
    return WatermarkAsset(
        image=decoded.image.convert("RGBA"),
        size_tag=used_tag,
        fallback=used_tag != size_tag,
    )
