"""Image watermarking transforms."""

from .catalog import AssetCatalog, StaticAssetCatalog, WatermarkAsset, asset_name, load_asset
from .codec import SourceImage, decode_image, encode_png
from .compositor import CompositeCanvas, WatermarkCompositor, composite, stamp_image
from .errors import AssetCatalogError, DecodeError, EncodeError, ImagerError
from .selection import CATALOG_SIZES, DEFAULT_WATERMARK_SIZE, select_watermark_size

__all__ = [
    "AssetCatalog",
    "AssetCatalogError",
    "CATALOG_SIZES",
    "CompositeCanvas",
    "DEFAULT_WATERMARK_SIZE",
    "DecodeError",
    "EncodeError",
    "ImagerError",
    "SourceImage",
    "StaticAssetCatalog",
    "WatermarkAsset",
    "WatermarkCompositor",
    "asset_name",
    "composite",
    "decode_image",
    "encode_png",
    "load_asset",
    "select_watermark_size",
    "stamp_image",
]
