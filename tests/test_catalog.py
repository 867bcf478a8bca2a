import io
import logging
import pathlib
import sys

import pytest
from PIL import Image

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from imager.transforms import (
    AssetCatalogError,
    CATALOG_SIZES,
    DecodeError,
    StaticAssetCatalog,
    asset_name,
    load_asset,
)


def _png(size: int, color=(0, 0, 255, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (size, size), color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_asset_name_follows_size_convention():
    assert asset_name(64) == "size-64.png"


def test_load_asset_returns_requested_size():
    catalog = StaticAssetCatalog({16: _png(16), 64: _png(64)})

    asset = load_asset(catalog, 64)

    assert asset.size_tag == 64
    assert asset.size == (64, 64)
    assert asset.image.mode == "RGBA"
    assert asset.fallback is False


def test_load_asset_falls_back_to_default(caplog):
    catalog = StaticAssetCatalog({16: _png(16)})

    with caplog.at_level(logging.WARNING, logger="imager.transforms.catalog"):
        asset = load_asset(catalog, 128)

    assert asset.size_tag == 16
    assert asset.size == (16, 16)
    assert asset.fallback is True
    assert any("Falling back" in record.getMessage() for record in caplog.records)


def test_load_asset_without_default_is_fatal():
    catalog = StaticAssetCatalog({64: _png(64)})

    with pytest.raises(AssetCatalogError):
        load_asset(catalog, 32)


def test_corrupt_asset_raises_decode_error():
    catalog = StaticAssetCatalog({16: b"broken", 32: b"broken"})

    with pytest.raises(DecodeError):
        load_asset(catalog, 32)


def test_catalog_is_isolated_from_source_mapping():
    assets = {16: _png(16)}
    catalog = StaticAssetCatalog(assets)

    assets[32] = _png(32)

    assert catalog.get(32) is None
    assert 16 in catalog
    assert len(catalog) == 1


def test_builtin_catalog_renders_every_size():
    catalog = StaticAssetCatalog.builtin()

    assert catalog.sizes() == CATALOG_SIZES
    for size in CATALOG_SIZES:
        image = Image.open(io.BytesIO(catalog.get(size)))
        assert image.size == (size, size)
        assert image.mode == "RGBA"
        # corners sit outside the badge and stay transparent
        assert image.getpixel((0, 0))[3] == 0
        # the centre is translucent rather than opaque
        assert 0 < image.getpixel((size // 2, size // 2))[3] < 255


def test_from_directory_loads_named_assets(tmp_path):
    (tmp_path / "size-16.png").write_bytes(_png(16))
    (tmp_path / "size-64.png").write_bytes(_png(64))
    (tmp_path / "unrelated.png").write_bytes(_png(8))

    catalog = StaticAssetCatalog.from_directory(tmp_path)

    assert catalog.sizes() == (16, 64)
    assert load_asset(catalog, 64).size == (64, 64)


def test_from_directory_requires_default_asset(tmp_path):
    (tmp_path / "size-32.png").write_bytes(_png(32))

    with pytest.raises(AssetCatalogError):
        StaticAssetCatalog.from_directory(tmp_path)


def test_from_directory_requires_existing_directory(tmp_path):
    with pytest.raises(AssetCatalogError):
        StaticAssetCatalog.from_directory(tmp_path / "missing")
