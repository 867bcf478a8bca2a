import io
import logging
import pathlib
import sys

import pytest
from PIL import Image

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from imager import config as config_module
from imager.config import ImagerSettings, build_asset_catalog, get_settings
from imager.transforms import AssetCatalogError, CATALOG_SIZES


@pytest.fixture(autouse=True)
def clear_environment(monkeypatch):
    for name in (
        "IMAGER_ASSET_DIR",
        "IMAGER_TRANSFORM_PREFIX",
        "IMAGER_LOG_DIR",
        "IMAGER_LOG_LEVEL",
        "STORAGE_BACKEND",
        "STORAGE_LOCAL_BASE_PATH",
        "STORAGE_S3_BUCKET",
        "STORAGE_S3_PREFIX",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = ImagerSettings.load()

    assert settings.asset_directory is None
    assert settings.transform_prefix == "xformed_"
    assert settings.log_directory == pathlib.Path("logs/invocations")
    assert settings.storage_backend == "local"
    assert settings.storage_local_base_path == pathlib.Path("./storage")
    assert settings.storage_s3_bucket is None
    assert settings.storage_s3_prefix is None
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("IMAGER_ASSET_DIR", str(tmp_path))
    monkeypatch.setenv("IMAGER_TRANSFORM_PREFIX", "stamped_")
    monkeypatch.setenv("STORAGE_BACKEND", "S3")
    monkeypatch.setenv("STORAGE_S3_BUCKET", "uploads")
    monkeypatch.setenv("STORAGE_S3_PREFIX", "images")

    settings = ImagerSettings.load()

    assert settings.asset_directory == tmp_path
    assert settings.transform_prefix == "stamped_"
    assert settings.storage_backend == "s3"
    assert settings.storage_s3_bucket == "uploads"
    assert settings.storage_s3_prefix == "images"


@pytest.mark.parametrize("value", ["", "   ", "nested/prefix_"])
def test_invalid_prefix_falls_back(monkeypatch, caplog, value):
    monkeypatch.setenv("IMAGER_TRANSFORM_PREFIX", value)

    with caplog.at_level(logging.WARNING, logger="imager.config"):
        settings = ImagerSettings.load()

    assert settings.transform_prefix == config_module.DEFAULT_TRANSFORM_PREFIX
    assert "IMAGER_TRANSFORM_PREFIX" in caplog.text


def test_log_level_is_normalised(monkeypatch):
    monkeypatch.setenv("IMAGER_LOG_LEVEL", " debug ")

    assert ImagerSettings.load().log_level == "DEBUG"


def test_invalid_log_level_falls_back(monkeypatch, caplog):
    monkeypatch.setenv("IMAGER_LOG_LEVEL", "chatty")

    with caplog.at_level(logging.WARNING, logger="imager.config"):
        settings = ImagerSettings.load()

    assert settings.log_level == "INFO"
    assert "IMAGER_LOG_LEVEL" in caplog.text


def test_get_settings_is_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("IMAGER_TRANSFORM_PREFIX", "other_")

    assert get_settings() is first


def test_build_asset_catalog_defaults_to_builtin(tmp_path):
    catalog = build_asset_catalog(ImagerSettings.load())

    assert catalog.sizes() == CATALOG_SIZES


def test_build_asset_catalog_from_directory(monkeypatch, tmp_path):
    buffer = io.BytesIO()
    Image.new("RGBA", (16, 16), (0, 0, 0, 128)).save(buffer, format="PNG")
    (tmp_path / "size-16.png").write_bytes(buffer.getvalue())
    monkeypatch.setenv("IMAGER_ASSET_DIR", str(tmp_path))

    catalog = build_asset_catalog(ImagerSettings.load())

    assert catalog.sizes() == (16,)


def test_build_asset_catalog_with_broken_directory(monkeypatch, tmp_path):
    monkeypatch.setenv("IMAGER_ASSET_DIR", str(tmp_path / "missing"))

    with pytest.raises(AssetCatalogError):
        build_asset_catalog(ImagerSettings.load())
