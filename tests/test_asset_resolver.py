"""
Tests for asset resolvers (logo and inspection photos)
"""

import base64
import io

import pytest
from unittest.mock import MagicMock, patch
from PIL import Image

from app.models import AssetStorage
from app.services.asset_resolver import (
    LocalAssetResolver, ObjectStorageAssetResolver, UrlAssetResolver,
    compress_image, get_asset_resolver, guess_mime_type, to_data_uri
)
from app.services.storage_service import StorageService, StorageNotConfiguredError


def png_bytes(size=(800, 400), mode="RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color="red" if mode == "RGB" else (255, 0, 0, 128)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestHelpers:

    def test_guess_mime_type(self):
        assert guess_mime_type("logo.png") == "image/png"
        assert guess_mime_type("photos/front.JPG") == "image/jpeg"
        assert guess_mime_type("https://cdn.example.com/logo.svg?v=2") == "image/svg+xml"
        assert guess_mime_type("no-extension") == "image/jpeg"

    def test_to_data_uri(self):
        assert to_data_uri(b"abc", "image/png") == "data:image/png;base64,YWJj"

    def test_compress_image_bounds_dimensions(self):
        content, mime = compress_image(png_bytes((800, 400)), max_dimension=300, quality=75)
        assert mime == "image/jpeg"
        with Image.open(io.BytesIO(content)) as img:
            assert max(img.size) == 300

    def test_compress_keeps_transparency_as_png(self):
        content, mime = compress_image(png_bytes((100, 100), mode="RGBA"), max_dimension=300, quality=75)
        assert mime == "image/png"


class TestLocalResolver:

    def test_relative_path_under_public_dir(self, tmp_path):
        (tmp_path / "logo.png").write_bytes(b"PNGDATA")
        resolver = LocalAssetResolver(str(tmp_path))

        assert resolver.read_bytes("logo.png") == b"PNGDATA"
        expected = base64.b64encode(b"PNGDATA").decode()
        assert resolver.as_data_uri("logo.png") == f"data:image/png;base64,{expected}"

    def test_file_uri_and_absolute_path(self, tmp_path):
        file_path = tmp_path / "logo.jpg"
        file_path.write_bytes(b"JPG")
        resolver = LocalAssetResolver("/nonexistent")

        assert resolver.read_bytes(str(file_path)) == b"JPG"
        assert resolver.read_bytes(f"file://{file_path}") == b"JPG"

    def test_missing_file_raises(self, tmp_path):
        resolver = LocalAssetResolver(str(tmp_path))
        with pytest.raises(FileNotFoundError):
            resolver.read_bytes("missing.png")
        assert resolver.viewable_url("missing.png", 60) is None


class TestObjectStorageResolver:

    def test_logo_is_downloaded_and_compressed(self):
        storage = MagicMock()
        storage.download_bytes.return_value = png_bytes((1200, 600))
        resolver = ObjectStorageAssetResolver(storage, max_dimension=300, quality=75)

        uri = resolver.as_data_uri("company/logo.png")

        storage.download_bytes.assert_called_once_with("company/logo.png")
        assert uri.startswith("data:image/jpeg;base64,")

    def test_photos_use_signed_urls(self):
        storage = MagicMock()
        storage.get_signed_url.return_value = "https://acct.blob.core.windows.net/uploads/front.jpg?sig=x"
        resolver = ObjectStorageAssetResolver(storage)

        url = resolver.viewable_url("front.jpg", 604800)

        storage.get_signed_url.assert_called_once_with("front.jpg", 604800)
        assert url.endswith("sig=x")

    def test_unconfigured_storage_raises(self):
        storage = StorageService(connection_string="", container_name="uploads")
        assert storage.enabled is False
        with pytest.raises(StorageNotConfiguredError):
            storage.download_bytes("logo.png")


class TestUrlResolver:

    def test_fetches_remote_asset(self):
        response = MagicMock()
        response.content = b"REMOTE"
        with patch("app.services.asset_resolver.httpx.get", return_value=response) as get:
            content = UrlAssetResolver(timeout=5).read_bytes("https://cdn.example.com/logo.png")

        assert content == b"REMOTE"
        response.raise_for_status.assert_called_once()
        assert get.call_args.kwargs["timeout"] == 5

    def test_viewable_url_is_the_url(self):
        assert UrlAssetResolver().viewable_url("https://cdn.example.com/a.jpg", 60) == "https://cdn.example.com/a.jpg"


class TestResolverSelection:

    def test_selects_by_discriminator(self):
        storage = MagicMock()
        assert isinstance(get_asset_resolver("local"), LocalAssetResolver)
        assert isinstance(get_asset_resolver(AssetStorage.URL.value), UrlAssetResolver)
        assert isinstance(get_asset_resolver("object_storage", storage_client=storage), ObjectStorageAssetResolver)

    def test_defaults_to_object_storage(self):
        assert isinstance(get_asset_resolver(None, storage_client=MagicMock()), ObjectStorageAssetResolver)

    def test_unknown_storage_is_rejected(self):
        with pytest.raises(ValueError):
            get_asset_resolver("ftp")
