"""
Asset Resolvers

Turns a stored asset reference (logo, inspection photo) into something a
contract can embed: an inline data URI or a viewable URL. One resolver per
storage backend, selected by the AssetStorage discriminator stored next to
the path.
"""

import base64
import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import httpx
from PIL import Image

from ..config import Settings, settings as default_settings
from ..models.company_config import AssetStorage
from .storage_service import StorageService, storage_service as default_storage

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}


def guess_mime_type(path: str) -> str:
    return MIME_TYPES.get(Path(path.split("?", 1)[0]).suffix.lower(), "image/jpeg")


def to_data_uri(content: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


def compress_image(content: bytes, max_dimension: int, quality: int) -> tuple:
    """
    Shrink an image so its longest side is at most max_dimension.

    Returns (bytes, mime_type). Images with transparency stay PNG, the rest
    are re-encoded as JPEG at the given quality.
    """
    with Image.open(io.BytesIO(content)) as img:
        img.thumbnail((max_dimension, max_dimension))
        buffer = io.BytesIO()
        if img.mode in ("RGBA", "LA", "P"):
            img.save(buffer, format="PNG", optimize=True)
            return buffer.getvalue(), "image/png"
        img.convert("RGB").save(buffer, format="JPEG", quality=quality, optimize=True)
        return buffer.getvalue(), "image/jpeg"


class AssetResolver(ABC):
    storage: AssetStorage

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        ...

    def as_data_uri(self, path: str) -> str:
        """Inline representation of the asset (used for the logo)"""
        return to_data_uri(self.read_bytes(path), guess_mime_type(path))

    @abstractmethod
    def viewable_url(self, path: str, expires_in: int) -> Optional[str]:
        """URL a browser can open (used for inspection photos)"""
        ...


class LocalAssetResolver(AssetResolver):
    """Files on local disk; relative paths live under the public assets dir"""
    storage = AssetStorage.LOCAL

    def __init__(self, public_dir: str):
        self.public_dir = Path(public_dir)

    def _resolve(self, path: str) -> Path:
        clean = path[len("file://"):] if path.startswith("file://") else path
        candidate = Path(clean)
        if not candidate.is_absolute():
            candidate = self.public_dir / candidate
        return candidate

    def read_bytes(self, path: str) -> bytes:
        file_path = self._resolve(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"Archivo no encontrado: {file_path}")
        return file_path.read_bytes()

    def viewable_url(self, path: str, expires_in: int) -> Optional[str]:
        file_path = self._resolve(path)
        return file_path.resolve().as_uri() if file_path.is_file() else None


class ObjectStorageAssetResolver(AssetResolver):
    """Blob keys in object storage; logos are compressed before inlining"""
    storage = AssetStorage.OBJECT_STORAGE

    def __init__(self, storage: StorageService, max_dimension: int = 300, quality: int = 75):
        self.storage_service = storage
        self.max_dimension = max_dimension
        self.quality = quality

    def read_bytes(self, path: str) -> bytes:
        return self.storage_service.download_bytes(path)

    def as_data_uri(self, path: str) -> str:
        raw = self.read_bytes(path)
        compressed, mime_type = compress_image(raw, self.max_dimension, self.quality)
        return to_data_uri(compressed, mime_type)

    def viewable_url(self, path: str, expires_in: int) -> Optional[str]:
        return self.storage_service.get_signed_url(path, expires_in)


class UrlAssetResolver(AssetResolver):
    """Publicly reachable http(s) URLs"""
    storage = AssetStorage.URL

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def read_bytes(self, path: str) -> bytes:
        response = httpx.get(path, timeout=self.timeout, follow_redirects=True)
        response.raise_for_status()
        return response.content

    def viewable_url(self, path: str, expires_in: int) -> Optional[str]:
        return path


def get_asset_resolver(
    storage: Optional[str],
    config: Settings = None,
    storage_client: StorageService = None,
) -> AssetResolver:
    """Pick the resolver for a storage discriminator (defaults to object storage)"""
    config = config or default_settings
    kind = AssetStorage(storage) if storage else AssetStorage.OBJECT_STORAGE

    if kind == AssetStorage.LOCAL:
        return LocalAssetResolver(config.public_assets_dir)
    if kind == AssetStorage.URL:
        return UrlAssetResolver(timeout=config.asset_fetch_timeout_seconds)
    return ObjectStorageAssetResolver(
        storage_client or default_storage,
        max_dimension=config.logo_max_dimension,
        quality=config.logo_quality,
    )
