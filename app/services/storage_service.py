"""
Object storage access (Azure Blob Storage).

Uploaded logos and inspection photos are stored as blob keys such as
"uploads/inspections/123/front.jpg" inside one container.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from azure.storage.blob import BlobServiceClient, BlobSasPermissions, generate_blob_sas

from ..config import settings

logger = logging.getLogger(__name__)


class StorageNotConfiguredError(RuntimeError):
    pass


class StorageService:
    def __init__(
        self,
        connection_string: Optional[str] = None,
        container_name: Optional[str] = None,
    ) -> None:
        self._connection_string = (
            settings.azure_storage_connection_string
            if connection_string is None else connection_string
        )
        self._container_name = container_name or settings.azure_storage_container_name
        self._client: Optional[BlobServiceClient] = None

    @property
    def enabled(self) -> bool:
        return bool(self._connection_string)

    @property
    def container_name(self) -> str:
        return self._container_name

    def _get_client(self) -> BlobServiceClient:
        if not self._connection_string:
            raise StorageNotConfiguredError("Almacenamiento de objetos no configurado")
        if self._client is None:
            self._client = BlobServiceClient.from_connection_string(self._connection_string)
        return self._client

    def download_bytes(self, key: str) -> bytes:
        """Download a whole blob into memory"""
        client = self._get_client()
        blob_client = client.get_blob_client(container=self._container_name, blob=key.lstrip("/"))
        return blob_client.download_blob().readall()

    def get_signed_url(self, key: str, expires_in: int) -> str:
        """Read-only SAS URL for a blob, valid for expires_in seconds"""
        client = self._get_client()
        blob_name = key.lstrip("/")
        credential = client.credential
        account_key = getattr(credential, "account_key", None)
        if not account_key:
            raise StorageNotConfiguredError("La cadena de conexión no incluye AccountKey")

        sas = generate_blob_sas(
            account_name=client.account_name,
            container_name=self._container_name,
            blob_name=blob_name,
            account_key=account_key,
            permission=BlobSasPermissions(read=True),
            expiry=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )
        blob_client = client.get_blob_client(container=self._container_name, blob=blob_name)
        return f"{blob_client.url}?{sas}"


storage_service = StorageService()
