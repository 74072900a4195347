# utils/blob_storage.py
"""
Azure Blob Storage for generated documents.

Blobs are addressed by key ("invoices/INV-001.pdf") inside one container and
exposed by their public URL.
"""
import logging
from typing import Optional
from urllib.parse import urlparse

from azure.storage.blob import BlobServiceClient, ContentSettings

from config import AZURE_STORAGE_ACCOUNT, AZURE_STORAGE_CONTAINER, AZURE_STORAGE_KEY

logger = logging.getLogger(__name__)


class AzureBlobStore:
     def __init__(self, service: BlobServiceClient, account: str, container: str):
          self.service = service
          self.account = account
          self.container = container

     @classmethod
     def from_settings(
          cls,
          account: Optional[str] = AZURE_STORAGE_ACCOUNT,
          key: Optional[str] = AZURE_STORAGE_KEY,
          container: str = AZURE_STORAGE_CONTAINER,
     ) -> Optional["AzureBlobStore"]:
          """Build a store from credentials, or None when storage is not configured."""
          if not account or not key:
               return None
          service = BlobServiceClient.from_connection_string(
               f"DefaultEndpointsProtocol=https;"
               f"AccountName={account};"
               f"AccountKey={key};"
               f"EndpointSuffix=core.windows.net"
          )
          return cls(service, account, container)

     def url_for(self, key: str) -> str:
          return f"https://{self.account}.blob.core.windows.net/{self.container}/{key}"

     def upload_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
          blob_client = self.service.get_blob_client(container=self.container, blob=key)
          blob_client.upload_blob(data, overwrite=True, content_settings=ContentSettings(content_type=content_type))
          logger.info("Stored blob %s (%d bytes)", key, len(data))
          return self.url_for(key)

     def download_bytes(self, key: str) -> bytes:
          blob_client = self.service.get_blob_client(container=self.container, blob=key)
          return blob_client.download_blob().readall()

     def delete(self, blob_url: str) -> None:
          """
          Deletes a blob using its full URL
          """
          container, _, blob_name = urlparse(blob_url).path.lstrip("/").partition("/")
          blob_client = self.service.get_blob_client(container=container, blob=blob_name)
          blob_client.delete_blob()
