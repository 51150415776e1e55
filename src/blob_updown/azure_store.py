import logging
from typing import BinaryIO

from azure.storage.blob.aio import BlobServiceClient

from blob_updown.parsing import parse_connection_string

logger = logging.getLogger(__name__)


def client_options(max_transfer_length: int | None) -> dict:
    """
    Map the transfer length hint onto the Azure client's chunking settings.

    Args:
        max_transfer_length: Largest single request/chunk in bytes, or None for SDK defaults

    Returns:
        Keyword arguments for BlobServiceClient
    """
    if max_transfer_length is None:
        return {}

    return {
        "max_single_put_size": max_transfer_length,
        "max_block_size": max_transfer_length,
        "max_single_get_size": max_transfer_length,
        "max_chunk_get_size": max_transfer_length,
    }


class AzureBlobStore:
    """Upload and download one block blob with the Azure Storage SDK."""

    def __init__(
        self,
        service_client: BlobServiceClient,
        container_name: str,
        blob_name: str,
        max_thread_count: int | None = None,
    ):
        self.service_client = service_client
        self.blob_client = service_client.get_blob_client(container_name, blob_name)
        self.max_thread_count = max_thread_count

    @classmethod
    def from_connection_string(
        cls,
        connection_string: str,
        container_name: str,
        blob_name: str,
        *,
        max_transfer_length: int | None = None,
        max_thread_count: int | None = None,
    ) -> "AzureBlobStore":
        """
        Create a store from an Azure Storage connection string.

        Raises:
            ValueError: If the connection string is blank or malformed
        """
        settings = parse_connection_string(connection_string)
        options = client_options(max_transfer_length)
        logger.debug(
            "Azure account %s, container %s, blob %s, options %s",
            settings.get("AccountName", "<unknown>"),
            container_name,
            blob_name,
            options,
        )

        service_client = BlobServiceClient.from_connection_string(
            connection_string, **options
        )
        return cls(service_client, container_name, blob_name, max_thread_count)

    def transfer_options(self) -> dict:
        if self.max_thread_count is None:
            return {}
        return {"max_concurrency": self.max_thread_count}

    async def upload(self, stream: BinaryIO, length: int) -> None:
        await self.blob_client.upload_blob(
            stream, length=length, overwrite=True, **self.transfer_options()
        )

    async def download(self, sink: BinaryIO) -> None:
        downloader = await self.blob_client.download_blob(**self.transfer_options())
        await downloader.readinto(sink)

    async def close(self) -> None:
        await self.service_client.close()

    async def __aenter__(self) -> "AzureBlobStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
