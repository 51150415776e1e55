from typing import BinaryIO, Protocol

from blob_updown.constants import BACKEND_AZURE, BACKEND_S3, BLOB_NAME, CONTAINER_NAME
from blob_updown.structs import BenchmarkConfig


class BlobStore(Protocol):
    """A single remote object that can be written from a stream and read into a sink."""

    async def upload(self, stream: BinaryIO, length: int) -> None: ...

    async def download(self, sink: BinaryIO) -> None: ...

    async def close(self) -> None: ...

    async def __aenter__(self) -> "BlobStore": ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...


def create_store(
    config: BenchmarkConfig,
    connection_string: str,
    container_name: str = CONTAINER_NAME,
    blob_name: str = BLOB_NAME,
) -> BlobStore:
    """
    Build the store for the configured backend.

    Args:
        config: Benchmark configuration carrying the backend and tuning hints
        connection_string: Backend-specific connection string
        container_name: Container (or bucket) holding the blob
        blob_name: Name of the blob

    Returns:
        A BlobStore bound to the target object
    """
    if config.backend == BACKEND_AZURE:
        from blob_updown.azure_store import AzureBlobStore

        return AzureBlobStore.from_connection_string(
            connection_string,
            container_name,
            blob_name,
            max_transfer_length=config.max_transfer_length,
            max_thread_count=config.max_thread_count,
        )
    if config.backend == BACKEND_S3:
        from blob_updown.s3_store import S3BlobStore

        return S3BlobStore.from_connection_string(
            connection_string,
            container_name,
            blob_name,
            max_transfer_length=config.max_transfer_length,
            max_thread_count=config.max_thread_count,
        )

    raise ValueError(f"Unknown storage backend: {config.backend}")
