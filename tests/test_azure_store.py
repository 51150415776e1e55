"""Tests for the Azure backend with the SDK client mocked out."""

import io
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from blob_updown.azure_store import AzureBlobStore, client_options
from blob_updown.constants import BACKEND_AZURE, BACKEND_S3
from blob_updown.store import create_store
from blob_updown.structs import BenchmarkConfig
from blob_updown.utils import DiscardSink

CONNECTION_STRING = (
    "DefaultEndpointsProtocol=https;AccountName=acct;"
    "AccountKey=a2V5;EndpointSuffix=core.windows.net"
)


def mock_service_client():
    downloader = MagicMock()
    downloader.readinto = AsyncMock(return_value=10240)

    blob_client = MagicMock()
    blob_client.upload_blob = AsyncMock()
    blob_client.download_blob = AsyncMock(return_value=downloader)

    service_client = MagicMock()
    service_client.get_blob_client.return_value = blob_client
    service_client.close = AsyncMock()
    return service_client, blob_client, downloader


def test_client_options_without_transfer_length():
    assert client_options(None) == {}


def test_client_options_with_transfer_length():
    assert client_options(4 * 1024 * 1024) == {
        "max_single_put_size": 4 * 1024 * 1024,
        "max_block_size": 4 * 1024 * 1024,
        "max_single_get_size": 4 * 1024 * 1024,
        "max_chunk_get_size": 4 * 1024 * 1024,
    }


def test_from_connection_string_passes_chunking_options():
    service_client, _, _ = mock_service_client()

    with patch(
        "blob_updown.azure_store.BlobServiceClient.from_connection_string",
        return_value=service_client,
    ) as factory:
        store = AzureBlobStore.from_connection_string(
            CONNECTION_STRING, "testcontainer", "testblobupdown", max_transfer_length=1024
        )

    factory.assert_called_once_with(
        CONNECTION_STRING,
        max_single_put_size=1024,
        max_block_size=1024,
        max_single_get_size=1024,
        max_chunk_get_size=1024,
    )
    service_client.get_blob_client.assert_called_once_with(
        "testcontainer", "testblobupdown"
    )
    assert store.max_thread_count is None


def test_malformed_connection_string_rejected():
    with pytest.raises(ValueError):
        AzureBlobStore.from_connection_string("not a connection string", "c", "b")


@pytest.mark.asyncio
async def test_upload_and_download_without_thread_hint():
    service_client, blob_client, downloader = mock_service_client()
    store = AzureBlobStore(service_client, "testcontainer", "testblobupdown")
    stream = io.BytesIO(b"x" * 10240)
    sink = DiscardSink()

    await store.upload(stream, 10240)
    await store.download(sink)

    blob_client.upload_blob.assert_awaited_once_with(stream, length=10240, overwrite=True)
    blob_client.download_blob.assert_awaited_once_with()
    downloader.readinto.assert_awaited_once_with(sink)


@pytest.mark.asyncio
async def test_thread_hint_becomes_max_concurrency():
    service_client, blob_client, _ = mock_service_client()
    store = AzureBlobStore(
        service_client, "testcontainer", "testblobupdown", max_thread_count=8
    )
    stream = io.BytesIO(b"x")

    await store.upload(stream, 1)
    await store.download(DiscardSink())

    blob_client.upload_blob.assert_awaited_once_with(
        stream, length=1, overwrite=True, max_concurrency=8
    )
    blob_client.download_blob.assert_awaited_once_with(max_concurrency=8)


@pytest.mark.asyncio
async def test_context_manager_closes_client():
    service_client, _, _ = mock_service_client()

    async with AzureBlobStore(service_client, "c", "b"):
        pass

    service_client.close.assert_awaited_once()


class TestCreateStore:
    def test_azure_backend(self) -> None:
        config = BenchmarkConfig(
            count=1, size=10, max_transfer_length=64, max_thread_count=2, backend=BACKEND_AZURE
        )
        with patch(
            "blob_updown.azure_store.AzureBlobStore.from_connection_string"
        ) as factory:
            create_store(config, CONNECTION_STRING)

        factory.assert_called_once_with(
            CONNECTION_STRING,
            "testcontainer",
            "testblobupdown",
            max_transfer_length=64,
            max_thread_count=2,
        )

    def test_s3_backend(self) -> None:
        config = BenchmarkConfig(count=1, size=10, backend=BACKEND_S3)
        with patch("blob_updown.s3_store.S3BlobStore.from_connection_string") as factory:
            create_store(config, "AccessKeyId=AK;SecretAccessKey=SK")

        factory.assert_called_once_with(
            "AccessKeyId=AK;SecretAccessKey=SK",
            "testcontainer",
            "testblobupdown",
            max_transfer_length=None,
            max_thread_count=None,
        )

    def test_unknown_backend(self) -> None:
        config = BenchmarkConfig(count=1, size=10, backend="gcs")
        with pytest.raises(ValueError, match="gcs"):
            create_store(config, "a=b")
