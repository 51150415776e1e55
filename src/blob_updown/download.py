import asyncio
from typing import BinaryIO

import httpx

from blob_updown.constants import DOWNLOAD_CHUNK_SIZE
from blob_updown.structs import DownloadPartInfo
from blob_updown.utils import gather_or_cancel


class AsyncDownloader:
    """Handle single and parallel ranged downloads using asyncio and httpx."""

    def __init__(
        self, *, client: httpx.AsyncClient, max_concurrent: int, sink: BinaryIO
    ):
        """
        Initialize with a shared HTTP client and the sink receiving the bytes.

        Args:
            client: httpx.AsyncClient used for every request
            max_concurrent: Maximum number of concurrent downloads guarded by Semaphore
            sink: Writable stream; must be seekable when more than one part is fetched
        """
        self.client = client
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.sink = sink

    async def download_part(self, url_info: DownloadPartInfo, positioned: bool):
        """
        Stream a single part into the sink.

        Args:
            url_info: Pre-signed URL, optional Range header and start offset
            positioned: Whether to seek the sink to the part's offset before each write
        """
        headers = {"Range": url_info.range_header} if url_info.range_header else {}
        total_bytes = 0

        async with self.semaphore:
            async with self.client.stream("GET", url_info.url, headers=headers) as response:
                response.raise_for_status()

                async for chunk in response.aiter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if positioned:
                        self.sink.seek(url_info.start_byte + total_bytes)
                    self.sink.write(chunk)
                    total_bytes += len(chunk)

    async def download_all(self, url_infos: list[DownloadPartInfo]):
        """Download all parts in parallel; one failed part cancels the others."""
        positioned = len(url_infos) > 1
        await gather_or_cancel(
            self.download_part(url_info, positioned) for url_info in url_infos
        )
