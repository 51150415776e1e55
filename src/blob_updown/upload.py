import asyncio

import httpx

from blob_updown.structs import PartUploadResult, UploadPartInfo
from blob_updown.utils import gather_or_cancel


class AsyncUploader:
    """Handle single and parallel part uploads using asyncio and httpx."""

    def __init__(self, *, client: httpx.AsyncClient, max_concurrent: int):
        """
        Initialize with a shared HTTP client.

        Args:
            client: httpx.AsyncClient used for every request
            max_concurrent: Maximum number of parts in flight, guarded by a Semaphore
        """
        self.client = client
        self.semaphore = asyncio.Semaphore(max_concurrent)

    async def put(self, url: str, content: bytes) -> httpx.Response:
        """Upload content to a pre-signed URL in a single request."""
        headers = {"Content-Length": str(len(content))}
        response = await self.client.put(url, headers=headers, content=content)
        response.raise_for_status()
        return response

    async def upload_part(
        self, part_info: UploadPartInfo, payload: bytes
    ) -> PartUploadResult:
        """
        Upload a single part with semaphore for concurrency control.

        Args:
            part_info: Part number, byte range and pre-signed URL
            payload: Full payload the part is cut from

        Returns:
            PartUploadResult with the ETag needed to complete the upload

        Raises:
            ValueError: If the server returns no ETag
        """
        content = payload[part_info.start_byte : part_info.end_byte + 1]

        async with self.semaphore:
            response = await self.put(part_info.url, content)

        etag = response.headers.get("ETag", "").strip('"')
        if not etag:
            raise ValueError(f"No ETag received for part {part_info.part_number}")

        return PartUploadResult(part_number=part_info.part_number, etag=etag)

    async def upload_all(
        self, upload_info: list[UploadPartInfo], payload: bytes
    ) -> list[PartUploadResult]:
        """Upload all parts in parallel; one failed part cancels the others."""
        return await gather_or_cancel(
            self.upload_part(part_info, payload) for part_info in upload_info
        )
