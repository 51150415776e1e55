import logging
from typing import BinaryIO

import boto3
import httpx
from botocore.config import Config

from blob_updown.constants import (
    DEFAULT_PARALLEL_PARTS,
    DEFAULT_REGION,
    MEGABYTE,
    PRESIGNED_URL_EXPIRATION,
)
from blob_updown.download import AsyncDownloader
from blob_updown.parsing import parse_connection_string
from blob_updown.structs import DownloadPartInfo, S3ConnectionInfo, UploadPartInfo
from blob_updown.upload import AsyncUploader
from blob_updown.utils import calculate_parts, format_size

logger = logging.getLogger(__name__)

# S3 rejects multipart parts below this size, except for the last one
MINIMUM_PART_SIZE = 5 * MEGABYTE

ADDRESSING_STYLES = ("auto", "path", "virtual")


def parse_s3_connection_string(connection_string: str) -> S3ConnectionInfo:
    """
    Parse an S3 connection string.

    Recognised keys (case-insensitive): Endpoint, Region, AccessKeyId,
    SecretAccessKey, SessionToken, AddressingStyle. Missing keys fall back to
    AWS defaults, so credentials may also come from the usual boto3 chain.

    Args:
        connection_string: e.g. "Endpoint=http://localhost:9000;AccessKeyId=...;SecretAccessKey=..."

    Returns:
        S3ConnectionInfo

    Raises:
        ValueError: If the string is malformed or names an unknown addressing style
    """
    settings = {
        key.lower(): value
        for key, value in parse_connection_string(connection_string).items()
    }

    addressing_style = settings.get("addressingstyle", "auto").lower()
    if addressing_style not in ADDRESSING_STYLES:
        raise ValueError(
            f"Invalid AddressingStyle: {addressing_style}. Expected one of {', '.join(ADDRESSING_STYLES)}"
        )

    return S3ConnectionInfo(
        endpoint_url=settings.get("endpoint") or None,
        region=settings.get("region") or DEFAULT_REGION,
        access_key_id=settings.get("accesskeyid") or None,
        secret_access_key=settings.get("secretaccesskey") or None,
        session_token=settings.get("sessiontoken") or None,
        addressing_style=addressing_style,
    )


def get_s3_client(info: S3ConnectionInfo):
    """
    Create and return a boto3 S3 client for the connection settings.

    Args:
        info: Parsed connection settings

    Returns:
        boto3 S3 client
    """
    session = boto3.Session(
        aws_access_key_id=info.access_key_id,
        aws_secret_access_key=info.secret_access_key,
        aws_session_token=info.session_token,
    )

    logger.debug("Using endpoint: %s", info.endpoint_url or "<AWS default>")
    logger.debug("Region: %s", info.region)
    logger.debug("Addressing style: %s", info.addressing_style)

    return session.client(
        "s3",
        endpoint_url=info.endpoint_url,
        region_name=info.region,
        config=Config(s3={"addressing_style": info.addressing_style}),
    )


class PresignedUrlGenerator:
    """Generate pre-signed URLs for whole-object and per-part transfers."""

    def __init__(self, s3_client, expiration: int = PRESIGNED_URL_EXPIRATION):
        self.s3_client = s3_client
        self.expiration = expiration

    def get_object_size(self, bucket: str, key: str) -> int:
        response = self.s3_client.head_object(Bucket=bucket, Key=key)
        return response["ContentLength"]

    def generate_put_url(self, bucket: str, key: str) -> str:
        return self.s3_client.generate_presigned_url(
            "put_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=self.expiration,
        )

    def generate_download_urls(
        self, bucket: str, key: str, parts: list[tuple[int, int]]
    ) -> list[DownloadPartInfo]:
        """
        Generate pre-signed URLs for downloading parts.

        A single part is fetched without a Range header.

        Args:
            bucket: S3 bucket name
            key: S3 object key
            parts: List of (start_byte, end_byte) tuples

        Returns:
            List of DownloadPartInfo
        """
        if len(parts) <= 1:
            url = self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=self.expiration,
            )
            return [DownloadPartInfo(url=url)]

        urls = []
        for start, end in parts:
            range_header = f"bytes={start}-{end}"
            params = {"Bucket": bucket, "Key": key, "Range": range_header}

            url = self.s3_client.generate_presigned_url(
                "get_object", Params=params, ExpiresIn=self.expiration
            )
            urls.append(
                DownloadPartInfo(url=url, range_header=range_header, start_byte=start)
            )

        return urls

    def generate_upload_urls(
        self,
        *,
        bucket: str,
        key: str,
        parts: list[tuple[int, int]],
        upload_id: str,
    ) -> list[UploadPartInfo]:
        """
        Generate pre-signed URLs for uploading parts of a multipart upload.

        Args:
            bucket: S3 bucket name
            key: S3 object key
            parts: List of (start_byte, end_byte) tuples
            upload_id: Multipart upload ID

        Returns:
            List of UploadPartInfo, part numbers starting at 1
        """
        upload_info = []
        for i, (start, end) in enumerate(parts):
            part_number = i + 1  # S3 part numbers are 1-based

            params = {
                "Bucket": bucket,
                "Key": key,
                "UploadId": upload_id,
                "PartNumber": part_number,
            }

            url = self.s3_client.generate_presigned_url(
                "upload_part", Params=params, ExpiresIn=self.expiration
            )

            upload_info.append(
                UploadPartInfo(
                    url=url, part_number=part_number, start_byte=start, end_byte=end
                )
            )

        return upload_info


class S3BlobStore:
    """Upload and download one S3 object through pre-signed URLs."""

    def __init__(
        self,
        s3_client,
        bucket_name: str,
        object_key: str,
        *,
        max_transfer_length: int | None = None,
        max_thread_count: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.object_key = object_key
        self.max_transfer_length = max_transfer_length
        self.max_concurrent = max_thread_count or DEFAULT_PARALLEL_PARTS
        # Size of the last object this store uploaded; None until the first upload
        self.object_size = None
        self.url_generator = PresignedUrlGenerator(s3_client)
        self.http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(None), follow_redirects=True
        )

        if max_transfer_length is not None and max_transfer_length < MINIMUM_PART_SIZE:
            logger.warning(
                "Maximum transfer length %s is below the S3 minimum part size of %s; "
                "multipart uploads will be rejected by most servers",
                format_size(max_transfer_length),
                format_size(MINIMUM_PART_SIZE),
            )

    @classmethod
    def from_connection_string(
        cls,
        connection_string: str,
        bucket_name: str,
        object_key: str,
        *,
        max_transfer_length: int | None = None,
        max_thread_count: int | None = None,
    ) -> "S3BlobStore":
        info = parse_s3_connection_string(connection_string)
        return cls(
            get_s3_client(info),
            bucket_name,
            object_key,
            max_transfer_length=max_transfer_length,
            max_thread_count=max_thread_count,
        )

    def split(self, size: int) -> list[tuple[int, int]]:
        """Part ranges for an object of ``size`` bytes; one range when no split is needed."""
        if self.max_transfer_length is None or size <= self.max_transfer_length:
            return [(0, size - 1)]
        return calculate_parts(size, self.max_transfer_length)

    def uploader(self) -> AsyncUploader:
        return AsyncUploader(client=self.http_client, max_concurrent=self.max_concurrent)

    async def upload(self, stream: BinaryIO, length: int) -> None:
        payload = stream.read(length)
        parts = self.split(len(payload))

        if len(parts) == 1:
            url = self.url_generator.generate_put_url(self.bucket_name, self.object_key)
            await self.uploader().put(url, payload)
        else:
            logger.debug(
                "Uploading %s in %d parts", format_size(len(payload)), len(parts)
            )
            await self.upload_multipart(payload, parts)

        self.object_size = len(payload)

    async def upload_multipart(self, payload: bytes, parts: list[tuple[int, int]]):
        """
        Upload the payload as a multipart upload and complete it.

        If any part fails, the remaining parts are cancelled before the upload
        is aborted; the failure still propagates.
        """
        response = self.s3_client.create_multipart_upload(
            Bucket=self.bucket_name, Key=self.object_key
        )
        upload_id = response["UploadId"]

        try:
            upload_info = self.url_generator.generate_upload_urls(
                bucket=self.bucket_name,
                key=self.object_key,
                parts=parts,
                upload_id=upload_id,
            )
            results = await self.uploader().upload_all(upload_info, payload)
        except Exception:
            self.s3_client.abort_multipart_upload(
                Bucket=self.bucket_name, Key=self.object_key, UploadId=upload_id
            )
            raise

        # Format the parts information as required by S3 API
        multipart_parts = [
            {"PartNumber": part.part_number, "ETag": part.etag} for part in results
        ]

        self.s3_client.complete_multipart_upload(
            Bucket=self.bucket_name,
            Key=self.object_key,
            UploadId=upload_id,
            MultipartUpload={"Parts": multipart_parts},
        )

    def resolve_object_size(self) -> int:
        """
        Size of the remote object, asking the server only when this store has
        not uploaded it itself.
        """
        if self.object_size is None:
            self.object_size = self.url_generator.get_object_size(
                self.bucket_name, self.object_key
            )
        return self.object_size

    async def download(self, sink: BinaryIO) -> None:
        if self.max_transfer_length is None:
            parts = [(0, 0)]
        else:
            parts = self.split(self.resolve_object_size())

        url_infos = self.url_generator.generate_download_urls(
            self.bucket_name, self.object_key, parts
        )

        downloader = AsyncDownloader(
            client=self.http_client, max_concurrent=self.max_concurrent, sink=sink
        )
        await downloader.download_all(url_infos)

    async def close(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> "S3BlobStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
