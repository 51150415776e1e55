from typing import NamedTuple


class BenchmarkConfig(NamedTuple):
    count: int
    size: int
    max_transfer_length: int | None = None
    max_thread_count: int | None = None
    debug: bool = False
    backend: str = "azure"
    exact_throughput: bool = False


class Measurement(NamedTuple):
    iteration: int
    direction: str
    bytes_transferred: int
    elapsed: float
    megabytes_per_second: float


class S3ConnectionInfo(NamedTuple):
    endpoint_url: str | None
    region: str
    access_key_id: str | None
    secret_access_key: str | None
    session_token: str | None = None
    addressing_style: str = "auto"


class UploadPartInfo(NamedTuple):
    part_number: int
    start_byte: int
    end_byte: int
    url: str


class DownloadPartInfo(NamedTuple):
    url: str
    range_header: str | None = None
    start_byte: int = 0


class PartUploadResult(NamedTuple):
    part_number: int
    etag: str
