"""
Blob upload/download benchmark.

Writes a fixed-seed payload to one remote blob, reads it back into a sink that
discards the bytes, and prints the time and throughput of every transfer.
"""

import io
import logging
import time

from blob_updown.constants import DIRECTION_DOWNLOAD, DIRECTION_UPLOAD, MEGABYTE
from blob_updown.store import BlobStore
from blob_updown.structs import BenchmarkConfig, Measurement
from blob_updown.utils import DiscardSink, generate_payload

logger = logging.getLogger(__name__)


def megabytes_per_second(size: int, elapsed: float, exact: bool = False) -> float:
    """
    Throughput of a transfer in megabytes per second.

    By default whole megabytes are used (size // 1 MiB), so payloads below
    1 MiB report 0.00 MB/s. This keeps figures comparable with earlier runs of
    the tool; pass ``exact=True`` for fractional megabytes.

    Args:
        size: Bytes transferred
        elapsed: Wall-clock seconds the transfer took
        exact: Whether to keep the fractional part of the megabyte count

    Returns:
        Megabytes per second
    """
    megabytes = size / MEGABYTE if exact else size // MEGABYTE
    if elapsed <= 0:
        return float("inf") if megabytes else 0.0
    return megabytes / elapsed


def format_banner(config: BenchmarkConfig) -> str:
    threads = "" if config.max_thread_count is None else config.max_thread_count
    return f"Uploading and downloading blob of size {config.size} with {threads} threads..."


def format_measurement(measurement: Measurement) -> str:
    verb = "Uploaded" if measurement.direction == DIRECTION_UPLOAD else "Downloaded"
    return (
        f"{verb} {measurement.bytes_transferred} bytes in {measurement.elapsed:,.2f} seconds "
        f"({measurement.megabytes_per_second:,.2f} MB/s)"
    )


async def run_benchmark(
    store: BlobStore, config: BenchmarkConfig, clock=time.perf_counter
) -> list[Measurement]:
    """
    Run ``config.count`` upload/download cycles against the store.

    Each transfer is awaited before the next one starts. Store errors are not
    caught; the first failure ends the run.

    Args:
        store: Store bound to the target blob
        config: Benchmark configuration
        clock: Monotonic clock returning seconds

    Returns:
        Measurements in the order they were printed
    """
    payload_stream = io.BytesIO(generate_payload(config.size))
    logger.debug(
        "Throughput uses %s megabytes",
        "fractional" if config.exact_throughput else "whole",
    )

    print(format_banner(config))
    print()

    measurements = []
    for iteration in range(config.count):
        payload_stream.seek(0)

        start = clock()
        await store.upload(payload_stream, config.size)
        measurements.append(
            measure(iteration, DIRECTION_UPLOAD, config, clock() - start)
        )
        print(format_measurement(measurements[-1]))

        start = clock()
        await store.download(DiscardSink())
        measurements.append(
            measure(iteration, DIRECTION_DOWNLOAD, config, clock() - start)
        )
        print(format_measurement(measurements[-1]))

        print()

    return measurements


def measure(
    iteration: int, direction: str, config: BenchmarkConfig, elapsed: float
) -> Measurement:
    return Measurement(
        iteration=iteration,
        direction=direction,
        bytes_transferred=config.size,
        elapsed=elapsed,
        megabytes_per_second=megabytes_per_second(
            config.size, elapsed, config.exact_throughput
        ),
    )
