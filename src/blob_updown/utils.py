import asyncio
import io
import random
import re
import sys

from blob_updown.constants import DEFAULT_SEED
from blob_updown.exceptions import ConfigurationError


def generate_payload(size: int, seed: int = DEFAULT_SEED) -> bytes:
    """
    Generate deterministic pseudo-random content.

    All-zero content may be compressed or short-circuited somewhere along the
    way, so the buffer is filled from a fixed-seed generator instead.

    Args:
        size: Number of bytes to generate
        seed: Seed for the generator

    Returns:
        Bytes object of exactly ``size`` bytes
    """
    return random.Random(seed).randbytes(size)


class DiscardSink(io.RawIOBase):
    """Writable, seekable stream that throws away everything written to it."""

    def __init__(self):
        super().__init__()
        self.position = 0
        self.bytes_written = 0

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def write(self, data) -> int:
        length = len(data)
        self.position += length
        self.bytes_written += length
        return length

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            self.position = offset
        elif whence == io.SEEK_CUR:
            self.position += offset
        else:
            raise io.UnsupportedOperation("DiscardSink has no end to seek from")
        return self.position

    def tell(self) -> int:
        return self.position


def is_debug_runtime() -> bool:
    """Whether this interpreter is a debug build or runs in development mode."""
    return hasattr(sys, "gettotalrefcount") or sys.flags.dev_mode


def check_runtime(debug: bool):
    """
    Refuse to benchmark on an interpreter that is not built or configured for speed.

    Args:
        debug: Whether the caller explicitly opted in to running anyway

    Raises:
        ConfigurationError: If the runtime is a debug one and ``debug`` is False
    """
    if is_debug_runtime() and not debug:
        raise ConfigurationError(
            "Requires a release interpreter without development mode; "
            "pass --debug to run anyway"
        )


def calculate_parts(object_size: int, part_size: int) -> list[tuple[int, int]]:
    """
    Calculate part ranges for multipart transfers.

    Args:
        object_size: Total size of the object in bytes
        part_size: Size of each part in bytes

    Returns:
        List of (start_byte, end_byte) tuples for each part, end inclusive
    """
    parts = []
    for start in range(0, object_size, part_size):
        end = min(start + part_size - 1, object_size - 1)
        parts.append((start, end))

    return parts


def format_size(size: int) -> str:
    """Format size in bytes to human-readable format."""
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0

    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1

    return f"{size:.2f} {units[unit_index]}"


def parse_size(size_str: str) -> int:
    """
    Parse a size string with optional suffix (KB, MB, GB) to bytes.

    Args:
        size_str: Size string (e.g., "10240", "10KB", "1GB")

    Returns:
        Size in bytes
    """
    match = re.match(r"^(\d+)([KMG]B)?$", size_str.strip(), re.IGNORECASE)
    if not match:
        raise ValueError(
            f"Invalid size format: {size_str}. Expected format: NUMBER[KB|MB|GB]"
        )

    value, unit = match.groups()
    value = int(value)

    if unit:
        value *= {"KB": 1024, "MB": 1024**2, "GB": 1024**3}[unit.upper()]

    return value


async def gather_or_cancel(coroutines) -> list:
    """
    Run coroutines concurrently; on the first failure cancel the rest.

    The unfinished tasks are cancelled and awaited before the error is
    re-raised, so no transfer is still running once this returns.

    Returns:
        Results in the order of ``coroutines``
    """
    tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
