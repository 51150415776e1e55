import argparse
import os

from blob_updown.constants import (
    BACKEND_AZURE,
    BACKEND_S3,
    CONNECTION_STRING_ENV,
    DEFAULT_COUNT,
    DEFAULT_SIZE,
)
from blob_updown.exceptions import ConfigurationError
from blob_updown.structs import BenchmarkConfig
from blob_updown.utils import parse_size


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def size_in_bytes(value: str) -> int:
    try:
        number = parse_size(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive size, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blob-updown",
        description="Benchmark blob upload and download throughput against one remote object.",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Allow running on a debug interpreter and enable debug output",
    )

    parser.add_argument(
        "-c",
        "--count",
        type=non_negative_int,
        default=DEFAULT_COUNT,
        help=f"Number of upload/download cycles (default: {DEFAULT_COUNT})",
    )

    parser.add_argument(
        "-l",
        "--maximum-transfer-length",
        type=size_in_bytes,
        help="Largest single request/chunk the storage client may use. Accepts suffixes KB, MB, GB.",
    )

    parser.add_argument(
        "-s",
        "--size",
        type=size_in_bytes,
        default=DEFAULT_SIZE,
        help=f"Size of the payload in bytes (default: {DEFAULT_SIZE}). Accepts suffixes KB, MB, GB.",
    )

    parser.add_argument(
        "-t",
        "--maximum-thread-count",
        type=positive_int,
        help="Number of parallel connections the storage client may open per transfer",
    )

    parser.add_argument(
        "--backend",
        choices=[BACKEND_AZURE, BACKEND_S3],
        default=BACKEND_AZURE,
        help=f"Storage backend the connection string belongs to (default: {BACKEND_AZURE})",
    )

    parser.add_argument(
        "--exact-throughput",
        action="store_true",
        help="Report fractional megabytes per second instead of whole megabytes",
    )

    return parser


def parse_arguments(argv=None) -> BenchmarkConfig:
    """Parse command line arguments into an immutable configuration."""
    args = build_parser().parse_args(argv)

    return BenchmarkConfig(
        count=args.count,
        size=args.size,
        max_transfer_length=args.maximum_transfer_length,
        max_thread_count=args.maximum_thread_count,
        debug=args.debug,
        backend=args.backend,
        exact_throughput=args.exact_throughput,
    )


def get_connection_string(environ=None) -> str:
    """
    Read the storage connection string from the environment.

    Raises:
        ConfigurationError: If the variable is unset or blank
    """
    environ = os.environ if environ is None else environ
    connection_string = environ.get(CONNECTION_STRING_ENV, "").strip()
    if not connection_string:
        raise ConfigurationError(
            f"Environment variable {CONNECTION_STRING_ENV} must hold a storage connection string"
        )
    return connection_string


def parse_connection_string(connection_string: str) -> dict[str, str]:
    """
    Parse a connection string (Key=Value;Key=Value) into its settings.

    Keys are matched case-insensitively by callers; they are returned as written.
    Values may themselves contain '=' (base64 account keys do).

    Raises:
        ValueError: If the string is blank or a segment has no key
    """
    settings = {}
    for segment in connection_string.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        key, sep, value = segment.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Malformed connection string segment: {segment!r}")
        settings[key.strip()] = value.strip()

    if not settings:
        raise ValueError("Connection string is blank or malformed")

    return settings
