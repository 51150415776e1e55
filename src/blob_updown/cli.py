import logging

from rich.logging import RichHandler

from blob_updown.main import run_benchmark
from blob_updown.parsing import get_connection_string, parse_arguments
from blob_updown.store import create_store
from blob_updown.utils import check_runtime, format_size

logger = logging.getLogger(__name__)


def configure_logging(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                rich_tracebacks=True,
                show_path=debug,
            )
        ],
    )
    # The SDK HTTP loggers are extremely chatty at DEBUG
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def cli(argv=None, environ=None):
    """Main entry point for the benchmark tool."""
    # Parse command line arguments
    config = parse_arguments(argv)
    configure_logging(config.debug)

    check_runtime(config.debug)
    connection_string = get_connection_string(environ)

    logger.debug(
        "Backend %s, payload %s, transfer length %s, threads %s",
        config.backend,
        format_size(config.size),
        config.max_transfer_length,
        config.max_thread_count,
    )

    async with create_store(config, connection_string) as store:
        await run_benchmark(store, config)
