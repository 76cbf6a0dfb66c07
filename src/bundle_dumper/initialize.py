import logging
import sys

DEFAULT_API_URL = "https://arweave.net/"

# Number of decoded DataItems that may wait for the writer thread.
# A full queue blocks the decoder (and therefore the next chunk fetch).
WRITER_QUEUE_SIZE = 16

# ANS-104 encodes the item count and the item sizes on 32 bytes
HEADER_INT_WIDTH = 32

# Initialize the logger
bundle_logger = logging.getLogger("bundle_dumper")
logger = bundle_logger
slog = logging.LoggerAdapter(bundle_logger, {
    "offset": 0,
    "item": -1,
})

LOG_FORMAT = "%(asctime)s [%(levelname)8s] %(message)s (%(filename)s:%(lineno)s)"


def configure_logging(verbose: bool = False):
    """
    Install a stderr handler on the bundle_dumper logger

    Args:
        verbose: log chunk fetches and per item progress (DEBUG) instead of INFO
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    for h in bundle_logger.handlers[:]:
        bundle_logger.removeHandler(h)
    bundle_logger.addHandler(handler)
    bundle_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    # urllib3 logs every retry at WARNING, which is what we want to see
    logging.getLogger("urllib3").setLevel(logging.DEBUG if verbose else logging.WARNING)
