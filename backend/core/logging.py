import logging
import sys

from backend.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger once for the API process.
    Calling it again replaces the handler instead of stacking duplicates.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # PIL is chatty at DEBUG when decoding logos
    logging.getLogger("PIL").setLevel(logging.WARNING)
