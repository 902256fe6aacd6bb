"""Logging setup for the dropurl CLI and example script."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-request chatter from the HTTP probe client
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Send audit logs to stderr and, optionally, a file.

    Output goes to stderr so JSON results on stdout stay machine-readable.
    """
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
