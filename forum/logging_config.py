"""Logging setup shared by the CLI and the HTTP app."""

import logging
import sys
from typing import Optional

from forum.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    root.setLevel((level or LOG_LEVEL).upper())

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    # Engine echo is far too chatty for a mock store
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
