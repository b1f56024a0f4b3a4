"""Logging configuration.

Configures the root logger once for the whole service. Modules obtain their
own logger through ``logging.getLogger(__name__)``.
"""

import logging
import sys
from typing import Optional

from config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ("sqlalchemy.engine", "multipart", "python_multipart")

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging handlers and levels.

    Calling this more than once is harmless; only the first call installs the
    handler, later calls only adjust the level.

    Args:
        level: Optional level name overriding ``LOG_LEVEL``.
    """
    global _configured

    root = logging.getLogger()
    root.setLevel((level or LOG_LEVEL).upper())

    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
        _configured = True
