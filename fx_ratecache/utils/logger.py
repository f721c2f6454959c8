"""Logger factory used by every fx_ratecache module."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str = "fx_ratecache") -> logging.Logger:
    """Return the logger for ``name``.

    A stderr handler at INFO is installed only when the application has not
    configured the root logger itself.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    return logging.getLogger(name)
