"""Logging setup."""

import logging
import sys

_CONFIGURED = False

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "hpack")


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging once.

    Args:
        verbose: Log at DEBUG instead of INFO.
    """
    global _CONFIGURED
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    if not _CONFIGURED:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        root.addHandler(handler)
        _CONFIGURED = True
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["setup_logging"]
