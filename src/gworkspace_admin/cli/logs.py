"""Logging setup for the command line.

Records go to stderr so that stdout carries only JSON. ``--log`` or the
configuration's ``log_file`` adds a file handler with timestamps.
"""

import logging
from pathlib import Path

PACKAGE_LOGGER = "gworkspace_admin"

_STDERR_FORMAT = "%(levelname)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(verbose: bool = False, log_file: str | None = None) -> logging.Logger:
    """Install handlers on the package logger, replacing earlier ones."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    stderr = logging.StreamHandler()
    stderr.setFormatter(logging.Formatter(_STDERR_FORMAT))
    logger.addHandler(stderr)

    if log_file:
        add_log_file(log_file)
    return logger


def add_log_file(log_file: str) -> None:
    """Also write records to ``log_file``; a second call for the same file is a no-op."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    path = Path(log_file).expanduser().resolve()
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path:
            return
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(handler)
