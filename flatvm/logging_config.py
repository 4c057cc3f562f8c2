"""Logging setup shared by the CLI and the library modules."""

import logging
import sys

import structlog

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str):
    """
    Return a structlog logger bound to the stdlib logger ``name``.

    Events are level-filtered and rendered by stdlib logging, independent of
    any global structlog configuration, so nothing reaches stdout unless the
    host routes the ``flatvm`` logger there.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def configure_logging(verbose: bool = False) -> None:
    """
    Send log records to stderr.

    Program output goes to stdout, so nothing configured here may write there.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(level)
