"""Logger hierarchy for cohorttag.

Library modules only call ``get_logger``; handlers are attached once, by the
CLI or the service, through ``configure_logging``. Log records go to stderr so
``--json`` output on stdout stays machine-readable.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_ROOT = "cohorttag"
_CONSOLE_FORMAT = "[cohorttag] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """``cohorttag`` or ``cohorttag.<name>``."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def resolve_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """DEBUG when verbose, WARNING when quiet, INFO otherwise; verbose wins."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Attach a stderr handler, and a file handler when ``log_file`` is set.

    Safe to call repeatedly: previously attached handlers are closed first.
    """
    level = resolve_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_handler(logging.StreamHandler(sys.stderr), level, _CONSOLE_FORMAT))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        # The file keeps debug detail even when the console is quiet.
        logger.setLevel(min(level, logging.DEBUG))
        logger.addHandler(_handler(file_handler, logging.DEBUG, _FILE_FORMAT))

    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["configure_logging", "get_logger", "resolve_level"]
