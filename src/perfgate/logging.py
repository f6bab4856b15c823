"""Logging setup for perfgate.

Every perfgate module logs under the ``perfgate`` namespace.  The CLI
commands call :func:`setup_logging` once, which attaches:

- a console handler on stderr, so log lines never mix with reports
  written to stdout, at a level chosen by :func:`console_level`;
- optionally, a file handler that records everything at DEBUG with
  millisecond timestamps, for per-sample traces of a long run.

Handlers added here are tagged, so reconfiguring (or
:func:`reset_logging`) only removes perfgate's own handlers and leaves
any that an embedding application or a test harness attached.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

_LOGGER_NAME = "perfgate"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"
_VERBOSE_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attribute set on handlers installed by setup_logging().
_OWNED = "_perfgate_owned"


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map the -v/-q flags to a console log level.

    *verbose* wins when both are given.
    """
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure and return the root perfgate logger.

    Args:
        verbose: Console at DEBUG, with the emitting module's logger name.
        quiet: Console at WARNING. Ignored if *verbose* is True.
        log_file: If provided, also log everything at DEBUG to this path.
        stream: Console stream. Defaults to the ``sys.stderr`` current at
            call time.

    Returns:
        The configured root logger for perfgate.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    reset_logging()

    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console.setLevel(console_level(verbose=verbose, quiet=quiet))
    console.setFormatter(
        logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT)
    )
    _attach(logger, console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        _attach(logger, fh)

    return logger


def reset_logging() -> None:
    """Detach and close the handlers installed by :func:`setup_logging`."""
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, _OWNED, False):
            logger.removeHandler(handler)
            handler.close()


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _OWNED, True)
    logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a named child logger under the perfgate namespace."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
