"""Logging setup for cmdbench.

Diagnostics go to stderr so that they never mix with a result table
exported to stdout.  The console shows bare messages, with warnings and
errors prefixed by their (optionally colored) level.  An optional log
file records everything at DEBUG, including every individual run.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

_LOGGER_NAME = "cmdbench"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_LEVEL_COLORS = {
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class ConsoleFormatter(logging.Formatter):
    """``message`` for INFO and below, ``Warning: message`` above."""

    def __init__(self, *, use_color: bool = False) -> None:
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno < logging.WARNING:
            return message
        label = record.levelname.capitalize()
        if self.use_color:
            label = click.style(label, fg=_LEVEL_COLORS.get(record.levelno, "red"), bold=True)
        return f"{label}: {message}"


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    use_color: bool = False,
) -> logging.Logger:
    """Configure and return the root cmdbench logger.

    Args:
        verbose: If True, show DEBUG messages (per-run timings) on the console.
        quiet: If True, only show warnings and errors. Ignored if *verbose* is True.
        log_file: If provided, also log everything at DEBUG to this path.
        use_color: Color the level prefix of warnings and errors.

    Returns:
        The configured root logger for cmdbench.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Reconfiguring replaces handlers from an earlier call.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    if verbose:
        console.setLevel(logging.DEBUG)
    elif quiet:
        console.setLevel(logging.WARNING)
    else:
        console.setLevel(logging.INFO)
    console.setFormatter(ConsoleFormatter(use_color=use_color))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a named child logger under the cmdbench namespace."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
