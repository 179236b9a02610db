"""Console logging for the CLI.

The core library never configures logging itself; every component accepts
a logger. The CLI builds one here and passes it down:

- INFO   normal progress lines
- DEBUG  verbose-only diagnostics (shown with --verbose)
- silent mode drops everything
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "prsnap"


def configure_logging(verbose: bool = False, silent: bool = False) -> logging.Logger:
    """Return the application logger, writing to stderr through rich."""
    log = logging.getLogger(LOGGER_NAME)
    log.handlers.clear()
    log.propagate = False

    if silent:
        log.addHandler(logging.NullHandler())
        log.setLevel(logging.CRITICAL + 1)
        return log

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    log.addHandler(handler)
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    return log
