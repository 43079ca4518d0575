from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "routespec"


def configure_logging(level: str = "WARNING", console: Console | None = None) -> logging.Logger:
    """Attach a single RichHandler (stderr) to the routespec logger."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())

    for h in list(logger.handlers):
        if isinstance(h, RichHandler):
            logger.removeHandler(h)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
