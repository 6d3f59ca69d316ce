"""
Logging configuration for the command-line application.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(log_level: str = "WARNING", console: Console | None = None) -> None:
    """
    Route standard library logging through rich.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        console: Console to write to; defaults to stderr
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )

    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))
