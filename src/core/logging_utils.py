"""Logging helpers.

The library logs under the ``css_js_minifier`` namespace and stays quiet
unless a front-end (the CLI) installs a handler.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "css_js_minifier"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or a child of it when ``name`` is given."""

    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


def configure_logging(*, verbose: bool = False, console: Console | None = None) -> None:
    """Attach a Rich handler to the package logger.

    Calling it twice does not stack handlers.
    """

    level = logging.DEBUG if verbose else logging.WARNING
    logger = get_logger()
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


__all__ = ["LOGGER_NAME", "configure_logging", "get_logger"]
