"""Diagnostic logging for the CLI."""

from __future__ import annotations

import logging

__all__ = ["configure_logging"]


def configure_logging(*, verbose: bool) -> None:
    """Route `modbuild.*` loggers to stderr through Rich.

    DEBUG with --verbose, WARNING otherwise.
    """
    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        show_time=verbose,
        rich_tracebacks=verbose,
    )
    root = logging.getLogger("modbuild")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
