"""Logging setup for the CLI."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from schemashift.cli.common.output import err_console


def setup_logging(verbose: bool = False) -> None:
    """Route `schemashift.*` loggers to a Rich handler on stderr."""
    handler = RichHandler(
        console=err_console,
        show_path=False,
        show_time=verbose,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("schemashift")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
