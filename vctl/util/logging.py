"""
Logging configuration for the vctl command line.

Records go to stderr through rich so that table/JSON/YAML output on stdout
stays clean for piping.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from vctl.util.redact import redact_sensitive

LOGGER_NAME = "vctl"


class RedactingFilter(logging.Filter):
    """Scrub credentials from the rendered message of every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_sensitive(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def resolve_level(verbose: bool = False, debug: bool = False) -> int:
    """Map the --verbose/--debug switches to a logging level."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbose: bool = False, debug: bool = False) -> logging.Logger:
    """
    Configure the ``vctl`` logger.

    Args:
        verbose: Show INFO messages
        debug: Show DEBUG messages (wins over verbose)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(verbose, debug))

    # Replace handlers so repeated invocations (tests, REPL) don't stack output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=debug,
        markup=False,
    )
    handler.addFilter(RedactingFilter())
    logger.addHandler(handler)
    logger.propagate = False

    return logger
