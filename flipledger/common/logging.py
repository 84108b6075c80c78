"""Logging configuration for FlipLedger jobs and CLI."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# supabase-py pulls these in; at INFO they log every PostgREST round trip
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "urllib3")


def setup_logging(
    level: int = logging.INFO,
    module_name: str = "flipledger",
) -> logging.Logger:
    """Configure and return a named logger writing to stdout.

    Calling it twice for the same name returns the already configured
    logger without stacking handlers.

    Args:
        level: Logging level (default INFO).
        module_name: Name for the logger instance.

    Returns:
        Configured logger.
    """
    logger = logging.getLogger(module_name)

    if logger.handlers:
        return logger

    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)

    return logger


def configure_root(verbose: bool = False) -> None:
    """Root logging setup for CLI entry points."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
