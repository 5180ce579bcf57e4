"""Logging setup utilities for hidticker.

Configures logging for the whole application based on the logging
section of the settings.
"""

from __future__ import annotations

import logging
import sys

from hidticker.config.settings import LoggingConfig


def setup_logging(config: LoggingConfig | None = None, verbose: bool = False) -> None:
    """Configure logging for the hidticker application.

    Sets up the ``hidticker`` logger with the specified level, format, and
    optional file handler. Calling it again replaces the handlers rather
    than stacking duplicates.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
        verbose: Force DEBUG level regardless of ``config.level``.
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger("hidticker")
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.INFO)
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler (optional)
    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.info("Logging initialized at %s level", logging.getLevelName(level))
