# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Centralized logging configuration.

Usage:
    # In entry points (the CLI)
    from pygmy.logging import configure_logging
    configure_logging(level=logging.INFO)

    # In library modules
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Writing resolv file: %s", path)
"""

import logging


DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEBUG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
) -> None:
    """Configure logging for the application.

    Sets up the root logger with a single stderr handler.  Calling this
    more than once replaces the previous handler rather than stacking
    another one.

    Args:
        level: The logging level (e.g., logging.INFO, logging.DEBUG).
        format_string: Custom format string. If None, picks a default based
            on *level* (debug output includes line numbers).
    """
    if format_string is None:
        format_string = (
            DEBUG_FORMAT if level <= logging.DEBUG else DEFAULT_FORMAT
        )

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)

    root_logger.addHandler(handler)
