"""Logging configuration."""

from __future__ import annotations

import logging
import sys

from goalfit.config import get_settings


def setup_logger(name: str = __name__) -> logging.Logger:
    """Set up logger with configuration.

    Logs go to stderr so JSON written to stdout by the CLI stays parseable.
    """
    level = getattr(logging, get_settings().logging.level.upper(), logging.INFO)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
