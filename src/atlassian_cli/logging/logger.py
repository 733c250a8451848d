"""Logging configuration. Outputs to stderr so command output on stdout stays parseable."""

import logging
import sys


def setup_logger(name: str = "atlassian_cli", level: str = "WARNING") -> logging.Logger:
    """Create a logger that writes to stderr, or update the level of an existing one."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s")
    )
    logger.addHandler(handler)
    return logger
