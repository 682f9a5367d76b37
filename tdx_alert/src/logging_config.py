"""Logging configuration for the formula alert tools."""
import logging
import sys
from typing import Optional, Union


def setup_logging(level: Optional[Union[str, int]] = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name or number (DEBUG, INFO, ...).
               If None, defaults to INFO.
    """
    log_level = level or logging.INFO
    if isinstance(log_level, str):
        log_level = log_level.upper()

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
