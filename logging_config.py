"""Logging setup for the metafield manager.

Console output only; Streamlit already captures stdout in its server log.
Modules log through ``get_logger(__name__)`` so everything sits under one
logger hierarchy that ``setup_logging`` configures.
"""

import logging
import sys
from typing import Union

__all__ = ["ROOT_LOGGER", "setup_logging", "get_logger"]

ROOT_LOGGER = "metafield_manager"

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Configure the package logger once; repeated calls only adjust the level.

    Streamlit re-executes the script on every interaction, so handlers must not
    pile up.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    if not any(getattr(h, "_metafield_manager", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        handler._metafield_manager = True
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Return a logger below the package root (``metafield_manager.<name>``)."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
