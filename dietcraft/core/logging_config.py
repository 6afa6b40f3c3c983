"""
Centralized logging configuration for the DietCraft service.

Every module obtains its logger through ``get_logger(__name__)`` so the API,
the services and the background scripts all share one output format.
"""
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

FORMATTER = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def _level_from_env(default: int = logging.INFO) -> int:
    name = os.getenv("LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger writing to stdout with the shared format.

    Args:
        name: The name of the logger (typically __name__)

    Returns:
        A configured Logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(FORMATTER)
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())
        logger.propagate = False

    return logger


def setup_logging(level: int = None) -> None:
    """
    Configure the root logger, used by entry points such as ``run.py``.

    Args:
        level: Explicit logging level; falls back to ``LOG_LEVEL`` or INFO.
    """
    logging.basicConfig(
        level=level if level is not None else _level_from_env(),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )
