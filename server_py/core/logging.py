"""Logging configuration.

Every helper logs to a child of the ``testgen`` logger named after its
source (``testgen.tree``, ``testgen.pipeline``...), so one handler on the
parent covers the whole service and levels can be tuned per component.
"""
import logging
import sys
from typing import Optional, Union

LOGGER_NAME = "testgen"


def _logger(source: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{source}")


def setup_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to the service logger (once) and set its level."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s [%(levelname)s] [%(name)s] %(message)s',
        datefmt='%I:%M:%S %p'
    ))
    logger.addHandler(handler)
    return logger


def log_request(method: str, path: str, status_code: int, duration_ms: float):
    """Log an HTTP request."""
    _logger("http").info(f"{method} {path} {status_code} in {duration_ms:.0f}ms")


def log_info(message: str, source: str = "app"):
    _logger(source).info(message)


def log_error(message: str, source: str = "app", exc: Optional[Exception] = None):
    """Log an error; with ``exc`` the traceback is attached."""
    if exc:
        _logger(source).error(f"{message}: {type(exc).__name__}: {exc}", exc_info=exc)
    else:
        _logger(source).error(message)


def log_warning(message: str, source: str = "app"):
    _logger(source).warning(message)


def log_debug(message: str, source: str = "app"):
    _logger(source).debug(message)
