"""Logging and performance tracing for metricgrid.

Debug output goes to the console when enabled with --debug (or
METRICGRID_DEBUG=1). The DEBUG_PERF flag controls whether timings are logged.

Usage:
    from .debug_trace import logger, perf_timer

    logger.debug("Loading page")

    with perf_timer("load_page", row_count=250):
        store.load_page(request)

    @log_perf
    def save_all_changes(self):
        ...
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable
from contextlib import contextmanager
from functools import wraps
from typing import Any

# Set to False to silence timing logs even in debug mode
DEBUG_PERF = True

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Package logger; modules log through this or a child of it
logger = logging.getLogger("metricgrid")


def setup_debug_logging(debug: bool = False) -> None:
    """Configure the package logger.

    Debug mode logs everything to stdout, otherwise only warnings and above.
    Calling it again only adjusts the level.
    """
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(logger.level)
        return

    if sys.stdout is None:
        # pythonw has no console
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)


@contextmanager
def perf_timer(operation: str, row_count: int | None = None):
    """Context manager for timing operations.

    Args:
        operation: Name of the operation being timed
        row_count: Optional row count for context
    """
    if not DEBUG_PERF:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        if row_count is not None:
            logger.debug(f"PERF: {operation} ({row_count} rows) took {elapsed_ms:.2f}ms")
        else:
            logger.debug(f"PERF: {operation} took {elapsed_ms:.2f}ms")


def log_perf(func: Callable) -> Callable:
    """Decorator to log function performance."""

    @wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        if not DEBUG_PERF:
            return func(*args, **kwargs)

        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug(f"PERF: {func.__qualname__} took {elapsed_ms:.2f}ms")

    return wrapper
