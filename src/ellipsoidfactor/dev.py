"""Development helpers."""
from __future__ import annotations

import functools
import logging
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


def timer(func: F) -> F:
    """Log the wall-clock time of each call of the decorated function."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start
        logger.info(f"{func.__qualname__} finished in {elapsed * 1000.0:.1f} ms")
        return result
    return wrapper  # type: ignore[return-value]
