"""Timing instrumentation for replay rendering and aggregation.

Enable timing by setting the environment variable:
    ROBOTREPLAY_TIMING=1 python your_script.py

Timings are emitted at DEBUG level on the ``robotreplay.timing`` logger, so
they also require a handler at that level, e.g.::

    logging.basicConfig(level=logging.DEBUG)
"""

from __future__ import annotations

import contextlib
import logging
import os
import time
from collections.abc import Callable, Generator
from functools import wraps
from typing import ParamSpec, TypeVar

logger = logging.getLogger("robotreplay.timing")

_TIMING_ENABLED = bool(os.environ.get("ROBOTREPLAY_TIMING"))

P = ParamSpec("P")
T = TypeVar("T")


@contextlib.contextmanager
def timing(name: str) -> Generator[None, None, None]:
    """Time a code block when ``ROBOTREPLAY_TIMING`` is set.

    Parameters
    ----------
    name : str
        Label used in the log record.

    Examples
    --------
    >>> with timing("heatmap.process"):
    ...     result = aggregator.process(series)  # doctest: +SKIP
    # DEBUG robotreplay.timing: [TIMING] heatmap.process: 1.23 ms
    """
    if not _TIMING_ENABLED:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("[TIMING] %s: %.2f ms", name, elapsed_ms)


def timed(func: Callable[P, T]) -> Callable[P, T]:
    """Decorator form of :func:`timing`, labelled with the function's qualname."""
    if not _TIMING_ENABLED:
        return func

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        with timing(func.__qualname__):
            return func(*args, **kwargs)

    return wrapper


def is_timing_enabled() -> bool:
    """Return True if ``ROBOTREPLAY_TIMING`` was set at import time."""
    return _TIMING_ENABLED


__all__ = ["is_timing_enabled", "timed", "timing"]
