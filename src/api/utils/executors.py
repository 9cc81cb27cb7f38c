"""Execution helpers bridging the synchronous conversion service into async routes."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")

LOGGER = logging.getLogger("pdf_conversion.api")


async def run_sync(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Run a blocking service call in a worker thread so the event loop keeps serving."""

    name = getattr(func, "__qualname__", repr(func))
    start = time.perf_counter()
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    finally:
        LOGGER.debug("%s ran off-loop for %.0fms", name, (time.perf_counter() - start) * 1000)


__all__ = ["run_sync"]
