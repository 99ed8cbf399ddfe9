"""Async utility helpers for offloading blocking callables.

`run_blocking` moves IO-heavy calls (HTTP requests to the media API) onto a
dedicated thread pool so the UI loop keeps rendering.
"""

from __future__ import annotations

import asyncio
import atexit
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, TypeVar

T = TypeVar("T")

_IO_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix="synced-player-io")


@atexit.register
def _shutdown_io_executor() -> None:
    _IO_EXECUTOR.shutdown(wait=False, cancel_futures=True)


async def run_blocking(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Run blocking callable on dedicated IO executor and await its result."""
    if not callable(func):
        raise TypeError("func must be callable")
    loop = asyncio.get_running_loop()
    if kwargs:
        future = loop.run_in_executor(_IO_EXECUTOR, partial(func, *args, **kwargs))
    else:
        future = loop.run_in_executor(_IO_EXECUTOR, func, *args)
    # Executor completion wakeups can be missed on some loops; poll briefly.
    while True:
        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout=0.1)
        except asyncio.TimeoutError:
            continue
