"""Shared concurrency primitives for the extraction pipeline.

LLM calls are dispatched in **fixed windows**: a window of ``batch_size``
pages is sent with ``asyncio.gather`` and the next window only starts once
every call in the current one has finished.  This keeps at most
``batch_size`` requests in flight per run and gives natural checkpoints for
merging results and reporting progress.

Two helpers are exposed:

1. **batched** -- split a sequence into consecutive windows.
2. **gather_in_batches** -- run an async function over items window by
   window and return results in input order.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import structlog

from src.utils.logging import get_logger

_T = TypeVar("_T")
_R = TypeVar("_R")

_logger: structlog.BoundLogger = get_logger(__name__)


def batched(items: Sequence[_T], batch_size: int) -> list[list[_T]]:
    """Split *items* into consecutive windows of at most *batch_size*."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


async def gather_in_batches(
    func: Callable[[_T], Awaitable[_R]],
    items: Sequence[_T],
    batch_size: int,
    on_batch_done: Callable[[list[_R], int, int], Any] | None = None,
) -> list[_R]:
    """Apply *func* to every item, ``batch_size`` calls at a time.

    Parameters
    ----------
    func:
        Async callable invoked once per item.
    items:
        Inputs, processed in order.
    batch_size:
        Window size; each window completes before the next starts.
    on_batch_done:
        Optional callback receiving ``(window_results, items_done,
        items_total)`` after each window completes; may be async.

    Returns
    -------
    list[_R]
        Results in the same order as *items*.  The first exception raised
        by a call propagates and aborts the remaining windows.
    """
    results: list[_R] = []
    total = len(items)
    for window in batched(items, batch_size):
        window_results = await asyncio.gather(*(func(item) for item in window))
        results.extend(window_results)
        _logger.debug("batch_complete", done=len(results), total=total)
        if on_batch_done is not None:
            outcome = on_batch_done(window_results, len(results), total)
            if inspect.isawaitable(outcome):
                await outcome
    return results
