"""Helpers for awaitables that leak into a synchronous pipeline."""

import asyncio
import inspect
import logging
from typing import Any

logger = logging.getLogger(__name__)


def is_awaitable(value: Any) -> bool:
    return inspect.isawaitable(value)


def _consume_exception(future: "asyncio.Future[Any]") -> None:
    if not future.cancelled():
        future.exception()


def discard(awaitable: Any) -> None:
    """Drop an awaitable without reporting its eventual failure.

    Coroutines are closed before they start, so none of their body runs, not
    even the part before the first await. Futures and tasks keep running and
    get a done callback that retrieves their exception.
    """
    if inspect.iscoroutine(awaitable):
        awaitable.close()
    elif asyncio.isfuture(awaitable):
        awaitable.add_done_callback(_consume_exception)
    logger.warning("Discarded %s returned in a synchronous context", type(awaitable).__name__)
