from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from loguru import logger

from agentic_chat.errors import OperationTimedOutError

T = TypeVar("T")


def _consume_late_outcome(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Timed-out operation failed later: {type(exc).__name__}: {exc}")
    else:
        logger.debug("Timed-out operation completed after its deadline; result discarded")


async def with_timeout(
    awaitable: Awaitable[T],
    timeout: float,
    message: str = "Operation timed out",
) -> T:
    """Race ``awaitable`` against a timer.

    The operation is not cancelled when the timer wins; its eventual outcome is
    consumed and ignored.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout)
    except TimeoutError:
        if task.done():
            raise
        task.add_done_callback(_consume_late_outcome)
        raise OperationTimedOutError(message, timeout=timeout) from None
