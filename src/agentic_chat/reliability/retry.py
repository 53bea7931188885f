from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx
from loguru import logger
from tenacity import AsyncRetrying, RetryCallState, RetryError, retry_if_exception, stop_after_attempt

from agentic_chat.errors import AppError, ExhaustedRetriesError, OperationTimedOutError

T = TypeVar("T")

_NETWORK_MARKERS = ("network", "fetch", "connection", "econnrefused", "enotfound")
_TIMEOUT_MARKERS = ("timeout", "timed out")
_RATE_LIMIT_MARKERS = ("rate limit", "429", "quota")
_SERVER_ERROR_MARKERS = ("500", "502", "503", "504")


def is_retryable_error(error: BaseException) -> bool:
    """Classify an error as transient (network, timeout, rate limit, 5xx)."""
    if isinstance(error, AppError):
        return isinstance(error, OperationTimedOutError)

    status_code = getattr(error, "status_code", None)
    if status_code is None:
        response = getattr(error, "response", None)
        status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code == 429 or status_code >= 500

    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
        return True

    message = str(error).lower()
    return any(
        marker in message
        for marker in (*_NETWORK_MARKERS, *_TIMEOUT_MARKERS, *_RATE_LIMIT_MARKERS, *_SERVER_ERROR_MARKERS)
    )


@dataclass
class RetryOptions:
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    should_retry: Callable[[BaseException], bool] = is_retryable_error
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep


def backoff_delay(attempt_index: int, options: RetryOptions) -> float:
    """Seconds to wait after the 0-based attempt ``attempt_index`` failed."""
    return min(options.base_delay * options.backoff_multiplier ** attempt_index, options.max_delay)


def _log_retry(retry_state: RetryCallState) -> None:
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = f"{type(exc).__name__}: {exc}" if exc else "Unknown"
    logger.warning(f"Attempt {attempt} failed ({reason}). Retrying in {wait:.2f}s...")


async def with_retry(operation: Callable[[], Awaitable[T]], options: RetryOptions | None = None) -> T:
    opts = options or RetryOptions()
    attempts = max(1, opts.max_retries)

    retrying = AsyncRetrying(
        sleep=opts.sleep,
        stop=stop_after_attempt(attempts),
        wait=lambda retry_state: backoff_delay(retry_state.attempt_number - 1, opts),
        retry=retry_if_exception(opts.should_retry),
        before_sleep=_log_retry,
    )
    try:
        return await retrying(operation)
    except RetryError as ex:
        last_error = ex.last_attempt.exception()
        raise ExhaustedRetriesError(
            f"Failed after {attempts} retries: {last_error}",
            original_error=last_error,
        ) from last_error
