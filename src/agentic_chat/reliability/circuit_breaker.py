from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from loguru import logger

from agentic_chat.errors import CircuitOpenError

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


@dataclass(frozen=True)
class CircuitBreakerSnapshot:
    state: CircuitState
    failures: int
    last_failure_time: float


class CircuitBreaker:
    """Stops calling a failing dependency until a cooldown has passed.

    State changes happen synchronously between awaits, so a single event loop
    needs no locking around them.
    """

    def __init__(
        self,
        threshold: int = 5,
        timeout: float = 60.0,
        *,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ):
        self._threshold = max(1, threshold)
        self._timeout = timeout
        self._name = name
        self._clock = clock
        self._failures = 0
        self._last_failure_time = 0.0
        self._state = CircuitState.CLOSED

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        return self._state

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        if self._state is CircuitState.OPEN:
            if self._clock() - self._last_failure_time > self._timeout:
                logger.info(f"Circuit breaker {self._name!r} entering half-open state")
                self._state = CircuitState.HALF_OPEN
            else:
                raise CircuitOpenError(
                    f"Circuit breaker {self._name!r} is open. Service temporarily unavailable."
                )

        try:
            result = await operation()
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def snapshot(self) -> CircuitBreakerSnapshot:
        return CircuitBreakerSnapshot(
            state=self._state,
            failures=self._failures,
            last_failure_time=self._last_failure_time,
        )

    def reset(self) -> None:
        self._failures = 0
        self._last_failure_time = 0.0
        self._state = CircuitState.CLOSED

    def _on_success(self) -> None:
        if self._state is CircuitState.HALF_OPEN:
            logger.info(f"Circuit breaker {self._name!r} closed after a successful trial call")
        self._failures = 0
        self._state = CircuitState.CLOSED

    def _on_failure(self) -> None:
        self._failures += 1
        self._last_failure_time = self._clock()

        if self._state is CircuitState.HALF_OPEN or self._failures >= self._threshold:
            if self._state is not CircuitState.OPEN:
                logger.warning(
                    f"Circuit breaker {self._name!r} opened after {self._failures} failure(s)"
                )
            self._state = CircuitState.OPEN
