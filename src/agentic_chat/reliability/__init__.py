from agentic_chat.reliability.circuit_breaker import CircuitBreaker, CircuitBreakerSnapshot, CircuitState
from agentic_chat.reliability.retry import RetryOptions, backoff_delay, is_retryable_error, with_retry
from agentic_chat.reliability.timeout import with_timeout

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerSnapshot",
    "CircuitState",
    "RetryOptions",
    "backoff_delay",
    "is_retryable_error",
    "with_retry",
    "with_timeout",
]
