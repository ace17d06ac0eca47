"""
Resilience Infrastructure.

Circuit breaker listener, retry callback, and the composed write stack
used by remote stores for structured resilience event logging.

The composed resilience stack is always applied in this order (outside-in):
    Circuit Breaker (aiobreaker) → Retry (tenacity) → Timeout → Call

Usage:
    from notetogether.core.resilience import create_circuit_breaker, call_with_resilience

    breaker = create_circuit_breaker("firestore", fail_max=5, timeout_duration=30)

    result = await call_with_resilience(
        breaker,
        lambda: run_blocking(document.update, data),
        transient=(ServiceUnavailable, DeadlineExceeded),
        max_attempts=3,
        timeout=10,
    )
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

import aiobreaker
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from notetogether.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ResilienceLogger(aiobreaker.CircuitBreakerListener):
    """Circuit breaker listener that emits structured resilience events.

    Every state transition is logged with a standardized set of fields
    so that resilience events can be filtered and aggregated:

        jq 'select(.resilience_event != null)' logs/system.jsonl
    """

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency

    def state_change(self, cb: aiobreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        event_map = {
            "open": "circuit_breaker_opened",
            "half-open": "circuit_breaker_half_open",
            "closed": "circuit_breaker_closed",
        }
        new_str = str(new_state).lower()
        event = event_map.get(new_str, f"circuit_breaker_{new_str}")
        log_level = "error" if new_str == "open" else "info"

        getattr(logger, log_level)(
            f"Circuit breaker {self.dependency}: {old_state} → {new_state}",
            extra={
                "resilience_event": event,
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
            },
        )

    def failure(self, cb: aiobreaker.CircuitBreaker, exception: Exception) -> None:
        logger.warning(
            f"Circuit breaker {self.dependency}: failure recorded",
            extra={
                "resilience_event": "circuit_breaker_failure",
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
                "error": str(exception),
            },
        )


def log_retry(retry_state: Any) -> None:
    """Tenacity before_sleep callback that emits structured retry events.

    Args:
        retry_state: tenacity.RetryCallState instance
    """
    duration_ms = None
    if retry_state.outcome_timestamp and retry_state.start_time:
        duration_ms = round(
            (retry_state.outcome_timestamp - retry_state.start_time) * 1000
        )

    error = None
    if retry_state.outcome and retry_state.outcome.failed:
        error = str(retry_state.outcome.exception())

    fn_name = getattr(retry_state.fn, "__name__", "unknown")

    logger.warning(
        f"Retrying {fn_name} (attempt {retry_state.attempt_number})",
        extra={
            "resilience_event": "retry_attempt",
            "dependency": fn_name,
            "attempt": retry_state.attempt_number,
            "duration_ms": duration_ms,
            "error": error,
        },
    )


def create_circuit_breaker(
    dependency: str,
    fail_max: int = 5,
    timeout_duration: int = 30,
    exclude: list[type[BaseException]] | None = None,
) -> aiobreaker.CircuitBreaker:
    """Create a circuit breaker with structured logging.

    Args:
        dependency: Name of the external dependency (for logging)
        fail_max: Number of failures before opening
        timeout_duration: Seconds to wait before half-open test
        exclude: Exception types that are answers, not outages (never counted)

    Returns:
        Configured CircuitBreaker instance
    """
    return aiobreaker.CircuitBreaker(
        fail_max=fail_max,
        timeout_duration=timedelta(seconds=timeout_duration),
        exclude=exclude or [],
        listeners=[ResilienceLogger(dependency)],
    )


async def call_with_resilience(
    breaker: aiobreaker.CircuitBreaker,
    call: Callable[[], Awaitable[T]],
    transient: tuple[type[BaseException], ...],
    max_attempts: int = 3,
    backoff_multiplier: int = 1,
    backoff_max: int = 10,
    timeout: float | None = None,
) -> T:
    """Run `call` through breaker → retry → timeout.

    Only exceptions in `transient` (and timeouts) are retried; anything else
    propagates on the first attempt. The breaker sees the outcome of the whole
    retry sequence, so one exhausted write counts as one failure.

    Raises:
        aiobreaker.CircuitBreakerError: If the breaker is open
    """

    @retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff_multiplier, max=backoff_max),
        retry=retry_if_exception_type(transient + (TimeoutError,)),
        before_sleep=log_retry,
        reraise=True,
    )
    async def attempt_call() -> T:
        async with asyncio.timeout(timeout):
            return await call()

    return await breaker.call_async(attempt_call)
