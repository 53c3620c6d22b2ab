"""Retry with exponential backoff for calls to payment collaborators."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

logger = logging.getLogger("app.services.retry")

T = TypeVar("T")


class TransientError(RuntimeError):
    """A collaborator failure worth retrying (timeouts, 503s, dropped connections)."""


class RetryExhaustedError(RuntimeError):
    """Raised once every attempt failed with a transient error."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"{operation} failed after {attempts} attempts: {last_error}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (TransientError, TimeoutError, asyncio.TimeoutError, httpx.TransportError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 503
    return False


def backoff_delays(retries: int, base_delay: float) -> list[float]:
    """Delays before each retry: base, 2*base, 4*base, ... (2s, 4s, 8s by default)."""
    return [base_delay * (2**index) for index in range(retries)]


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    operation_name: str,
    retries: int = 3,
    base_delay: float = 2.0,
    timeout: Optional[float] = 30.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation``, retrying transient failures up to ``retries`` times.

    Non-transient errors (declines, validation failures) propagate on the
    first occurrence. Each attempt is bounded by ``timeout`` seconds.
    """
    delays = backoff_delays(retries, base_delay)
    attempt = 0
    while True:
        attempt += 1
        try:
            if timeout is None:
                return await operation()
            return await asyncio.wait_for(operation(), timeout=timeout)
        except Exception as exc:  # noqa: BLE001
            if not is_transient(exc):
                raise
            if attempt > len(delays):
                logger.error(
                    "retry_exhausted",
                    extra={"operation": operation_name, "attempts": attempt, "error": str(exc)},
                )
                raise RetryExhaustedError(operation_name, attempt, exc) from exc
            delay = delays[attempt - 1]
            logger.warning(
                "retry_scheduled",
                extra={
                    "operation": operation_name,
                    "attempt": attempt,
                    "delay_seconds": delay,
                    "error": str(exc),
                },
            )
            await sleep(delay)
