"""Retry policy for Kubernetes API calls.

Transient API failures (rate limiting, server/client timeouts, service
unavailable, update conflicts and not-found) are retried with a bounded
exponential backoff. Everything else propagates on the first failure.

Not-found is deliberately treated as transient so reads tolerate
eventual-consistency lag right after a write. This also means a genuinely
missing object is only reported once the retries are exhausted.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from http import HTTPStatus
from typing import TypeVar

import kr8s
from loguru import logger

T = TypeVar("T")

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset(
    {
        HTTPStatus.TOO_MANY_REQUESTS,
        HTTPStatus.GATEWAY_TIMEOUT,  # server timeout
        HTTPStatus.REQUEST_TIMEOUT,
        HTTPStatus.SERVICE_UNAVAILABLE,
        HTTPStatus.NOT_FOUND,
    }
)


@dataclass(frozen=True)
class Backoff:
    """Bounded exponential backoff settings."""

    steps: int = 4
    duration_s: float = 0.01
    factor: float = 5.0
    jitter: float = 0.1

    def delay(self, attempt: int) -> float:
        """Compute the wait before retry number `attempt` (0-based)."""
        delay = self.duration_s * (self.factor**attempt)
        if self.jitter:
            delay += delay * self.jitter * random.random()  # noqa: S311
        return delay


DEFAULT_BACKOFF = Backoff()


def error_status(err: BaseException) -> tuple[int | None, str]:
    """Extract the HTTP status code and Kubernetes reason from an API error."""
    if isinstance(err, kr8s.NotFoundError):
        return HTTPStatus.NOT_FOUND, "NotFound"

    code: int | None = None
    reason = ""
    response = getattr(err, "response", None)
    if response is not None:
        code = getattr(response, "status_code", None)
    status = getattr(err, "status", None)
    if isinstance(status, dict):
        code = code or status.get("code")
        reason = status.get("reason") or ""
    return code, reason


def is_retryable(err: BaseException) -> bool:
    """Decide whether an API error suggests retrying the call."""
    code, reason = error_status(err)
    if code in RETRYABLE_STATUS_CODES:
        return True
    # A 409 is either an update conflict (retry) or AlreadyExists (don't)
    return code == HTTPStatus.CONFLICT and reason != "AlreadyExists"


async def retry_on_error(
    func: Callable[[], Awaitable[T]],
    *,
    backoff: Backoff = DEFAULT_BACKOFF,
    retryable: Callable[[BaseException], bool] = is_retryable,
) -> T:
    """Call `func` until it succeeds, retrying only retryable errors.

    Args:
        func: Zero-argument coroutine factory to call
        backoff: Backoff settings; `steps` bounds the total number of attempts
        retryable: Predicate selecting errors worth retrying

    Returns:
        The result of the first successful call

    Raises:
        Exception: The last error once attempts are exhausted, or the first
            non-retryable error
    """
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as err:
            attempt += 1
            if not retryable(err) or attempt >= backoff.steps:
                raise
            delay = backoff.delay(attempt - 1)
            logger.debug(
                f"Retrying Kubernetes API call after {type(err).__name__} "
                f"(attempt {attempt}/{backoff.steps}, waiting {delay:.3f}s)"
            )
            await asyncio.sleep(delay)
