"""
Exponential backoff for REST calls that hit transient failures.
"""

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from functools import wraps
from typing import Any, TypeVar

import requests

from vctl.exceptions import RetryableError

T = TypeVar("T")

logger = logging.getLogger(__name__)

# HTTP status codes worth another attempt
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

OnRetry = Callable[[Exception, int, int], None]


class TransientHTTPError(Exception):
    """HTTP response with a status code that is worth retrying."""

    def __init__(self, response: requests.Response):
        self.response = response
        super().__init__(f"HTTP {response.status_code} from {response.url}")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(max_attempts=settings.retry_attempts, initial_delay=settings.retry_delay)

    def delays(self) -> Iterator[float]:
        """Pause before each retry, one per attempt after the first."""
        delay = self.initial_delay
        for _ in range(self.max_attempts - 1):
            yield min(delay, self.max_delay)
            delay *= self.backoff_factor


def call_with_retry(
    func: Callable[..., T],
    policy: RetryPolicy,
    retryable_exceptions: tuple[type[Exception], ...],
    on_retry: OnRetry | None,
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Call ``func`` until it succeeds or the policy runs out of attempts.

    Exceptions outside ``retryable_exceptions`` propagate immediately.

    Raises:
        RetryableError: Every attempt failed; wraps the last error
    """
    delays = policy.delays()
    attempt = 0
    while True:
        attempt += 1
        try:
            return func(*args, **kwargs)
        except retryable_exceptions as e:
            delay = next(delays, None)
            if delay is None:
                raise RetryableError(e, attempt, policy.max_attempts) from e
            if on_retry is not None:
                on_retry(e, attempt, policy.max_attempts)
            time.sleep(delay)


def retry_with_backoff(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 30.0,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    on_retry: OnRetry | None = None,
):
    """
    Decorator form of call_with_retry().

    Example:
        @retry_with_backoff(max_attempts=5, retryable_exceptions=(requests.ConnectionError,))
        def list_policies():
            return session.get(url).json()
    """
    policy = RetryPolicy(max_attempts, initial_delay, backoff_factor, max_delay)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return call_with_retry(func, policy, retryable_exceptions, on_retry, *args, **kwargs)

        return wrapper

    return decorator


def log_retry(error: Exception, attempt: int, max_attempts: int) -> None:
    """on_retry callback that reports the failed attempt at WARNING level."""
    logger.warning("Attempt %d/%d failed: %s. Retrying...", attempt, max_attempts, error)
