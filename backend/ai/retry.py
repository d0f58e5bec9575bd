"""Retry utilities for AI API calls with exponential backoff.

Transient provider errors are retried here, inside the AI adapters. The
parsing pipeline itself never retries an oracle call; its repair loops are
bounded by iteration caps instead.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, TypeVar

import anthropic
import openai
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_WAIT_SECONDS = 1
DEFAULT_MAX_WAIT_SECONDS = 10

# Checked before the permanent types; SDK timeouts subclass connection errors
TRANSIENT_ERRORS = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.InternalServerError,
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.InternalServerError,
    TimeoutError,
    ConnectionError,
)

PERMANENT_ERRORS = (
    anthropic.AuthenticationError,
    anthropic.BadRequestError,
    anthropic.PermissionDeniedError,
    anthropic.NotFoundError,
    openai.AuthenticationError,
    openai.BadRequestError,
    openai.PermissionDeniedError,
    openai.NotFoundError,
)

_TRANSIENT_MARKERS = ("429", "500", "502", "503", "504", "529", "overloaded", "timed out", "timeout")


def is_retryable_error(exception: BaseException) -> bool:
    """
    Decide whether a failed provider call is worth another attempt.

    SDK exception types decide first. Anything else (proxy or transport
    errors wrapped in a plain Exception) falls back to message matching:
    rate limits, 5xx/overloaded and timeouts retry, an exhausted quota does
    not, and unknown errors do not.
    """
    if isinstance(exception, TRANSIENT_ERRORS):
        return True
    if isinstance(exception, PERMANENT_ERRORS):
        return False

    message = str(exception).lower()
    if "quota" in message:
        return False
    if "rate" in message and "limit" in message:
        return True
    if any(marker in message for marker in _TRANSIENT_MARKERS):
        return True
    return "connect" in type(exception).__name__.lower()


def _backoff_policy(
    max_attempts: int,
    min_wait_seconds: float,
    max_wait_seconds: float,
) -> Dict[str, Any]:
    """Build tenacity keyword arguments, validating the bounds first."""
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
    if min_wait_seconds <= 0 or max_wait_seconds <= 0:
        raise ValueError(
            f"wait bounds must be positive, got min={min_wait_seconds} max={max_wait_seconds}"
        )
    if min_wait_seconds > max_wait_seconds:
        raise ValueError(
            f"min_wait_seconds ({min_wait_seconds}) cannot exceed "
            f"max_wait_seconds ({max_wait_seconds})"
        )

    return dict(
        retry=retry_if_exception(is_retryable_error),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=min_wait_seconds,
            min=min_wait_seconds,
            max=max_wait_seconds,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def create_retry_decorator(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry decorator for sync provider calls such as embeddings."""
    return retry(**_backoff_policy(max_attempts, min_wait_seconds, max_wait_seconds))


async def retry_async_call(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS,
    max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    **kwargs: Any,
) -> T:
    """
    Await ``func(*args, **kwargs)``, retrying transient provider errors.

    Raises:
        Exception: The last error once attempts are exhausted, or the first
            non-retryable error
        ValueError: If the retry bounds are invalid
    """
    policy = _backoff_policy(max_attempts, min_wait_seconds, max_wait_seconds)
    async for attempt in AsyncRetrying(**policy):
        with attempt:
            return await func(*args, **kwargs)

    raise RuntimeError("retry loop finished without a result")
