"""
Retry logic for page downloads.

Two flavours: ``retry_call`` retries a single HTTP request with exponential
backoff on transient failures (503, timeouts, dropped connections), and
``retry_once`` repeats a whole fetch-and-parse step exactly one more time
when its result looks inconsistent.
"""

import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, TypeVar

import requests
from loguru import logger

# Type variable for generic decorator
F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Configuration for download retry behavior.

    :param max_retries: Maximum number of retry attempts (default: 3)
    :param backoff_factor: Exponential backoff multiplier (default: 1.0).
                          Delay calculated as: backoff_factor * (2 ** attempt)
    :param retry_on_timeout: Whether to retry on timeout errors (default: True)
    :param retry_on_connection_error: Whether to retry on connection errors (default: True)
    """

    max_retries: int = 3
    backoff_factor: float = 1.0
    retry_on_timeout: bool = True
    retry_on_connection_error: bool = True


def should_retry_exception(exc: Exception, config: RetryConfig) -> bool:
    """
    Determine if an exception warrants a retry attempt.

    Retryable errors are HTTP 429 and 5xx server errors, plus timeouts and
    connection errors when enabled in the config. Client errors will not be
    fixed by asking again.

    :param exc: The exception to evaluate
    :param config: Retry configuration
    :return: True if the error should be retried, False otherwise
    """
    if isinstance(exc, requests.HTTPError):
        if exc.response is not None:
            status_code = exc.response.status_code
            if status_code in {429, 500, 502, 503, 504}:
                return True
        return False

    if isinstance(exc, requests.Timeout):
        return config.retry_on_timeout

    if isinstance(exc, requests.ConnectionError):
        return config.retry_on_connection_error

    return False


def retry_call(config: RetryConfig) -> Callable[[F], F]:
    """
    Decorator to add retry logic with exponential backoff to a function.

    Usage:
        @retry_call(config=RetryConfig(max_retries=3))
        def fetch():
            return requests.get("https://steamcommunity.com/...")

    :param config: Retry configuration
    :return: Decorated function with retry logic
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(config.max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not should_retry_exception(e, config):
                        logger.debug(
                            f"{func.__name__} failed with non-retryable error: "
                            f"{e.__class__.__name__}"
                        )
                        raise

                    if attempt >= config.max_retries:
                        logger.warning(
                            f"{func.__name__} failed after {config.max_retries} retry attempts: "
                            f"{e.__class__.__name__}"
                        )
                        raise

                    delay = config.backoff_factor * (2**attempt)
                    logger.info(
                        f"{func.__name__} attempt {attempt + 1}/{config.max_retries + 1} failed "
                        f"({e.__class__.__name__}), retrying in {delay:.1f}s..."
                    )
                    time.sleep(delay)

            raise RuntimeError("Retry logic failed unexpectedly")

        return wrapper  # type: ignore

    return decorator


def retry_once(step: Callable[[], T], needs_retry: Callable[[T], bool]) -> T:
    """
    Run ``step``, and run it one more time if ``needs_retry`` says the result is no good.

    The second result is returned as-is, whatever ``needs_retry`` thinks of it.
    """
    result = step()
    if needs_retry(result):
        logger.debug(f"Retrying {getattr(step, '__name__', 'step')} once")
        result = step()
    return result
