"""
Retry with exponential backoff for Steam Web API requests.

Transient failures (rate limiting, 5xx responses, timeouts, dropped
connections) are retried. Everything else is raised on the first attempt.
"""

import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, TypeVar

import requests
from loguru import logger

F = TypeVar("F", bound=Callable[..., Any])

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass
class SteamWebAPIRetryConfig:
    """
    :param max_retries: retries after the first attempt
    :param backoff_factor: delay before retry n is backoff_factor * 2**n seconds
    :param retry_on_timeout: retry requests.Timeout
    :param retry_on_connection_error: retry requests.ConnectionError
    """

    max_retries: int = 3
    backoff_factor: float = 1.0
    retry_on_timeout: bool = True
    retry_on_connection_error: bool = True

    def delay(self, attempt: int) -> float:
        return self.backoff_factor * (2**attempt)


def should_retry_exception(exc: Exception, config: SteamWebAPIRetryConfig) -> bool:
    """
    Decide whether a failed request is worth another attempt.

    :param exc: the exception raised by the request
    :param config: retry configuration
    :return: True for rate limiting, server errors and (if enabled) timeouts
        and connection errors
    """
    if isinstance(exc, requests.HTTPError):
        response = exc.response
        if response is None:
            return False
        return response.status_code in RETRYABLE_STATUS_CODES

    if isinstance(exc, requests.Timeout):
        return config.retry_on_timeout

    if isinstance(exc, requests.ConnectionError):
        return config.retry_on_connection_error

    return False


def retry_steam_api_call(config: SteamWebAPIRetryConfig) -> Callable[[F], F]:
    """
    Decorator retrying the wrapped call according to config.

    The last exception is re-raised once the retry budget is spent.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
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
                            f"{func.__name__} failed after {config.max_retries} "
                            f"retry attempts: {e.__class__.__name__}"
                        )
                        raise
                    delay = config.delay(attempt)
                    logger.info(
                        f"{func.__name__} attempt {attempt + 1}/{config.max_retries + 1} "
                        f"failed ({e.__class__.__name__}), retrying in {delay:.1f}s..."
                    )
                    time.sleep(delay)
                    attempt += 1

        return wrapper  # type: ignore

    return decorator


def steam_api_post_with_retry(
    url: str,
    data: dict[str, str],
    config: SteamWebAPIRetryConfig | None = None,
    timeout: float | None = None,
) -> requests.Response:
    """
    POST form data to a Steam Web API endpoint with retries.

    raise_for_status() is called on every response so bad status codes
    take part in the retry decision.

    :raises requests.RequestException: on non-retryable errors or once retries are exhausted
    """
    if config is None:
        config = SteamWebAPIRetryConfig()

    @retry_steam_api_call(config=config)
    def _post() -> requests.Response:
        response = requests.post(url, data=data, timeout=timeout)
        response.raise_for_status()
        return response

    return _post()
