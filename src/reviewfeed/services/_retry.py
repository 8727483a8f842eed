"""Retry policy shared by the HTTP sources."""

import logging
from typing import Callable, Optional, TypeVar

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.config import settings
from ..core.constants import ErrorConstants

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransientStatus(Exception):
    """Response status worth retrying"""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}")


# Everything that ends a request for good once retries run out
REQUEST_ERRORS = (requests.RequestException, TransientStatus)


def with_retries(func: Callable[..., T], max_retries: Optional[int] = None) -> Callable[..., T]:
    """Wrap ``func`` so connection errors, timeouts and transient statuses are retried."""
    return retry(
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout, TransientStatus)),
        stop=stop_after_attempt(max_retries or settings.max_retries),
        wait=wait_exponential(
            multiplier=settings.retry_delay,
            exp_base=settings.retry_backoff,
            max=ErrorConstants.RETRY_MAX_WAIT,
        ),
        reraise=True,
    )(func)


def response_content(response: requests.Response) -> bytes:
    """Return the body of a successful response.

    Raises TransientStatus for statuses worth retrying and HTTPError for other
    non-2xx answers.
    """
    if response.status_code in ErrorConstants.RETRYABLE_STATUS_CODES:
        logger.warning(f"{response.url or 'Endpoint'} answered {response.status_code}, retrying")
        raise TransientStatus(response.status_code)
    response.raise_for_status()
    return response.content
