"""Review page data sources for ReviewFeed."""

import json
import logging
import random
import time
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

import requests

from ..core.config import settings
from ..core.constants import PaginationConstants
from ..core.exceptions import DecodeFailure, SourceUnavailable
from ._retry import REQUEST_ERRORS, response_content, with_retries

logger = logging.getLogger(__name__)


class ReviewsDataSource(Protocol):
    """Anything that can return one raw page of reviews."""

    def get_reviews(self, offset: int, limit: int) -> bytes:
        """Return the raw page payload starting at ``offset``.

        Blocks until the page is available; raises SourceUnavailable or
        DecodeFailure.
        """
        ...


def _check_bounds(offset: int, limit: int) -> None:
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit <= 0:
        raise ValueError(f"limit must be > 0, got {limit}")


class FileReviewsProvider:
    """Serves pages sliced out of a local reviews JSON document."""

    def __init__(self, path: Union[str, Path], simulate_latency: Optional[bool] = None):
        self.path = Path(path)
        self.simulate_latency = settings.simulate_latency if simulate_latency is None else simulate_latency

    def _load_document(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read reviews file {self.path}: {e}")
            raise SourceUnavailable(f"Cannot open reviews file {self.path}") from e
        try:
            document = json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise DecodeFailure(f"Reviews file {self.path} is not valid JSON: {e}") from e
        if not isinstance(document, dict) or not isinstance(document.get(PaginationConstants.ITEMS_KEY), list):
            raise DecodeFailure(f"Reviews file {self.path} has no '{PaginationConstants.ITEMS_KEY}' list")
        return document

    def get_reviews(self, offset: int = 0, limit: Optional[int] = None) -> bytes:
        """Return the page ``[offset, offset + limit)`` of the document.

        Records are passed through untouched; the page keeps the document's
        ``count`` so consumers see the size of the whole collection.
        """
        if limit is None:
            limit = settings.page_size
        _check_bounds(offset, limit)

        if self.simulate_latency:
            time.sleep(random.uniform(PaginationConstants.SIMULATED_LATENCY_MIN,
                                      PaginationConstants.SIMULATED_LATENCY_MAX))

        document = self._load_document()
        items = document[PaginationConstants.ITEMS_KEY]
        page_items = items[offset:offset + limit]
        page = {
            PaginationConstants.ITEMS_KEY: page_items,
            PaginationConstants.COUNT_KEY: document.get(PaginationConstants.COUNT_KEY, len(items)),
        }
        logger.debug(f"Serving {len(page_items)} reviews from {self.path.name} at offset {offset}")
        return json.dumps(page, ensure_ascii=False).encode("utf-8")


class HttpReviewsProvider:
    """Fetches review pages from an HTTP endpoint taking offset/limit params."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None, max_retries: Optional[int] = None):
        self.base_url = base_url
        self.session = session or requests.Session()
        self.timeout = settings.request_timeout if timeout is None else timeout
        self._request_page = with_retries(self._request_page_once, max_retries)

    def _request_page_once(self, offset: int, limit: int) -> bytes:
        response = self.session.get(
            self.base_url,
            params={"offset": offset, "limit": limit},
            timeout=self.timeout,
        )
        return response_content(response)

    def get_reviews(self, offset: int = 0, limit: Optional[int] = None) -> bytes:
        if limit is None:
            limit = settings.page_size
        _check_bounds(offset, limit)
        try:
            payload = self._request_page(offset, limit)
        except REQUEST_ERRORS as e:
            logger.error(f"Reviews request failed at offset {offset}: {e}")
            raise SourceUnavailable(f"Reviews endpoint {self.base_url} unavailable: {e}") from e
        logger.info(f"Fetched reviews page at offset {offset} ({len(payload)} bytes)")
        return payload
