"""Image byte sources and decoding for ReviewFeed."""

import io
import logging
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, UnidentifiedImageError

from ..core.config import settings
from ..core.exceptions import ImageFetchFailure
from ._retry import REQUEST_ERRORS, response_content, with_retries

logger = logging.getLogger(__name__)


class ImageSource(Protocol):
    """Returns the raw bytes behind an image URL."""

    def fetch(self, url: str) -> bytes:
        ...


class HttpImageSource:
    """Downloads images over HTTP(S) with retries for transient failures."""

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None, max_retries: Optional[int] = None):
        self.session = session or requests.Session()
        self.timeout = settings.request_timeout if timeout is None else timeout
        self._download = with_retries(self._download_once, max_retries)

    def _download_once(self, url: str) -> bytes:
        response = self.session.get(url, timeout=self.timeout)
        return response_content(response)

    def fetch(self, url: str) -> bytes:
        try:
            data = self._download(url)
        except REQUEST_ERRORS as e:
            raise ImageFetchFailure(url, e) from e
        logger.debug(f"Downloaded {len(data)} bytes from {url}")
        return data


class FileImageSource:
    """Reads images from ``file://`` URLs or plain local paths."""

    def fetch(self, url: str) -> bytes:
        parsed = urlparse(url)
        path = Path(unquote(parsed.path)) if parsed.scheme == "file" else Path(url)
        try:
            return path.read_bytes()
        except OSError as e:
            raise ImageFetchFailure(url, e) from e


class DefaultImageSource:
    """Dispatches to the file or HTTP source depending on the URL scheme."""

    def __init__(self, http: Optional[HttpImageSource] = None, files: Optional[FileImageSource] = None):
        self.http = http or HttpImageSource()
        self.files = files or FileImageSource()

    def fetch(self, url: str) -> bytes:
        if urlparse(url).scheme == "file":
            return self.files.fetch(url)
        return self.http.fetch(url)


def decode_image(data: bytes) -> Image.Image:
    """Decode image bytes into a fully loaded PIL image."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageFetchFailure("<bytes>", e) from e
    return image
