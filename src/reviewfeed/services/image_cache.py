"""In-memory image cache with coalesced loads."""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Set

from ..core.config import settings
from ..core.constants import ImageConstants
from ..core.exceptions import ImageFetchFailure
from ..core.models import parse_image_url
from .image_source import DefaultImageSource, ImageSource

logger = logging.getLogger(__name__)

ImageCallback = Callable[[Optional[Any]], None]


class _PendingLoad:
    """One underlying load and the caller requests waiting on it."""

    __slots__ = ("future", "waiters")

    def __init__(self):
        self.future: Optional[Future] = None
        self.waiters: Set[Future] = set()


def _resolve(request: Future, image: Any = None, error: Optional[BaseException] = None) -> None:
    # Cancelled requests stay cancelled
    if not request.set_running_or_notify_cancel():
        return
    if error is not None:
        request.set_exception(error)
    else:
        request.set_result(image)


def _deliver(callback: ImageCallback, request: Future) -> None:
    if request.cancelled():
        return
    if request.exception() is not None:
        callback(None)
    else:
        callback(request.result())


class ImageCache:
    """
    Serves images by URL to any number of concurrent callers.

    Every caller gets its own Future, so cancelling one request never affects
    the others. Requests for a URL that is already loading join the load in
    flight; at most one underlying fetch runs per URL. Loaded images stay in
    memory until removed explicitly; failed loads are never cached.

    The lock only guards the two maps. Fetching and decoding run on the
    executor without holding it.
    """

    def __init__(
        self,
        source: Optional[ImageSource] = None,
        decoder: Optional[Callable[[bytes], Any]] = None,
        executor: Optional[Executor] = None,
    ):
        self.source = source or DefaultImageSource()
        self.decoder = decoder

        self._lock = threading.Lock()
        self._images: Dict[str, Any] = {}
        self._pending: Dict[str, _PendingLoad] = {}

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.image_workers, thread_name_prefix=ImageConstants.THREAD_NAME_PREFIX
        )

    # ========== Loading ==========

    def fetch(self, url: str, callback: Optional[ImageCallback] = None) -> Future:
        """
        Request the image behind ``url``.

        Args:
            url: Image URL
            callback: Called with the image, or None if loading failed.
                Never called once the request is cancelled.

        Returns:
            A Future resolving to the image or raising ImageFetchFailure
        """
        request: Future = Future()
        if callback is not None:
            request.add_done_callback(partial(_deliver, callback))

        if parse_image_url(url) is None:
            _resolve(request, error=ImageFetchFailure(url, "malformed URL"))
            return request

        start = None
        failure = None
        with self._lock:
            if url in self._images:
                image = self._images[url]
                load = None
            else:
                load = self._pending.get(url)
                if load is None:
                    load = _PendingLoad()
                    try:
                        load.future = self._executor.submit(self._load, url)
                    except RuntimeError as e:
                        # Executor already shut down
                        failure = ImageFetchFailure(url, e)
                    else:
                        self._pending[url] = load
                        start = load.future
                if failure is None:
                    load.waiters.add(request)

        if failure is not None:
            logger.warning(f"Cannot schedule image load: {failure}")
            _resolve(request, error=failure)
            return request

        if load is None:
            logger.debug(f"Image cache hit: {url}")
            _resolve(request, image)
            return request

        if start is not None:
            logger.debug(f"Loading image: {url}")
            start.add_done_callback(partial(self._on_load_done, url, load))
        else:
            logger.debug(f"Joining in-flight load: {url}")
        request.add_done_callback(partial(self._on_request_done, url))
        return request

    def cancel(self, request: Future) -> bool:
        """Withdraw one caller's interest. Other callers are unaffected."""
        return request.cancel()

    def _load(self, url: str) -> Any:
        data = self.source.fetch(url)
        if self.decoder is not None:
            return self.decoder(data)
        return data

    def _on_request_done(self, url: str, request: Future) -> None:
        if not request.cancelled():
            return
        with self._lock:
            load = self._pending.get(url)
            if load is None or request not in load.waiters:
                return
            load.waiters.discard(request)
            if load.waiters:
                return
            underlying = load.future
        # Last interested caller left. Outside the lock: cancel() runs callbacks.
        if underlying is not None and underlying.cancel():
            logger.debug(f"Abandoned image load: {url}")

    def _on_load_done(self, url: str, load: _PendingLoad, underlying: Future) -> None:
        if underlying.cancelled():
            self._on_load_cancelled(url, load)
            return

        error = underlying.exception()
        if error is not None and not (isinstance(error, ImageFetchFailure) and error.url == url):
            error = ImageFetchFailure(url, error)

        with self._lock:
            if self._pending.get(url) is load:
                del self._pending[url]
            if error is None:
                image = underlying.result()
                self._images[url] = image
            else:
                image = None
            waiters = list(load.waiters)
            load.waiters.clear()

        if error is not None:
            logger.warning(f"Image load failed for {len(waiters)} waiter(s): {error}")
        for request in waiters:
            _resolve(request, image, error)

    def _on_load_cancelled(self, url: str, load: _PendingLoad) -> None:
        restarted = None
        with self._lock:
            if self._pending.get(url) is not load:
                return
            if not load.waiters:
                del self._pending[url]
                return
            # A caller joined between the last cancel and the abort
            try:
                load.future = restarted = self._executor.submit(self._load, url)
            except RuntimeError as e:
                del self._pending[url]
                waiters: List[Future] = list(load.waiters)
                load.waiters.clear()
                error = ImageFetchFailure(url, e)
        if restarted is not None:
            restarted.add_done_callback(partial(self._on_load_done, url, load))
            return
        for request in waiters:
            _resolve(request, error=error)

    # ========== Direct Access ==========

    def get(self, url: str) -> Optional[Any]:
        """Return the cached image without triggering a load."""
        with self._lock:
            return self._images.get(url)

    def set(self, url: str, image: Optional[Any]) -> None:
        """Store an image for ``url``; None removes the entry."""
        if image is None:
            self.remove(url)
            return
        with self._lock:
            self._images[url] = image

    def remove(self, url: str) -> None:
        with self._lock:
            self._images.pop(url, None)

    def remove_all(self) -> None:
        with self._lock:
            count = len(self._images)
            self._images.clear()
        logger.info(f"Removed {count} images from cache")

    def pending_count(self) -> int:
        """Number of URLs with a load in flight."""
        with self._lock:
            return len(self._pending)

    def __getitem__(self, url: str) -> Optional[Any]:
        return self.get(url)

    def __setitem__(self, url: str, image: Optional[Any]) -> None:
        self.set(url, image)

    def __delitem__(self, url: str) -> None:
        self.remove(url)

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._images

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)

    # ========== Lifecycle ==========

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
