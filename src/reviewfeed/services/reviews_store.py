"""Paginated reviews list state for ReviewFeed."""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import replace
from functools import partial
from typing import Callable, List, Optional
from uuid import UUID

from ..core.config import settings
from ..core.exceptions import ReviewsError, SourceUnavailable
from ..core.models import Page, PaginationState, ReviewItem, decode_page
from ..core.pagination import should_load_next_page
from .reviews_provider import ReviewsDataSource

logger = logging.getLogger(__name__)

StateCallback = Callable[[PaginationState], None]


class ReviewsStore:
    """
    Owns the pagination state of the reviews list.

    Page fetches run on the store's executor, so ``load_next_page`` and
    ``refresh`` never block. Every completed fetch produces exactly one
    notification to subscribers. Snapshots are queued under the state lock to
    a single delivery thread, so subscribers see them in the order the state
    changed and never run while the lock is held.
    Responses that belong to a generation older than the latest ``refresh``
    are discarded.
    """

    def __init__(
        self,
        data_source: ReviewsDataSource,
        page_size: Optional[int] = None,
        executor: Optional[Executor] = None,
        max_lines: Optional[int] = None,
    ):
        self.data_source = data_source
        self.page_size = page_size or settings.page_size
        self.max_lines = settings.default_max_lines if max_lines is None else max_lines

        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._state = PaginationState(limit=self.page_size)
        self._subscribers: List[StateCallback] = []
        self._in_flight = 0
        self._undelivered = 0

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.store_workers, thread_name_prefix="reviews_page"
        )
        self._notifier = ThreadPoolExecutor(max_workers=1, thread_name_prefix="reviews_notify")

    # ========== Observation ==========

    @property
    def state(self) -> PaginationState:
        """Current immutable snapshot."""
        with self._lock:
            return self._state

    def subscribe(self, callback: StateCallback) -> StateCallback:
        """Register a callback invoked with every new state snapshot."""
        with self._lock:
            self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: StateCallback) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def _notify(self) -> None:
        # Called with the lock held; the single delivery worker keeps mutation order
        self._undelivered += 1
        try:
            self._notifier.submit(self._deliver, self._state)
        except RuntimeError:
            self._undelivered -= 1
            logger.debug("Store closed, dropping state notification")

    def _deliver(self, state: PaginationState) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        try:
            for callback in subscribers:
                try:
                    callback(state)
                except Exception as e:
                    logger.error(f"Reviews state subscriber {callback!r} failed: {e}")
        finally:
            with self._lock:
                self._undelivered -= 1
                self._idle.notify_all()

    # ========== Loading ==========

    def load_next_page(self) -> bool:
        """
        Request the next page unless one is loading or the list is complete.

        Safe to call on every scroll tick.

        Returns:
            True if a fetch was issued
        """
        with self._lock:
            state = self._state
            if not state.should_load:
                return False

            self._state = replace(state, is_loading=True)
            self._in_flight += 1
            logger.info(f"Requesting reviews offset={state.offset} limit={state.limit} (generation {state.generation})")
            try:
                future = self._executor.submit(self._fetch_page, state.offset, state.limit)
            except RuntimeError as e:
                # Executor already shut down
                self._in_flight -= 1
                self._state = replace(state, last_error=SourceUnavailable(str(e)))
                self._notify()
                self._idle.notify_all()
                return False
            future.add_done_callback(partial(self._on_page_done, state.generation))
            return True

    def refresh(self) -> bool:
        """Drop everything loaded so far and load the first page again."""
        with self._lock:
            generation = self._state.generation + 1
            logger.info(f"Refreshing reviews (generation {generation})")
            self._state = PaginationState(limit=self.page_size, generation=generation)
            return self.load_next_page()

    def on_scroll(self, target_offset_y: float, viewport_height: float, content_height: float) -> bool:
        """Prefetch the next page when the user scrolls close to the end."""
        if should_load_next_page(target_offset_y, viewport_height, content_height):
            return self.load_next_page()
        return False

    def _fetch_page(self, offset: int, limit: int) -> Page:
        payload = self.data_source.get_reviews(offset, limit)
        return decode_page(payload)

    def _on_page_done(self, generation: int, future: Future) -> None:
        with self._lock:
            try:
                self._in_flight -= 1
                if generation != self._state.generation:
                    logger.warning(f"Discarding reviews page from stale generation {generation}")
                    return
                try:
                    page = future.result()
                except ReviewsError as e:
                    self._apply_failure(e)
                except Exception as e:
                    logger.error(f"Reviews data source raised unexpected error: {e}")
                    self._apply_failure(SourceUnavailable(str(e)))
                else:
                    self._apply_page(page)
                self._notify()
            finally:
                self._idle.notify_all()

    def _apply_page(self, page: Page) -> None:
        state = self._state
        new_items = tuple(ReviewItem.from_review(review, max_lines=self.max_lines) for review in page.items)
        offset = state.offset + len(new_items)

        if new_items:
            has_more = offset < page.total_count
        else:
            if offset < page.total_count:
                logger.warning(f"Empty page at offset {offset} although total count is {page.total_count}; treating as end of data")
            has_more = False

        self._state = replace(
            state,
            items=state.items + new_items,
            offset=offset,
            total_count=page.total_count,
            is_loading=False,
            has_more=has_more,
            last_error=None,
        )
        logger.info(f"Applied {len(new_items)} reviews: {offset}/{page.total_count} loaded, has_more={has_more}")

    def _apply_failure(self, error: ReviewsError) -> None:
        logger.warning(f"Loading reviews failed: {error}")
        self._state = replace(self._state, is_loading=False, last_error=error)

    # ========== Row Updates ==========

    def update_row(self, item_id: UUID, mutation: Callable[[ReviewItem], ReviewItem]) -> bool:
        """
        Replace one row with ``mutation(row)`` without touching pagination.

        Returns:
            False if no row has that id
        """
        with self._lock:
            items = self._state.items
            for index, item in enumerate(items):
                if item.id == item_id:
                    break
            else:
                return False

            updated = items[:index] + (mutation(item),) + items[index + 1:]
            self._state = replace(self._state, items=updated)
            self._notify()
            return True

    def show_more(self, item_id: UUID) -> bool:
        """Expand the full text of one review."""
        return self.update_row(item_id, ReviewItem.expanded)

    # ========== Lifecycle ==========

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no page fetch is in flight and every notification has
        been delivered. Returns False on timeout.

        Not to be called from a subscriber.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._in_flight == 0 and self._undelivered == 0, timeout)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)
        self._notifier.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
