"""Scroll-driven prefetch policy."""

from typing import Optional

from .config import settings


def remaining_distance(target_offset_y: float, viewport_height: float, content_height: float) -> float:
    """Scrollable distance left below the viewport once scrolling settles."""
    return content_height - viewport_height - target_offset_y


def should_load_next_page(
    target_offset_y: float,
    viewport_height: float,
    content_height: float,
    screens_to_load_next_page: Optional[float] = None,
) -> bool:
    """
    Decide whether the next page should be requested.

    The next page is due once no more than ``screens_to_load_next_page``
    viewport heights are left to scroll (2.5 by default).

    Args:
        target_offset_y: Vertical offset the scroll view will come to rest at
        viewport_height: Visible height of the list
        content_height: Total height of the list content
        screens_to_load_next_page: Prefetch threshold in viewport heights
    """
    if screens_to_load_next_page is None:
        screens_to_load_next_page = settings.prefetch_screens
    trigger_distance = viewport_height * screens_to_load_next_page
    return remaining_distance(target_offset_y, viewport_height, content_height) <= trigger_distance
