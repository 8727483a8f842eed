"""Core modules for ReviewFeed."""

from .models import *
from .config import settings
from .exceptions import *
from .pagination import should_load_next_page

__all__ = [
    "settings",
    "Review",
    "Page",
    "ReviewItem",
    "PaginationState",
    "decode_page",
    "encode_page",
    "parse_image_url",
    "ReviewsError",
    "SourceUnavailable",
    "DecodeFailure",
    "RecordInvalid",
    "ImageFetchFailure",
    "should_load_next_page",
]
