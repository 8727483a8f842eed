"""ReviewFeed - paginated reviews list and image cache."""

__version__ = "0.1.0"

from .core.models import *
from .core.config import settings
from .core.exceptions import *
from .services.reviews_store import ReviewsStore
from .services.image_cache import ImageCache

__all__ = [
    "settings",
    "Review",
    "Page",
    "ReviewItem",
    "PaginationState",
    "ReviewsError",
    "SourceUnavailable",
    "DecodeFailure",
    "RecordInvalid",
    "ImageFetchFailure",
    "ReviewsStore",
    "ImageCache",
]
