"""Services for ReviewFeed."""

from .reviews_provider import FileReviewsProvider, HttpReviewsProvider, ReviewsDataSource
from .reviews_store import ReviewsStore
from .image_source import DefaultImageSource, FileImageSource, HttpImageSource, decode_image
from .image_cache import ImageCache

__all__ = [
    "ReviewsDataSource",
    "FileReviewsProvider",
    "HttpReviewsProvider",
    "ReviewsStore",
    "DefaultImageSource",
    "FileImageSource",
    "HttpImageSource",
    "decode_image",
    "ImageCache",
]
