"""Error taxonomy for ReviewFeed."""


class ReviewsError(Exception):
    """Base class for every error raised by ReviewFeed."""
    pass

class SourceUnavailable(ReviewsError):
    """The reviews data source could not be reached or opened"""
    pass

class DecodeFailure(ReviewsError):
    """A page payload was malformed"""
    pass

class RecordInvalid(ReviewsError):
    """A single review record failed to decode.

    Absorbed during ingestion; the record is kept with defaults.
    """

    def __init__(self, field=None, reason=None):
        if field is not None:
            message = f'Review field {field!r} is invalid'
            if reason:
                message += f': {reason}'
        else:
            message = 'Review record is invalid'
        self.field = field
        super().__init__(message)

class ImageFetchFailure(ReviewsError):
    """Loading an image by URL failed (retryable on the next request)"""

    def __init__(self, url, cause=None):
        self.url = url
        self.cause = cause
        message = f'Failed to load image {url!r}'
        if cause is not None:
            message += f': {cause}'
        super().__init__(message)
