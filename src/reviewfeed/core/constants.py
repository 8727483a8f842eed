"""Constants and configuration values for ReviewFeed."""

# Pagination Constants
class PaginationConstants:
    """Constants related to review paging."""

    # Wire format keys of a page payload
    ITEMS_KEY = "items"
    COUNT_KEY = "count"

    # Rows
    UNLIMITED_LINES = 0  # max_lines value for a fully expanded review

    # Mock network (file-backed provider)
    SIMULATED_LATENCY_MIN = 0.1  # seconds
    SIMULATED_LATENCY_MAX = 1.0  # seconds

# Image Constants
class ImageConstants:
    """Constants for image loading."""

    ALLOWED_SCHEMES = ("http", "https", "file")
    HTTP_SCHEMES = ("http", "https")
    THREAD_NAME_PREFIX = "image_load"

# Error Handling Constants
class ErrorConstants:
    """Constants for error handling and retries."""

    RETRY_MAX_WAIT = 10  # upper bound for exponential backoff in seconds
    RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)

# File and Path Constants
class FileConstants:
    """Constants for file operations."""

    DEFAULT_REVIEWS_FILE = "getReviews.response.json"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    EXPORT_VERSION = "0.1.0"
