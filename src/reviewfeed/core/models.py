"""Data models for ReviewFeed."""

import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

from .config import settings
from .constants import ImageConstants, PaginationConstants
from .exceptions import DecodeFailure, RecordInvalid, ReviewsError

logger = logging.getLogger(__name__)

_MANDATORY_FIELDS = (
    ("first_name", str),
    ("last_name", str),
    ("rating", int),
    ("text", str),
    ("created", str),
)


def _require(raw: Dict[str, Any], key: str, kind: type):
    if key not in raw:
        raise RecordInvalid(key, "missing")
    value = raw[key]
    # bool is a subclass of int but never a valid rating
    if not isinstance(value, kind) or isinstance(value, bool):
        raise RecordInvalid(key, f"expected {kind.__name__}, got {type(value).__name__}")
    return value


def _optional_photo_urls(raw: Dict[str, Any]) -> List[str]:
    value = raw.get("photo_urls")
    if not isinstance(value, list) or not all(isinstance(url, str) for url in value):
        return []
    return value


def parse_image_url(value: Optional[str]) -> Optional[str]:
    """Return the URL if it can be loaded by an image source, else None."""
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    try:
        parsed = urlparse(value)
    except ValueError:
        return None
    if parsed.scheme not in ImageConstants.ALLOWED_SCHEMES:
        return None
    if parsed.scheme in ImageConstants.HTTP_SCHEMES and not parsed.netloc:
        return None
    if parsed.scheme == "file" and not parsed.path:
        return None
    return value


@dataclass(frozen=True)
class Review:
    """A single review as received from the data source."""
    first_name: str
    last_name: str
    avatar_url: str
    rating: int
    text: str
    created: str
    photo_urls: Tuple[str, ...] = ()
    is_valid: bool = True

    @property
    def user_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def invalid(cls) -> "Review":
        """Placeholder kept in place of a record that failed to decode."""
        return cls(
            first_name="",
            last_name="",
            avatar_url="",
            rating=0,
            text="",
            created="",
            photo_urls=(),
            is_valid=False,
        )

    @classmethod
    def from_dict(cls, raw: Any, max_photos: Optional[int] = None) -> "Review":
        """
        Decode one review record.

        Records missing a mandatory field are not dropped: they come back as
        ``Review.invalid()`` so the list keeps one slot per record.
        """
        if max_photos is None:
            max_photos = settings.max_photos
        try:
            if not isinstance(raw, dict):
                raise RecordInvalid(reason=f"expected object, got {type(raw).__name__}")
            values = {key: _require(raw, key, kind) for key, kind in _MANDATORY_FIELDS}
        except RecordInvalid as e:
            logger.debug(f"Keeping invalid review record: {e}")
            return cls.invalid()

        avatar_url = raw.get("avatar_url")
        if not isinstance(avatar_url, str):
            avatar_url = ""

        photo_urls = _optional_photo_urls(raw)[:max_photos]

        return cls(
            avatar_url=avatar_url,
            photo_urls=tuple(photo_urls),
            is_valid=True,
            **values,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "avatar_url": self.avatar_url,
            "rating": self.rating,
            "text": self.text,
            "created": self.created,
            "photo_urls": list(self.photo_urls),
        }


@dataclass
class Page:
    """One batch of reviews plus the size of the whole remote collection."""
    items: List[Review]
    total_count: int


def decode_page(payload: Union[bytes, str, Dict[str, Any]], max_photos: Optional[int] = None) -> Page:
    """Decode a raw page payload into a Page.

    Raises DecodeFailure when the envelope is malformed. Bad individual records
    never fail the page.
    """
    if isinstance(payload, (bytes, bytearray, str)):
        try:
            payload = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as e:
            raise DecodeFailure(f"Page payload is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeFailure(f"Page payload must be an object, got {type(payload).__name__}")

    items = payload.get(PaginationConstants.ITEMS_KEY)
    if not isinstance(items, list):
        raise DecodeFailure(f"Page payload has no '{PaginationConstants.ITEMS_KEY}' list")

    count = payload.get(PaginationConstants.COUNT_KEY)
    if not isinstance(count, int) or isinstance(count, bool):
        raise DecodeFailure(f"Page payload has no integer '{PaginationConstants.COUNT_KEY}'")

    reviews = [Review.from_dict(raw, max_photos=max_photos) for raw in items]
    invalid = sum(1 for review in reviews if not review.is_valid)
    if invalid:
        logger.info(f"Decoded page with {invalid}/{len(reviews)} invalid records")
    return Page(items=reviews, total_count=count)


def encode_page(page: Page) -> bytes:
    """Encode a Page back to its wire form."""
    data = {
        PaginationConstants.ITEMS_KEY: [review.to_dict() for review in page.items],
        PaginationConstants.COUNT_KEY: page.total_count,
    }
    return json.dumps(data, ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class ReviewItem:
    """A renderable row of the reviews list."""
    review: Review
    user_name: str
    avatar_url: Optional[str]
    photo_urls: Tuple[str, ...]
    rating: int
    text: str
    created: str
    max_lines: int = 3
    is_valid: bool = True
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def from_review(cls, review: Review, max_lines: Optional[int] = None) -> "ReviewItem":
        if max_lines is None:
            max_lines = settings.default_max_lines
        photo_urls = tuple(url for url in (parse_image_url(u) for u in review.photo_urls) if url)
        return cls(
            review=review,
            user_name=review.user_name,
            avatar_url=parse_image_url(review.avatar_url),
            photo_urls=photo_urls,
            rating=review.rating,
            text=review.text,
            created=review.created,
            max_lines=max_lines,
            is_valid=review.is_valid,
        )

    @property
    def is_expanded(self) -> bool:
        return self.max_lines == PaginationConstants.UNLIMITED_LINES

    def expanded(self) -> "ReviewItem":
        """Copy of this row with the full review text shown."""
        return replace(self, max_lines=PaginationConstants.UNLIMITED_LINES)


@dataclass(frozen=True)
class PaginationState:
    """Immutable snapshot of a ReviewsStore, delivered to observers."""
    items: Tuple[ReviewItem, ...] = ()
    offset: int = 0
    limit: int = 20
    total_count: int = 0
    is_loading: bool = False
    has_more: bool = True
    last_error: Optional[ReviewsError] = None
    generation: int = 0

    @property
    def should_load(self) -> bool:
        """True when a call to load the next page would issue a fetch."""
        return self.has_more and not self.is_loading
