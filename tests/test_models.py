"""Tests for review records, pages and rows."""

import json

import pytest

from reviewfeed.core.exceptions import DecodeFailure
from reviewfeed.core.models import (
    Page,
    PaginationState,
    Review,
    ReviewItem,
    decode_page,
    encode_page,
    parse_image_url,
)
from conftest import make_record


class TestReviewDecoding:
    """Review.from_dict keeps one slot per record no matter what."""

    def test_valid_record(self):
        review = Review.from_dict(make_record(1, photo_urls=["https://example.com/p/1.jpg"]))

        assert review.is_valid
        assert review.user_name == "User1 Tester"
        assert review.rating == 2
        assert review.photo_urls == ("https://example.com/p/1.jpg",)

    def test_missing_rating_is_invalid(self):
        record = make_record(1)
        del record["rating"]

        review = Review.from_dict(record)

        assert not review.is_valid
        assert review.text == ""
        assert review.first_name == ""
        assert review.last_name == ""
        assert review.rating == 0
        assert review.photo_urls == ()

    @pytest.mark.parametrize("field, value", [
        ("first_name", None),
        ("last_name", 42),
        ("rating", "5"),
        ("rating", True),
        ("text", ["a"]),
        ("created", 1700000000),
    ])
    def test_wrong_mandatory_type_is_invalid(self, field, value):
        review = Review.from_dict(make_record(1, **{field: value}))
        assert not review.is_valid

    def test_non_object_record_is_invalid(self):
        assert Review.from_dict("oops") == Review.invalid()

    def test_optional_fields_default(self):
        record = make_record(1)
        del record["avatar_url"]
        del record["photo_urls"]

        review = Review.from_dict(record)

        assert review.is_valid
        assert review.avatar_url == ""
        assert review.photo_urls == ()

    def test_malformed_photo_list_defaults_to_empty(self):
        review = Review.from_dict(make_record(1, photo_urls=["https://a/1.jpg", 7]))
        assert review.is_valid
        assert review.photo_urls == ()

    def test_photos_capped_at_five(self):
        urls = [f"https://example.com/p/{i}.jpg" for i in range(8)]
        review = Review.from_dict(make_record(1, photo_urls=urls))
        assert review.photo_urls == tuple(urls[:5])

    def test_to_dict_uses_wire_keys(self):
        record = make_record(3)
        assert Review.from_dict(record).to_dict() == record


class TestPageDecoding:

    def test_decode_bytes(self):
        payload = json.dumps({"items": [make_record(0), make_record(1)], "count": 45}).encode()

        page = decode_page(payload)

        assert page.total_count == 45
        assert [r.first_name for r in page.items] == ["User0", "User1"]

    def test_invalid_records_do_not_fail_the_page(self):
        bad = make_record(1)
        del bad["text"]
        page = decode_page({"items": [make_record(0), bad, make_record(2)], "count": 3})

        assert len(page.items) == 3
        assert [r.is_valid for r in page.items] == [True, False, True]

    @pytest.mark.parametrize("payload", [
        b"not json",
        b"[1, 2, 3]",
        {"count": 3},
        {"items": {}, "count": 3},
        {"items": []},
        {"items": [], "count": "3"},
    ])
    def test_malformed_envelope(self, payload):
        with pytest.raises(DecodeFailure):
            decode_page(payload)

    def test_encode_page(self):
        page = Page(items=[Review.from_dict(make_record(0))], total_count=10)
        assert decode_page(encode_page(page)).items == page.items


class TestReviewItem:

    def test_from_review(self):
        review = Review.from_dict(make_record(4, photo_urls=["https://example.com/p.jpg", "not a url"]))

        item = ReviewItem.from_review(review, max_lines=3)

        assert item.user_name == "User4 Tester"
        assert item.avatar_url == "https://example.com/avatars/4.png"
        assert item.photo_urls == ("https://example.com/p.jpg",)
        assert item.max_lines == 3
        assert not item.is_expanded

    def test_empty_avatar_has_no_url(self):
        item = ReviewItem.from_review(Review.from_dict(make_record(1, avatar_url="")))
        assert item.avatar_url is None

    def test_expanded_keeps_identity(self):
        item = ReviewItem.from_review(Review.from_dict(make_record(1)))

        expanded = item.expanded()

        assert expanded.id == item.id
        assert expanded.max_lines == 0
        assert expanded.is_expanded

    def test_rows_get_distinct_ids(self):
        review = Review.from_dict(make_record(1))
        assert ReviewItem.from_review(review).id != ReviewItem.from_review(review).id


@pytest.mark.parametrize("value, expected", [
    ("https://example.com/a.png", "https://example.com/a.png"),
    ("file:///tmp/a.png", "file:///tmp/a.png"),
    ("", None),
    (None, None),
    ("https://", None),
    ("ftp://example.com/a.png", None),
    ("just some text", None),
])
def test_parse_image_url(value, expected):
    assert parse_image_url(value) == expected


def test_initial_state_should_load():
    state = PaginationState()
    assert state.should_load
    assert not PaginationState(is_loading=True).should_load
    assert not PaginationState(has_more=False).should_load
