"""Shared fakes for ReviewFeed tests."""

import json
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

import pytest

from reviewfeed.core.exceptions import ImageFetchFailure

WAIT = 5.0


def make_record(i, **overrides):
    record = {
        "first_name": f"User{i}",
        "last_name": "Tester",
        "avatar_url": f"https://example.com/avatars/{i}.png",
        "rating": i % 5 + 1,
        "text": f"Review number {i}",
        "created": "13 января",
        "photo_urls": [],
    }
    record.update(overrides)
    return record


class FakeReviewsSource:
    """In-memory data source that records calls and can be held back."""

    def __init__(self, records, total_count=None, gate=None):
        self.records = list(records)
        self.total_count = len(self.records) if total_count is None else total_count
        self.gate = gate
        self.calls = []
        self._lock = threading.Lock()

    def get_reviews(self, offset, limit):
        with self._lock:
            self.calls.append((offset, limit))
        if self.gate is not None:
            assert self.gate.wait(WAIT), "gate never opened"
        page = {"items": self.records[offset:offset + limit], "count": self.total_count}
        return json.dumps(page).encode("utf-8")


class ScriptedReviewsSource:
    """Answers each call with the next scripted step.

    A step is either bytes to return, an exception to raise, or a
    (threading.Event, bytes) pair that blocks until the event is set.
    """

    def __init__(self, steps):
        self.steps = list(steps)
        self.calls = []
        self._lock = threading.Lock()

    def get_reviews(self, offset, limit):
        with self._lock:
            self.calls.append((offset, limit))
            step = self.steps.pop(0)
        if isinstance(step, tuple):
            gate, step = step
            assert gate.wait(WAIT), "gate never opened"
        if isinstance(step, BaseException):
            raise step
        return step


def page_bytes(records, count):
    return json.dumps({"items": records, "count": count}).encode("utf-8")


class FakeImageSource:
    """Image source returning deterministic bytes per URL."""

    def __init__(self, gate=None, failing=()):
        self.gate = gate
        self.failing = set(failing)
        self.calls = Counter()
        self.started = threading.Event()
        self._lock = threading.Lock()

    def fetch(self, url):
        with self._lock:
            self.calls[url] += 1
        self.started.set()
        if self.gate is not None:
            assert self.gate.wait(WAIT), "gate never opened"
        if url in self.failing:
            raise ImageFetchFailure(url, "boom")
        return f"bytes:{url}".encode("utf-8")


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=True)
