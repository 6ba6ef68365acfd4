"""Shared fixtures for the sdg test suite."""

import random

import pytest

from sdg.histogram.model import Bucket, Histogram, ValueKind


class ScriptedRng:
    """Random source that replays queued ``randint`` results."""

    def __init__(self, needles):
        self._needles = list(needles)
        self.calls = []

    def randint(self, lo, hi):
        self.calls.append((lo, hi))
        return self._needles.pop(0)

    def randrange(self, n):
        return 0

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def scripted_rng():
    return ScriptedRng


@pytest.fixture
def rng():
    return random.Random(20181016)


@pytest.fixture
def text_hist():
    """Two text buckets: ``aaa..aad`` (repeat 2) and ``aae..aaz`` (repeat 3)."""
    return Histogram(
        buckets=(Bucket(count=10, repeat=2), Bucket(count=20, repeat=3)),
        bounds=("aaa", "aad", "aae", "aaz"),
        kind=ValueKind.TEXT,
        name="name",
    )


@pytest.fixture
def int_hist():
    return Histogram(
        buckets=(Bucket(count=10, repeat=2), Bucket(count=20, repeat=3)),
        bounds=(-50, 5, 100, 200),
        kind=ValueKind.INTEGER,
        name="id",
    )
