"""
Tests for histogram value sampling.

Covers bound selection, integer and string synthesis and prefix construction.
"""

import logging
import random
import string

import pytest

from sdg.errors import MalformedStatisticsError
from sdg.histogram.codec import encode_int
from sdg.histogram.model import Bucket, Histogram, ValueKind
from sdg.sampler.values import (
    ALPHABET,
    random_int,
    random_int_between,
    random_string,
    random_text,
    select_bound_index,
    valid_prefix,
)


class TestSelectBoundIndex:
    """Tests for select_bound_index."""

    @pytest.mark.parametrize(
        "needle, expected",
        [(0, 0), (7, 0), (8, 1), (10, 1), (11, 2), (16, 2), (17, 3), (20, 3)],
    )
    def test_needle_maps_to_bound(self, int_hist, scripted_rng, needle, expected):
        """Draws below count - repeat land in the range, the rest on the upper bound."""
        assert select_bound_index(int_hist, scripted_rng([needle])) == expected

    def test_draw_covers_zero_to_total(self, int_hist, scripted_rng):
        """The draw is inclusive of the total count."""
        stub = scripted_rng([3])
        select_bound_index(int_hist, stub)
        assert stub.calls == [(0, 20)]

    def test_uncovered_draw_falls_back_to_zero(self, int_hist, scripted_rng, caplog):
        """An out-of-range draw returns index 0 and logs a warning."""
        with caplog.at_level(logging.WARNING, logger="sdg.sampler.values"):
            assert select_bound_index(int_hist, scripted_rng([21])) == 0
        assert "no bucket covers draw 21" in caplog.text

    def test_upper_bound_frequency(self, int_hist, rng):
        """Exact upper-bound outcomes track the repeat share of each bucket."""
        n = 42_000
        hits = [0, 0, 0, 0]
        for _ in range(n):
            hits[select_bound_index(int_hist, rng)] += 1
        # 21 equally likely draws: 0-7, 8-10, 11-16, 17-20
        assert hits[1] / n == pytest.approx(3 / 21, abs=0.01)
        assert hits[3] / n == pytest.approx(4 / 21, abs=0.01)
        assert all(h > 0 for h in hits)

    def test_single_bucket_all_repeats(self, scripted_rng):
        """A bucket made only of its repeated value always returns the upper bound."""
        hist = Histogram(
            buckets=(Bucket(count=5, repeat=5),),
            bounds=(7, 7),
            kind=ValueKind.INTEGER,
        )
        assert select_bound_index(hist, scripted_rng([0])) == 1
        assert select_bound_index(hist, scripted_rng([5])) == 1


class TestRandomInt:
    """Tests for random_int."""

    def test_range_containment(self, int_hist, rng):
        """Every draw lies between the lowest and highest bound."""
        values = [random_int(int_hist, rng) for _ in range(5000)]
        assert min(values) >= -50
        assert max(values) <= 200
        assert any(-50 <= v <= 5 for v in values)
        assert any(100 <= v <= 200 for v in values)

    def test_upper_bound_returned_exactly(self, int_hist, scripted_rng):
        """Odd indexes return the bucket's upper bound."""
        assert random_int(int_hist, scripted_rng([9])) == 5
        assert random_int(int_hist, scripted_rng([18])) == 200

    def test_gap_between_buckets_never_sampled(self, int_hist, rng):
        """Values between one bucket's upper and the next bucket's lower are not produced."""
        values = {random_int(int_hist, rng) for _ in range(5000)}
        assert not any(5 < v < 100 for v in values)

    def test_index_bounds_are_decoded(self, rng):
        """Index histograms decode their byte bounds before sampling."""
        hist = Histogram(
            buckets=(Bucket(count=4, repeat=1),),
            bounds=(encode_int(-3, flag=True), encode_int(3, flag=True)),
            kind=ValueKind.INTEGER,
            is_index=True,
        )
        values = {random_int(hist, rng) for _ in range(500)}
        assert values <= set(range(-3, 4))
        assert 3 in values

    def test_composite_index_keys_stay_in_range(self, rng):
        """Multi-column index keys sample from their leading integer only."""
        hist = Histogram(
            buckets=(Bucket(count=6, repeat=2),),
            bounds=(
                encode_int(5, flag=True) + encode_int(700, flag=True),
                encode_int(9, flag=True) + encode_int(-3, flag=True),
            ),
            kind=ValueKind.INTEGER,
            is_index=True,
        )
        values = {random_int(hist, rng) for _ in range(500)}
        assert values <= set(range(5, 10))
        assert 9 in values

    def test_custom_decoder_is_used(self, scripted_rng):
        """The injected decoder replaces the default codec."""
        hist = Histogram(
            buckets=(Bucket(count=1, repeat=1),),
            bounds=(b"x", b"yy"),
            kind=ValueKind.INTEGER,
            is_index=True,
            decoder=len,
        )
        assert random_int(hist, scripted_rng([1])) == 2

    def test_undecodable_bound_raises(self, scripted_rng):
        """A truncated index key surfaces as malformed statistics."""
        hist = Histogram(
            buckets=(Bucket(count=2, repeat=1),),
            bounds=(b"\x01", b"\x02"),
            kind=ValueKind.INTEGER,
            is_index=True,
            name="idx_a",
        )
        with pytest.raises(MalformedStatisticsError) as excinfo:
            random_int(hist, scripted_rng([0]))
        assert excinfo.value.column == "idx_a"

    def test_non_integer_bound_raises(self, scripted_rng):
        hist = Histogram(
            buckets=(Bucket(count=2, repeat=1),),
            bounds=("one", "two"),
            kind=ValueKind.INTEGER,
        )
        with pytest.raises(MalformedStatisticsError):
            random_int(hist, scripted_rng([2]))

    def test_random_int_between_empty_range(self):
        """An empty or inverted range returns the lower end."""
        assert random_int_between(4, 4) == 4
        assert random_int_between(9, 2) == 9


class TestValidPrefix:
    """Tests for valid_prefix."""

    def test_identity(self):
        """Equal bounds come back unchanged."""
        assert valid_prefix("hello", "hello") == "hello"

    def test_lower_is_prefix_of_upper(self):
        assert valid_prefix("ab", "abcd") == "ab"

    def test_empty_lower(self):
        assert valid_prefix("", "zzz") == ""

    def test_picks_char_below_upper(self, rng):
        """The differing character is drawn from [lower[i], upper[i])."""
        seen = {valid_prefix("mac", "mz", rng) for _ in range(2000)}
        assert seen == {"m" + chr(c) for c in range(ord("a"), ord("z"))}

    def test_adjacent_chars_keep_lower(self, rng):
        """With upper[i] == lower[i] + 1 the only choice is lower[i]."""
        assert valid_prefix("abx", "acb", rng) == "ab"

    def test_ordering_property(self, rng):
        """The prefix sorts before upper and keeps lower's common head."""
        gen = random.Random(7)
        for _ in range(2000):
            a = "".join(gen.choice("abcd") for _ in range(gen.randint(0, 5)))
            b = "".join(gen.choice("abcd") for _ in range(gen.randint(0, 5)))
            lower, upper = sorted((a, b))
            p = valid_prefix(lower, upper, rng)
            if upper.startswith(lower):
                assert p == lower
                continue
            i = next(k for k, (x, y) in enumerate(zip(lower, upper)) if x != y)
            assert p < upper
            assert p[:i] == lower[:i]
            assert len(p) == i + 1
            assert lower[i] <= p[i] < upper[i]

    def test_lower_longer_than_upper_raises(self):
        with pytest.raises(MalformedStatisticsError):
            valid_prefix("abcd", "abc")

    def test_lower_greater_than_upper_raises(self):
        """A decreasing character at the first difference is rejected."""
        with pytest.raises(MalformedStatisticsError):
            valid_prefix("b", "a")


class TestRandomString:
    """Tests for random_string."""

    def test_two_bucket_scenario(self, text_hist, rng):
        """Repeat shares and range prefixes match the bucket layout."""
        n = 10_000
        values = [random_string(text_hist, rng) for _ in range(n)]

        assert values.count("aad") / n == pytest.approx(3 / 21, abs=0.02)
        assert values.count("aaz") / n == pytest.approx(4 / 21, abs=0.02)

        allowed = set("abc") | {chr(c) for c in range(ord("e"), ord("z"))}
        for value in values:
            if value in ("aad", "aaz"):
                continue
            assert len(value) == 3
            assert value.startswith("aa")
            assert value[2] in allowed

    def test_range_values_padded_to_average_length(self, rng):
        """Range draws are padded with alphabet characters up to the average length."""
        hist = Histogram(
            buckets=(Bucket(count=6, repeat=1), Bucket(count=12, repeat=1)),
            bounds=("apple", "banana", "cherry", "date"),
            kind=ValueKind.TEXT,
        )
        assert hist.avg_text_len == 5
        values = [random_string(hist, rng) for _ in range(2000)]
        for value in values:
            if value in ("banana", "date"):
                continue
            assert len(value) == 5
            assert set(value[1:]) <= set(ALPHABET)
            assert value[0] in "abcd"

    def test_max_text_len_caps_padding(self, rng):
        hist = Histogram(
            buckets=(Bucket(count=10, repeat=0),),
            bounds=("a" * 40, "b" * 40),
            kind=ValueKind.TEXT,
            max_text_len=8,
        )
        lengths = {len(v) for v in (random_string(hist, rng) for _ in range(200)) if v != "b" * 40}
        assert lengths == {8}

    def test_upper_bound_returned_verbatim(self, text_hist, scripted_rng):
        assert random_string(text_hist, scripted_rng([9])) == "aad"

    def test_byte_bounds_are_decoded(self, scripted_rng):
        hist = Histogram(
            buckets=(Bucket(count=3, repeat=3),),
            bounds=(b"k", "ké".encode("utf-8")),
            kind=ValueKind.TEXT,
        )
        assert random_string(hist, scripted_rng([0])) == "ké"

    def test_inverted_bounds_raise(self, scripted_rng):
        """Bounds that are not ordered surface as malformed statistics."""
        hist = Histogram(
            buckets=(Bucket(count=4, repeat=0),),
            bounds=("zeta", "alpha"),
            kind=ValueKind.TEXT,
            name="city",
        )
        with pytest.raises(MalformedStatisticsError) as excinfo:
            random_string(hist, scripted_rng([1]))
        assert excinfo.value.column == "city"
        assert "city" in str(excinfo.value)


def test_random_text_uses_alphabet(rng):
    text = random_text(50, rng)
    assert len(text) == 50
    assert set(text) <= set(string.ascii_letters + string.digits)
    assert random_text(0, rng) == ""
