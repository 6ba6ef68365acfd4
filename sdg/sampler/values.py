"""Random value synthesis from histogram buckets."""

from __future__ import annotations

import logging
import random
import string

from sdg.errors import MalformedStatisticsError
from sdg.histogram.model import Histogram

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


def select_bound_index(hist: Histogram, rng=None) -> int:
    """
    Pick a bound index weighted by bucket counts.

    An even index ``2 * i`` means "somewhere inside bucket ``i``", an odd index
    ``2 * i + 1`` means "exactly the upper bound of bucket ``i``", which is the
    bucket's repeated value.
    """

    rng = rng or random
    needle = rng.randint(0, hist.total_count)
    for i, bucket in enumerate(hist.buckets):
        if bucket.count >= needle:
            if bucket.count - bucket.repeat > needle:
                return 2 * i
            return 2 * i + 1
    logger.warning(
        "no bucket covers draw %d of %d in histogram %s; cumulative counts are inconsistent",
        needle,
        hist.total_count,
        hist.name,
    )
    return 0


def random_int_between(lower: int, upper: int, rng=None) -> int:
    """Uniform integer in ``[lower, upper]``; ``lower`` when the range is empty."""

    if lower >= upper:
        return lower
    return (rng or random).randint(lower, upper)


def random_int(hist: Histogram, rng=None) -> int:
    """Draw one integer that follows the histogram's bucket statistics."""

    idx = select_bound_index(hist, rng)
    if idx % 2 == 0:
        lower = hist.int_bound(idx)
        upper = hist.int_bound(idx + 1)
        return random_int_between(lower, upper, rng)
    return hist.int_bound(idx)


def random_text(length: int, rng=None) -> str:
    rng = rng or random
    return "".join(rng.choice(ALPHABET) for _ in range(length))


def valid_prefix(lower: str, upper: str, rng=None) -> str:
    """
    Build a prefix that sorts in ``[lower, upper)``.

    The common head of both strings is kept and the first differing character
    is replaced by a random one from ``[lower[i], upper[i])``.
    """

    for i, ch in enumerate(lower):
        if i >= len(upper):
            raise MalformedStatisticsError(f"lower {lower!r} is larger than upper {upper!r}")
        if ch != upper[i]:
            span = ord(upper[i]) - ord(ch)
            if span < 0:
                raise MalformedStatisticsError(f"lower {lower!r} is larger than upper {upper!r}")
            picked = chr(ord(ch) + (rng or random).randrange(span))
            return lower[:i] + picked
    return lower


def random_string(hist: Histogram, rng=None) -> str:
    """Draw one string that follows the histogram's bucket statistics."""

    idx = select_bound_index(hist, rng)
    if idx % 2 == 0:
        lower = hist.text_bound(idx)
        upper = hist.text_bound(idx + 1)
        try:
            prefix = valid_prefix(lower, upper, rng)
        except MalformedStatisticsError as exc:
            raise MalformedStatisticsError(str(exc), hist.name) from exc
        rest = hist.avg_text_len - len(prefix)
        if rest > 0:
            prefix = prefix + random_text(rest, rng)
        return prefix
    return hist.text_bound(idx)
