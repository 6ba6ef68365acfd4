"""In-memory histogram model consumed by the value samplers."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Callable, Iterable, Optional, Sequence, Tuple

from sdg.errors import MalformedStatisticsError

from .codec import decode_int

DEFAULT_MAX_TEXT_LEN = 64


class ValueKind(str, Enum):
    """Value domains the samplers know how to synthesise."""

    INTEGER = "int"
    TEXT = "text"


@dataclass(frozen=True)
class Bucket:
    """One histogram bucket.

    ``count`` is cumulative over this bucket and every preceding one; ``repeat``
    is how often the bucket's upper bound occurs inside the bucket.
    """

    count: int
    repeat: int


@dataclass(frozen=True)
class Histogram:
    """
    Immutable equi-depth histogram of a single column or index.

    ``bounds`` is flat: ``bounds[2 * i]`` and ``bounds[2 * i + 1]`` are the lower
    and upper bounds of bucket ``i``. Index histograms keep their integer bounds
    encoded as bytes and decode them through ``decoder`` on access.
    """

    buckets: Tuple[Bucket, ...]
    bounds: Tuple[object, ...]
    kind: ValueKind
    is_index: bool = False
    max_text_len: int = DEFAULT_MAX_TEXT_LEN
    decoder: Callable[[bytes], int] = field(default=decode_int, compare=False, repr=False)
    name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "buckets", tuple(self.buckets))
        object.__setattr__(self, "bounds", tuple(self.bounds))
        object.__setattr__(self, "kind", ValueKind(self.kind))
        if not self.buckets:
            raise MalformedStatisticsError("histogram has no buckets", self.name)
        if len(self.bounds) != 2 * len(self.buckets):
            raise MalformedStatisticsError(
                f"expected {2 * len(self.buckets)} bounds for {len(self.buckets)} "
                f"buckets, got {len(self.bounds)}",
                self.name,
            )
        previous = 0
        for i, bucket in enumerate(self.buckets):
            if bucket.count < previous:
                raise MalformedStatisticsError(
                    f"bucket {i} count {bucket.count} is below preceding count {previous}",
                    self.name,
                )
            if not 0 <= bucket.repeat <= bucket.count - previous:
                raise MalformedStatisticsError(
                    f"bucket {i} repeat {bucket.repeat} exceeds its {bucket.count - previous} rows",
                    self.name,
                )
            previous = bucket.count
        if self.total_count <= 0:
            raise MalformedStatisticsError("histogram total count must be positive", self.name)
        if self.max_text_len < 1:
            raise ValueError("max_text_len must be at least 1")

    @property
    def total_count(self) -> int:
        return self.buckets[-1].count

    def lower(self, bucket: int) -> object:
        return self.bounds[2 * bucket]

    def upper(self, bucket: int) -> object:
        return self.bounds[2 * bucket + 1]

    def bound(self, idx: int) -> object:
        return self.bounds[idx]

    def int_bound(self, idx: int) -> int:
        """Return bound ``idx`` as an integer, decoding index keys first."""

        value = self.bounds[idx]
        if self.is_index:
            try:
                return self.decoder(value)
            except (MalformedStatisticsError, ValueError, TypeError, struct.error) as exc:
                raise MalformedStatisticsError(f"cannot decode bound {value!r}: {exc}", self.name) from exc
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise MalformedStatisticsError(f"bound {value!r} is not an integer", self.name) from exc

    def text_bound(self, idx: int) -> str:
        value = self.bounds[idx]
        if isinstance(value, (bytes, bytearray)):
            try:
                return bytes(value).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MalformedStatisticsError(f"bound {bytes(value)!r} is not valid UTF-8", self.name) from exc
        return str(value)

    @cached_property
    def avg_text_len(self) -> int:
        """Target length for synthesised strings, computed once per histogram."""

        return average_text_length(
            (self.text_bound(i) for i in range(len(self.bounds))),
            self.max_text_len,
        )


def average_text_length(bounds: Iterable[str], max_len: int) -> int:
    """Mean length of ``bounds`` clamped to ``[1, max_len]``."""

    lengths = [len(value) for value in bounds]
    if not lengths:
        return 1
    avg = sum(lengths) // len(lengths)
    if avg > max_len:
        avg = max_len
    if avg < 1:
        avg = 1
    return avg


def make_buckets(pairs: Sequence[Sequence[int]]) -> Tuple[Bucket, ...]:
    """Build buckets from ``(count, repeat)`` pairs."""

    return tuple(Bucket(count=int(count), repeat=int(repeat)) for count, repeat in pairs)
