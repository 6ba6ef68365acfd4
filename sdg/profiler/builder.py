"""Equi-depth histogram construction from tabular data."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import pandas as pd
from pandas.api import types as ptypes

from sdg.histogram.codec import encode_int
from sdg.histogram.model import DEFAULT_MAX_TEXT_LEN, Bucket, Histogram, ValueKind

logger = logging.getLogger(__name__)


def build_histogram(
    values: Iterable[object],
    kind: ValueKind,
    num_buckets: int = 256,
    max_text_len: int = DEFAULT_MAX_TEXT_LEN,
    name: Optional[str] = None,
    is_index: bool = False,
) -> Optional[Histogram]:
    """
    Build an equi-depth histogram with per-bucket repeat counts.

    Values are sorted and poured into buckets of roughly ``total / num_buckets``
    rows. A distinct value never straddles two buckets, so a bucket's upper
    bound carries its full frequency as the bucket's repeat count. Returns
    ``None`` when there is nothing to summarise.
    """

    if num_buckets < 1:
        raise ValueError("num_buckets must be at least 1")
    if is_index and kind is not ValueKind.INTEGER:
        raise ValueError("only integer index histograms are supported")

    series = pd.Series(list(values), dtype=object).dropna()
    if series.empty:
        return None
    if kind is ValueKind.INTEGER:
        series = series.astype("int64")
    else:
        series = series.astype(str)

    freqs = series.value_counts(sort=False).sort_index()
    total = int(freqs.sum())
    depth = max(1, math.ceil(total / num_buckets))

    buckets: List[Bucket] = []
    bounds: List[object] = []
    cumulative = 0
    in_bucket = 0
    lower: object = None
    for value, freq in freqs.items():
        if lower is None:
            lower = value
        cumulative += int(freq)
        in_bucket += int(freq)
        if in_bucket >= depth:
            buckets.append(Bucket(count=cumulative, repeat=int(freq)))
            bounds.extend([lower, value])
            lower = None
            in_bucket = 0
    if lower is not None:
        buckets.append(Bucket(count=cumulative, repeat=int(freq)))
        bounds.extend([lower, value])

    if kind is ValueKind.INTEGER:
        bounds = [int(b) for b in bounds]
        if is_index:
            bounds = [encode_int(b, flag=True) for b in bounds]

    return Histogram(
        buckets=tuple(buckets),
        bounds=tuple(bounds),
        kind=kind,
        is_index=is_index,
        max_text_len=max_text_len,
        name=name,
    )


def infer_kind(series: pd.Series) -> Optional[ValueKind]:
    """Map pandas dtypes onto the value kinds the samplers support."""

    if ptypes.is_bool_dtype(series):
        return None
    if ptypes.is_integer_dtype(series):
        return ValueKind.INTEGER
    if ptypes.is_object_dtype(series) or ptypes.is_string_dtype(series):
        return ValueKind.TEXT
    return None


@dataclass
class _ColumnState:
    """Incremental accumulator for one column."""

    kind: Optional[ValueKind] = None
    inferred: bool = False
    count: int = 0
    nulls: int = 0
    samples: List[object] = field(default_factory=list)


class Profiler:
    """Accumulate ``DataFrame`` batches and summarise columns as histograms."""

    def __init__(
        self,
        num_buckets: int = 256,
        sample_cap: int = 1_000_000,
        max_text_len: int = DEFAULT_MAX_TEXT_LEN,
        columns: Optional[Iterable[str]] = None,
    ) -> None:
        self.num_buckets = num_buckets
        self.sample_cap = sample_cap
        self.max_text_len = max_text_len
        self._only = set(columns) if columns is not None else None
        self._columns: Dict[str, _ColumnState] = {}

    def update(self, frame: pd.DataFrame) -> None:
        """Ingest a batch and update per-column state."""

        if frame.empty:
            return
        for column_name in frame.columns:
            if self._only is not None and column_name not in self._only:
                continue
            series = frame[column_name]
            state = self._columns.setdefault(column_name, _ColumnState())
            if not state.inferred:
                state.kind = infer_kind(series)
                state.inferred = True
                if state.kind is None:
                    logger.info("column %s has unsupported dtype %s; skipped", column_name, series.dtype)
            non_null = series.dropna()
            state.count += len(series)
            state.nulls += len(series) - len(non_null)
            if state.kind is None:
                continue
            room = self.sample_cap - len(state.samples)
            if room > 0:
                state.samples.extend(non_null.iloc[:room].tolist())

    def finalize(self) -> Dict[str, Histogram]:
        """Build one histogram per supported, non-empty column."""

        histograms: Dict[str, Histogram] = {}
        for name, state in self._columns.items():
            if state.kind is None:
                continue
            hist = build_histogram(
                state.samples,
                state.kind,
                num_buckets=self.num_buckets,
                max_text_len=self.max_text_len,
                name=name,
            )
            if hist is None:
                logger.info("column %s has no non-null values; skipped", name)
                continue
            histograms[name] = hist
        return histograms

    def summary(self) -> Dict[str, Dict[str, object]]:
        """Row and null counts per profiled column."""

        return {
            name: {
                "count": state.count,
                "nulls": state.nulls,
                "kind": None if state.kind is None else state.kind.value,
            }
            for name, state in self._columns.items()
        }
