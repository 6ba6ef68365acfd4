"""Assemble synthetic rows from per-column histograms."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping

import pandas as pd

from sdg.errors import MalformedStatisticsError
from sdg.histogram.model import Histogram, ValueKind

from .values import random_int, random_string

logger = logging.getLogger(__name__)


def sample_column(hist: Histogram, n: int, rng=None) -> List[object]:
    """Draw ``n`` independent values from ``hist``."""

    if n < 0:
        raise ValueError("n must be non-negative")
    draw = random_int if hist.kind is ValueKind.INTEGER else random_string
    return [draw(hist, rng) for _ in range(n)]


def generate_rows(
    histograms: Mapping[str, Histogram],
    rows: int,
    rng=None,
    skip_malformed: bool = False,
) -> pd.DataFrame:
    """
    Generate ``rows`` synthetic rows, one column per histogram.

    Columns are sampled independently. With ``skip_malformed`` a column whose
    statistics turn out to be inconsistent is dropped from the output instead
    of aborting the whole run.
    """

    data: Dict[str, List[object]] = {}
    for name, hist in histograms.items():
        try:
            data[name] = sample_column(hist, rows, rng)
        except MalformedStatisticsError as exc:
            if not skip_malformed:
                raise
            logger.warning("skipping column %s: %s", name, exc)
            continue
        logger.debug("sampled %d values for column %s", rows, name)

    frame = pd.DataFrame(data, columns=list(data))
    for name in frame.columns:
        if histograms[name].kind is ValueKind.INTEGER:
            frame[name] = frame[name].astype("int64")
    return frame
