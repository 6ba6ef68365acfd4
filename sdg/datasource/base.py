"""Abstract data source definitions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable

import numpy as np
import pandas as pd
from pandas.api import types as ptypes


class DataSource(ABC):
    """Common interface for streaming tabular data in batches."""

    @abstractmethod
    def schema(self) -> Dict[str, str]:
        """Return a column name to dtype name mapping."""

    @abstractmethod
    def scan_batches(self) -> Iterable[pd.DataFrame]:
        """Yield successive ``DataFrame`` batches for profiling."""


def restore_integer_columns(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Turn float columns that only hold whole numbers back into integers.

    Readers promote integer columns with missing values to ``float64``; the
    nullable ``Int64`` dtype keeps them profiled as integers.
    """

    for col in frame.columns:
        series = frame[col]
        if not ptypes.is_float_dtype(series):
            continue
        values = series.dropna().to_numpy()
        if len(values) == 0 or not np.all(np.isfinite(values)):
            continue
        if np.all(np.equal(np.mod(values, 1), 0)):
            frame[col] = series.astype("Int64")
    return frame
