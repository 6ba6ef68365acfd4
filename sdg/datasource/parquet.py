"""Parquet-backed data source."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional

import pandas as pd
import pyarrow as pa
import pyarrow.dataset as ds

from .base import DataSource, restore_integer_columns


class ParquetDataSource(DataSource):
    """Stream record batches from a Parquet file or directory."""

    def __init__(
        self,
        path: str | Path,
        columns: Optional[Iterable[str]] = None,
        sample_rows: Optional[int] = None,
        batch_size: int = 262_144,
    ) -> None:
        self._dataset = ds.dataset(str(path), format="parquet")
        self._columns = list(columns) if columns is not None else None
        self._sample_rows = sample_rows
        self._batch_size = batch_size

    def schema(self) -> Dict[str, str]:
        """Arrow schema mapped to pandas-style type names."""

        out: Dict[str, str] = {}
        for f in self._dataset.schema:
            if self._columns is not None and f.name not in self._columns:
                continue
            if pa.types.is_integer(f.type):
                out[f.name] = "int64"
            elif pa.types.is_string(f.type) or pa.types.is_large_string(f.type):
                out[f.name] = "string"
            else:
                out[f.name] = str(f.type)
        return out

    def scan_batches(self) -> Iterable[pd.DataFrame]:
        """Yield ``DataFrame`` batches converted from Arrow record batches."""

        yielded = 0
        for batch in self._dataset.to_batches(columns=self._columns, batch_size=self._batch_size):
            if batch.num_rows == 0:
                continue
            if self._sample_rows is not None:
                remaining = self._sample_rows - yielded
                if remaining <= 0:
                    break
                if batch.num_rows > remaining:
                    batch = batch.slice(0, remaining)
            frame = restore_integer_columns(batch.to_pandas())
            yielded += len(frame)
            yield frame
