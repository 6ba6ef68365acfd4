"""Data sources that feed the profiler."""

from .base import DataSource
from .csv import CSVDataSource
from .parquet import ParquetDataSource

__all__ = [
    "DataSource",
    "CSVDataSource",
    "ParquetDataSource",
]
