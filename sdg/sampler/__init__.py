"""Histogram-driven value sampling."""

from .rows import generate_rows, sample_column
from .values import (
    random_int,
    random_string,
    select_bound_index,
    valid_prefix,
)

__all__ = [
    "generate_rows",
    "random_int",
    "random_string",
    "sample_column",
    "select_bound_index",
    "valid_prefix",
]
