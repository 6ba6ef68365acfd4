"""Histogram model, integer codec and statistics loaders."""

from .codec import decode_int, encode_int
from .model import Bucket, Histogram, ValueKind, average_text_length
from .store import (
    HistogramSource,
    JSONStatsSource,
    YAMLStatsSource,
    load_yaml,
    save_yaml,
)

__all__ = [
    "Bucket",
    "Histogram",
    "HistogramSource",
    "JSONStatsSource",
    "ValueKind",
    "YAMLStatsSource",
    "average_text_length",
    "decode_int",
    "encode_int",
    "load_yaml",
    "save_yaml",
]
