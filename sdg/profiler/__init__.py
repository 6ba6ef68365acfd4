"""Histogram profiling over tabular batches."""

from .builder import Profiler, build_histogram, infer_kind

__all__ = ["Profiler", "build_histogram", "infer_kind"]
