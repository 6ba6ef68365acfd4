"""
Statistics-driven synthetic data generator (sdg) package.

This package turns compact column statistics (equi-depth histograms with
per-bucket repeat counts) into synthetic values that roughly follow the
original column distribution, without access to the original rows.
"""

__all__ = [
    "datasource",
    "histogram",
    "profiler",
    "sampler",
    "emit",
    "cli",
]
