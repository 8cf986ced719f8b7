"""
Utility functions for eTape calibration.

General-purpose helpers shared across the pipeline.
"""

from .natural_sort import (
    natural_sort,
    natural_sort_key,
    ordered_levels,
)

__all__ = [
    "natural_sort",
    "natural_sort_key",
    "ordered_levels",
]
