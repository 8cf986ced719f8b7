"""
eTape calibration data preparation: quality filter, unit derivation, type
normalization, summaries, and DatasetBundle construction.
"""

from .bundle import DatasetBundle, to_dataset_bundle
from .filters import filter_quality
from .metadata import (
    check_supported_lengths,
    derive_units,
    normalize_types,
)
from .summary import summarize

__all__ = [
    "DatasetBundle",
    "check_supported_lengths",
    "derive_units",
    "filter_quality",
    "normalize_types",
    "summarize",
    "to_dataset_bundle",
]
