"""
Synthetic validation data with embedded ground truth.

Simulated frames share the real-data schema, so
etape_calibration.processing.to_dataset_bundle encodes them the same way.
"""

from .synthetic import (
    LengthParameters,
    SIMULATED_COLUMNS,
    SyntheticGroundTruth,
    generate,
)

__all__ = [
    "LengthParameters",
    "SIMULATED_COLUMNS",
    "SyntheticGroundTruth",
    "generate",
]
