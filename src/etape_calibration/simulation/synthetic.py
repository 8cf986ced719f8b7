"""
Synthetic calibration data with known ground truth.

For every nominal length the true calibration line is
``depth_cm = intercept + slope * resistance``. The generator inverts it to
get the expected resistance at each depth and adds Normal noise, so a model
fitted to the output should recover intercept and slope. Draws come from a
single seeded numpy Generator in a fixed enumeration order (length, then
depth, then replicate), so identical arguments give bit-identical output.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from etape_calibration.constants import (
    DEFAULT_REPLICATES_PER_DEPTH,
    DEFAULT_SEED,
    DEFAULT_SYNTHETIC_DEPTHS_INCH,
    INCH_TO_CM,
    SUPPORTED_LENGTHS,
    TRUE_INTERCEPTS,
    TRUE_NOISE_SDS,
    TRUE_SLOPES,
)
from etape_calibration.errors import ConfigurationError

logger = logging.getLogger(__name__)

SIMULATED_COLUMNS = [
    "etape_length",
    "water_depth_inch",
    "water_depth_cm",
    "replicate",
    "resistivity_ohm",
]


@dataclass(frozen=True)
class LengthParameters:
    """True calibration line and resistance noise for one nominal length."""

    intercept: float
    slope: float
    noise_sd: float

    def expected_resistance(self, depth_cm: float) -> float:
        """Resistance (ohm) at which the true line reaches depth_cm."""
        if self.slope == 0:
            raise ConfigurationError(
                "slope is zero; expected resistance is undefined"
            )
        return (depth_cm - self.intercept) / self.slope


@dataclass(frozen=True)
class SyntheticGroundTruth:
    """Read-only mapping from nominal length to LengthParameters."""

    parameters: Mapping[int, LengthParameters]

    def __post_init__(self) -> None:
        frozen = {int(k): v for k, v in self.parameters.items()}
        object.__setattr__(self, "parameters", MappingProxyType(frozen))

    @classmethod
    def from_mappings(
        cls,
        intercepts: Mapping[int, float],
        slopes: Mapping[int, float],
        noise_sds: Mapping[int, float],
    ) -> "SyntheticGroundTruth":
        """Combine per-length intercept, slope, and noise dicts."""
        keys = set(intercepts)
        if keys != set(slopes) or keys != set(noise_sds):
            raise ConfigurationError(
                "intercepts, slopes and noise_sds must cover the same lengths: "
                f"{sorted(intercepts)}, {sorted(slopes)}, {sorted(noise_sds)}"
            )
        return cls(
            {
                k: LengthParameters(
                    intercept=float(intercepts[k]),
                    slope=float(slopes[k]),
                    noise_sd=float(noise_sds[k]),
                )
                for k in keys
            }
        )

    @classmethod
    def default(cls) -> "SyntheticGroundTruth":
        return cls.from_mappings(TRUE_INTERCEPTS, TRUE_SLOPES, TRUE_NOISE_SDS)

    def lengths(self, supported_lengths: Sequence[int] = SUPPORTED_LENGTHS) -> list[int]:
        """Lengths in this ground truth, in canonical order."""
        return [v for v in supported_lengths if v in self.parameters]

    def validate(self, supported_lengths: Sequence[int] = SUPPORTED_LENGTHS) -> None:
        """Raise ConfigurationError for unsupported lengths or degenerate values."""
        unknown = sorted(set(self.parameters) - set(supported_lengths))
        if unknown:
            raise ConfigurationError(
                f"Ground truth has unsupported length(s) {unknown}; "
                f"supported lengths are {list(supported_lengths)}"
            )
        for length, p in self.parameters.items():
            if p.slope == 0:
                raise ConfigurationError(
                    f"Ground-truth slope for length {length} is zero; "
                    "expected resistance is undefined"
                )
            if not np.isfinite([p.intercept, p.slope, p.noise_sd]).all():
                raise ConfigurationError(
                    f"Ground-truth parameters for length {length} must be finite"
                )
            if p.noise_sd < 0:
                raise ConfigurationError(
                    f"Ground-truth noise_sd for length {length} is negative"
                )


def generate(
    ground_truth: Optional[SyntheticGroundTruth] = None,
    depths_inch: Sequence[int] = DEFAULT_SYNTHETIC_DEPTHS_INCH,
    replicates_per_depth: int = DEFAULT_REPLICATES_PER_DEPTH,
    seed: int = DEFAULT_SEED,
    *,
    supported_lengths: Sequence[int] = SUPPORTED_LENGTHS,
) -> pd.DataFrame:
    """
    Generate noisy resistance readings from known calibration lines.

    For each (length, depth, replicate), expected resistance is
    ``(depth_cm - intercept) / slope`` and one observation is drawn from
    Normal(expected, noise_sd).

    Args:
        ground_truth: True parameters per length. Defaults to the built-in
            table (SyntheticGroundTruth.default()).
        depths_inch: Depths to simulate, in order.
        replicates_per_depth: Readings per (length, depth).
        seed: Seed for numpy.random.default_rng.
        supported_lengths: Canonical ordering of nominal lengths.

    Returns:
        DataFrame with etape_length (ordered Categorical), water_depth_inch,
        water_depth_cm, replicate (1-based), resistivity_ohm.

    Raises:
        ConfigurationError: Zero slope, negative noise, unsupported length,
            or negative replicate count.
    """
    if ground_truth is None:
        ground_truth = SyntheticGroundTruth.default()
    ground_truth.validate(supported_lengths)
    if replicates_per_depth < 0:
        raise ConfigurationError(
            f"replicates_per_depth must be >= 0, got {replicates_per_depth}"
        )

    lengths, depths, replicates, expected, noise = [], [], [], [], []
    for length in ground_truth.lengths(supported_lengths):
        params = ground_truth.parameters[length]
        for depth in depths_inch:
            mu = params.expected_resistance(depth * INCH_TO_CM)
            for rep in range(1, replicates_per_depth + 1):
                lengths.append(length)
                depths.append(float(depth))
                replicates.append(rep)
                expected.append(mu)
                noise.append(params.noise_sd)

    rng = np.random.default_rng(seed)
    draws = rng.normal(
        loc=np.asarray(expected, dtype=float),
        scale=np.asarray(noise, dtype=float),
    )

    depth_inch = np.asarray(depths, dtype=float)
    out = pd.DataFrame(
        {
            "etape_length": pd.Categorical(
                lengths,
                categories=[int(v) for v in supported_lengths],
                ordered=True,
            ),
            "water_depth_inch": depth_inch,
            "water_depth_cm": depth_inch * INCH_TO_CM,
            "replicate": np.asarray(replicates, dtype=np.int64),
            "resistivity_ohm": draws,
        },
        columns=SIMULATED_COLUMNS,
    )
    logger.info(
        "generate: %d simulated rows (%d lengths x %d depths x %d replicates, seed=%d)",
        len(out),
        len(ground_truth.parameters),
        len(depths_inch),
        replicates_per_depth,
        seed,
    )
    return out
