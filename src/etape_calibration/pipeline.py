"""
End-to-end preparation and validation runs.

prepare_* chain the pure processing steps for each input source;
run_synthetic_validation generates data with known parameters, fits it, and
reports whether the truth was recovered.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd

from etape_calibration.assessment.posterior import check_recovery
from etape_calibration.constants import (
    DEFAULT_PRIOR_MEANS,
    DEFAULT_REPLICATES_PER_DEPTH,
    DEFAULT_SEED,
    DEFAULT_SINGLE_SENSOR_LENGTH,
    DEFAULT_SYNTHETIC_DEPTHS_INCH,
    SUPPORTED_LENGTHS,
)
from etape_calibration.data.io import load_calibration_data, load_single_sensor_data
from etape_calibration.modeling.spec import SIMULATED_MODEL, ModelSpec
from etape_calibration.processing import (
    DatasetBundle,
    derive_units,
    filter_quality,
    normalize_types,
    to_dataset_bundle,
)
from etape_calibration.simulation.synthetic import SyntheticGroundTruth, generate

logger = logging.getLogger(__name__)


def prepare_calibration_data(
    path: Union[str, Path],
    *,
    supported_lengths: Sequence[int] = SUPPORTED_LENGTHS,
) -> pd.DataFrame:
    """Load -> filter_quality -> derive_units -> normalize_types."""
    df = load_calibration_data(path)
    df = filter_quality(df)
    df = derive_units(df)
    df = normalize_types(df, supported_lengths=supported_lengths)
    logger.info(
        "Prepared %d calibration rows across lengths %s",
        len(df),
        sorted(int(v) for v in df["etape_length"].dropna().unique()),
    )
    return df


def prepare_single_sensor_data(
    path: Union[str, Path],
    *,
    etape_length: int = DEFAULT_SINGLE_SENSOR_LENGTH,
    supported_lengths: Sequence[int] = SUPPORTED_LENGTHS,
) -> pd.DataFrame:
    """Load the sub-study file, attach its length, derive units, normalize."""
    df = load_single_sensor_data(path, etape_length=etape_length)
    df = derive_units(df)
    return normalize_types(df, supported_lengths=supported_lengths)


def single_sensor_group(bundle: DatasetBundle, etape_length: int) -> Optional[int]:
    """
    Column of the pooled draws that matches the single-sensor length.

    Returns:
        Position of etape_length in bundle.length_levels, or None when the
        pooled data has no sensors of that length (the comparison is then
        impossible and the single-sensor fit can be skipped).
    """
    try:
        return bundle.length_levels.index(int(etape_length))
    except ValueError:
        logger.warning(
            "Pooled data has no etape_length %d (lengths present: %s)",
            etape_length,
            list(bundle.length_levels),
        )
        return None


def run_synthetic_validation(
    ground_truth: Optional[SyntheticGroundTruth] = None,
    *,
    depths_inch: Sequence[int] = DEFAULT_SYNTHETIC_DEPTHS_INCH,
    replicates_per_depth: int = DEFAULT_REPLICATES_PER_DEPTH,
    seed: int = DEFAULT_SEED,
    spec: ModelSpec = SIMULATED_MODEL,
    supported_lengths: Sequence[int] = SUPPORTED_LENGTHS,
    prior_means: Sequence[float] = DEFAULT_PRIOR_MEANS,
    n_sd: float = 2.0,
    **fit_kwargs,
):
    """
    Check that the model recovers known parameters before trusting it.

    Args:
        ground_truth: True parameters; defaults to the built-in table.
        depths_inch, replicates_per_depth, seed: Passed to generate.
        spec: Model variant to fit.
        supported_lengths, prior_means: Passed to to_dataset_bundle.
        n_sd: Recovery tolerance in posterior standard deviations.
        **fit_kwargs: Passed to fit_model (draws, tune, chains, ...).

    Returns:
        Tuple (bundle, fit, recovery_df).

    Raises:
        ConvergenceError: Sampling diagnostics failed.
    """
    from etape_calibration.modeling.fitter import fit_model

    if ground_truth is None:
        ground_truth = SyntheticGroundTruth.default()

    simulated = generate(
        ground_truth,
        depths_inch,
        replicates_per_depth,
        seed,
        supported_lengths=supported_lengths,
    )
    bundle = to_dataset_bundle(simulated, supported_lengths, prior_means)
    fit = fit_model(bundle, spec, **fit_kwargs)
    recovery = check_recovery(
        fit.posterior_samples(),
        ground_truth,
        bundle.length_levels,
        n_sd=n_sd,
    )
    n_missed = int((~recovery["recovered"]).sum())
    if n_missed:
        logger.warning(
            "Synthetic validation: %d of %d parameters outside %.1f posterior SD",
            n_missed,
            len(recovery),
            n_sd,
        )
    else:
        logger.info("Synthetic validation: all %d parameters recovered", len(recovery))
    return bundle, fit, recovery
