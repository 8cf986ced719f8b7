"""
Run the eTape calibration study end to end.

1. Synthetic validation: simulate data with known lines, fit, check recovery.
2. Real data: prepare, summarize, OLS baseline, pooled Bayesian fit.
3. Optional single-sensor sub-study: fit and compare against the pooled model.

Result tables are written as CSV to the output directory.

Usage:
    python apps/run_calibration.py --data data/etape_calibration.csv \
        --single-sensor data/single_etape.csv --single-sensor-length 12 \
        --output-dir results/
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from etape_calibration.assessment import (
    compare_pooled_to_single,
    compare_to_baseline,
    compute_unit_deviation,
    get_baseline_table,
    identify_deviating_units,
    parameter_table,
)
from etape_calibration.constants import DEFAULT_SINGLE_SENSOR_LENGTH
from etape_calibration.modeling import POOLED_MODEL, SINGLE_SENSOR_MODEL
from etape_calibration.modeling.fitter import fit_model
from etape_calibration.pipeline import (
    prepare_calibration_data,
    prepare_single_sensor_data,
    run_synthetic_validation,
    single_sensor_group,
)
from etape_calibration.processing import summarize, to_dataset_bundle

logger = logging.getLogger("run_calibration")


def _write(df, output_dir: Path, name: str) -> None:
    path = output_dir / f"{name}.csv"
    df.to_csv(path, index=False)
    logger.info("Wrote %s (%d rows)", path, len(df))


def main() -> None:
    parser = argparse.ArgumentParser(description="eTape calibration study")
    parser.add_argument("--data", type=Path, required=True, help="Calibration table")
    parser.add_argument(
        "--single-sensor",
        type=Path,
        default=None,
        help="Single-sensor sub-study table (optional)",
    )
    parser.add_argument(
        "--single-sensor-length",
        type=int,
        default=DEFAULT_SINGLE_SENSOR_LENGTH,
        help=f"Nominal length of the sub-study sensor (default: {DEFAULT_SINGLE_SENSOR_LENGTH})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("results"),
        help="Directory for result tables (default: results/)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(name)s | %(message)s")
    args.output_dir.mkdir(parents=True, exist_ok=True)

    _, _, recovery = run_synthetic_validation(random_seed=1)
    _write(recovery, args.output_dir, "synthetic_recovery")

    df = prepare_calibration_data(args.data)
    _write(summarize(df), args.output_dir, "resistance_summary")

    baseline = get_baseline_table(df)
    _write(baseline, args.output_dir, "ols_baseline")
    deviation = compute_unit_deviation(df, baseline)
    _write(identify_deviating_units(deviation), args.output_dir, "deviating_units")

    bundle = to_dataset_bundle(df)
    pooled = fit_model(bundle, POOLED_MODEL, random_seed=2)
    pooled_samples = pooled.posterior_samples()
    levels = {name: pooled.levels(name) for name in pooled_samples}
    _write(parameter_table(pooled_samples, levels), args.output_dir, "pooled_parameters")
    _write(
        compare_to_baseline(pooled_samples, baseline, bundle.length_levels),
        args.output_dir,
        "pooled_vs_ols",
    )

    if args.single_sensor is None:
        return

    pooled_group = single_sensor_group(bundle, args.single_sensor_length)
    if pooled_group is None:
        logger.warning("Skipping the single-sensor comparison")
        return

    single_df = prepare_single_sensor_data(
        args.single_sensor, etape_length=args.single_sensor_length
    )
    single = fit_model(to_dataset_bundle(single_df), SINGLE_SENSOR_MODEL, random_seed=3)
    r_obs = single_df["resistivity_ohm"]
    resistances = np.linspace(r_obs.min(), r_obs.max(), 5)
    comparison = compare_pooled_to_single(
        pooled_samples,
        single.posterior_samples(),
        resistances,
        pooled_group=pooled_group,
    )
    _write(comparison, args.output_dir, "pooled_vs_single")


if __name__ == "__main__":
    main()
