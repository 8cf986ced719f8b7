"""
Per-unit deviation from the length-level calibration line.

Each eTape unit is compared against the OLS line of its nominal length. A
unit whose mean residual stands out from the other units of the same
length hints at a per-unit offset, which is what the optional gamma[I]
model term would absorb.
"""

import pandas as pd

from etape_calibration.errors import MalformedInputError


def compute_unit_deviation(
    df: pd.DataFrame,
    baseline: pd.DataFrame,
    *,
    unit_col: str = "etape_id",
    length_col: str = "etape_length",
    depth_col: str = "water_depth_cm",
    resistance_col: str = "resistivity_ohm",
) -> pd.DataFrame:
    """
    Compute per-unit residual summary and deviation from the length batch.

    Args:
        df: Cleaned calibration DataFrame.
        baseline: Output of get_baseline_table (intercept, slope per length).
        unit_col: Column identifying individual sensors.
        length_col: Nominal length column.
        depth_col: Observed depth column.
        resistance_col: Resistance column.

    Returns:
        DataFrame with columns: [length_col, unit_col, n_samples,
        mean_residual, std_residual, batch_mean, batch_std, z_from_batch].
        Residual is observed depth minus the length line's prediction (cm).
        z_from_batch is (mean_residual - batch_mean) / batch_std over the
        units of the same length; NaN when the batch has one unit or no
        spread. Rows of lengths missing from baseline are dropped.
    """
    required = [unit_col, length_col, depth_col, resistance_col]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise MalformedInputError(
            f"compute_unit_deviation: missing columns {missing}. "
            f"Available: {list(df.columns)}"
        )

    work = df[required].copy()
    work[length_col] = pd.to_numeric(work[length_col].astype(object)).astype(int)
    work[unit_col] = work[unit_col].astype(str)
    lines = baseline[["etape_length", "intercept", "slope"]].rename(
        columns={"etape_length": length_col}
    )
    work = work.merge(lines, on=length_col, how="inner")
    work["residual"] = work[depth_col] - (
        work["intercept"] + work["slope"] * work[resistance_col]
    )

    agg = (
        work.groupby([length_col, unit_col], sort=True)
        .agg(
            n_samples=("residual", "count"),
            mean_residual=("residual", "mean"),
            std_residual=("residual", "std"),
        )
        .reset_index()
    )

    batch = (
        agg.groupby(length_col)
        .agg(
            batch_mean=("mean_residual", "mean"),
            batch_std=("mean_residual", "std"),
        )
        .reset_index()
    )
    agg = agg.merge(batch, on=length_col, how="left")

    spread = agg["batch_std"].where(agg["batch_std"] > 0)
    agg["z_from_batch"] = (agg["mean_residual"] - agg["batch_mean"]) / spread
    return agg


def identify_deviating_units(
    deviation_df: pd.DataFrame,
    *,
    z_threshold: float = 2.0,
) -> pd.DataFrame:
    """
    Flag units that deviate significantly from their length batch.

    Args:
        deviation_df: Output of compute_unit_deviation.
        z_threshold: Units with |z_from_batch| above this are returned.

    Returns:
        Rows of deviation_df above the threshold, largest |z_from_batch|
        first. NaN z-scores never qualify.
    """
    if "z_from_batch" not in deviation_df.columns:
        raise MalformedInputError(
            "identify_deviating_units: expected output of compute_unit_deviation "
            f"(no z_from_batch column). Available: {list(deviation_df.columns)}"
        )

    abs_z = deviation_df["z_from_batch"].abs()
    flagged = deviation_df.loc[abs_z > z_threshold]
    return flagged.sort_values(
        "z_from_batch", key=lambda z: z.abs(), ascending=False
    ).reset_index(drop=True)
