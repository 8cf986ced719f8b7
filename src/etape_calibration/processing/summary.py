"""
Descriptive summary of resistance readings per sensor length and depth.
"""

from typing import Sequence

import pandas as pd

from etape_calibration.errors import MalformedInputError

SUMMARY_GROUP_COLUMNS = ("etape_length", "water_depth_inch")
SUMMARY_STAT_COLUMNS = ["mean", "median", "sd", "min", "max", "count"]


def summarize(
    df: pd.DataFrame,
    *,
    value_col: str = "resistivity_ohm",
    group_cols: Sequence[str] = SUMMARY_GROUP_COLUMNS,
) -> pd.DataFrame:
    """
    Summarize resistance by (etape_length, water_depth_inch).

    Groups are sorted ascending by the group columns. The standard deviation
    uses the sample estimator (ddof=1), so a group with a single reading has
    sd = NaN rather than 0.

    Args:
        df: Cleaned calibration DataFrame.
        value_col: Column to summarize.
        group_cols: Grouping columns, in sort priority.

    Returns:
        DataFrame with group_cols followed by mean, median, sd, min, max, count.
    """
    required = list(group_cols) + [value_col]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise MalformedInputError(
            f"summarize: missing columns {missing}. Available: {list(df.columns)}"
        )

    values = pd.to_numeric(df[value_col], errors="coerce")
    grouped = df.assign(**{value_col: values}).groupby(
        list(group_cols), observed=True, sort=True
    )
    out = grouped[value_col].agg(
        mean="mean",
        median="median",
        sd="std",
        min="min",
        max="max",
        count="count",
    )
    out = out.reset_index()
    out["count"] = out["count"].astype(int)
    return out[list(group_cols) + SUMMARY_STAT_COLUMNS]
